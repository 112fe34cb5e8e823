"""
Tables behind SessionStore.

Each row keeps the whole record as the pydantic model's JSON in `document`;
the other columns exist to be indexed and inspected with plain SQL.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class SessionRecordModel(TimestampMixin, Base):
    __tablename__ = "puzzle_sessions"
    __table_args__ = (Index("ix_puzzle_sessions_user_started", "user_id", "started_at"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    user_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    puzzle_type: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    document: Mapped[str] = mapped_column(Text, nullable=False)


class ProfileRecordModel(TimestampMixin, Base):
    __tablename__ = "cognitive_profiles"
    __table_args__ = (Index("ix_cognitive_profiles_fingerprint", "fingerprint"),)

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    archetype: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    fingerprint: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    document: Mapped[str] = mapped_column(Text, nullable=False)


class ShareRecordModel(TimestampMixin, Base):
    __tablename__ = "profile_shares"
    __table_args__ = (Index("ix_profile_shares_user_id", "user_id", unique=True),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    privacy_level: Mapped[str] = mapped_column(String(16), nullable=False)
    document: Mapped[str] = mapped_column(Text, nullable=False)
