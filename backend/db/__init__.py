"""Database utilities for Cognitive Mirrors."""

from db.repository import DocumentRepository
from db.session import Database, build_engine

__all__ = [
    "Database",
    "DocumentRepository",
    "build_engine",
]
