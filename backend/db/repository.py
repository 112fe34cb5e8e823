"""Database-backed persistence for sessions, profiles and shares."""

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from db.models import ProfileRecordModel, SessionRecordModel, ShareRecordModel
from models.profile import CognitiveProfile, ShareRecord
from models.session import Session as PuzzleSession


class DocumentRepository:
    """Reads and upserts whole records; SessionStore decides when."""

    # ---------- Sessions ----------

    def load_sessions(self, db: Session) -> list[PuzzleSession]:
        stmt = select(SessionRecordModel).order_by(SessionRecordModel.started_at)
        return [
            PuzzleSession.model_validate_json(model.document)
            for model in db.execute(stmt).scalars()
        ]

    def save_session(self, db: Session, session: PuzzleSession) -> None:
        model = db.get(SessionRecordModel, session.session_id)
        if model is None:
            model = SessionRecordModel(id=session.session_id)
            db.add(model)
        model.user_id = session.user_id
        model.puzzle_type = session.puzzle_type
        model.status = session.status.value
        model.started_at = session.started_at
        model.document = session.model_dump_json(by_alias=True)

    # ---------- Profiles ----------

    def load_profiles(self, db: Session) -> list[CognitiveProfile]:
        stmt = select(ProfileRecordModel).order_by(ProfileRecordModel.user_id)
        return [
            CognitiveProfile.model_validate_json(model.document)
            for model in db.execute(stmt).scalars()
        ]

    def save_profile(self, db: Session, profile: CognitiveProfile) -> None:
        model = db.get(ProfileRecordModel, profile.user_id)
        if model is None:
            model = ProfileRecordModel(user_id=profile.user_id)
            db.add(model)
        model.archetype = profile.archetype
        model.fingerprint = profile.fingerprint
        model.document = profile.model_dump_json(by_alias=True)

    # ---------- Shares ----------

    def load_shares(self, db: Session) -> list[ShareRecord]:
        stmt = select(ShareRecordModel).order_by(ShareRecordModel.created_at)
        return [
            ShareRecord.model_validate_json(model.document)
            for model in db.execute(stmt).scalars()
        ]

    def replace_share(self, db: Session, share: ShareRecord) -> None:
        """Store share as the user's only share."""
        db.execute(delete(ShareRecordModel).where(ShareRecordModel.user_id == share.user_id))
        db.add(
            ShareRecordModel(
                id=share.share_id,
                user_id=share.user_id,
                privacy_level=share.privacy_level.value,
                document=share.model_dump_json(by_alias=True),
            )
        )
