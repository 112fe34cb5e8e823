from datetime import datetime
from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import Field

from deps import get_engine, get_store
from errors import CognitiveError, ProfileNotFound, ShareNotAllowed
from models.base import CamelModel
from models.metrics import MatchResult
from models.profile import PrivacyLevel
from psychology.engine import PsychologyEngine
from store import SessionStore

router = APIRouter(prefix="/cognitive", tags=["social"])


# ---------- Request / Response schemas ----------

class ShareRequest(CamelModel):
    profile_data: dict[str, Any] = Field(default_factory=dict)
    privacy_level: PrivacyLevel = PrivacyLevel.PUBLIC
    user_id: Optional[str] = None


class ShareResponse(CamelModel):
    share_id: str
    privacy_level: PrivacyLevel
    archetype: Optional[str]
    share_url: Optional[str]
    created_at: datetime


class MatchRequest(CamelModel):
    user_id: str
    desired_interaction: Literal["similar", "complementary"] = "similar"
    limit: int = Field(default=5, ge=1, le=50)


# ---------- Endpoints ----------

@router.post("/share", response_model=ShareResponse)
async def share_profile(
    body: ShareRequest,
    store: SessionStore = Depends(get_store),
):
    """
    Publishes a snapshot of the user's profile. Public shares are matchable
    under the user's id, anonymous ones without it, private ones not at all.
    """
    profile_user = body.profile_data.get("userId")
    if body.user_id and profile_user and body.user_id != profile_user:
        raise ShareNotAllowed(f"User {body.user_id} cannot share the profile of {profile_user}")

    user_id = body.user_id or profile_user
    if not user_id:
        raise CognitiveError("profileData.userId is required to share a profile", code="USER_ID_REQUIRED")

    share = await store.save_share(user_id, body.privacy_level, body.profile_data)
    share_url = None if share.privacy_level is PrivacyLevel.PRIVATE else f"/share/{share.share_id}"
    return ShareResponse(
        share_id=share.share_id,
        privacy_level=share.privacy_level,
        archetype=share.archetype,
        share_url=share_url,
        created_at=share.created_at,
    )


@router.post("/match", response_model=MatchResult)
async def find_matches(
    body: MatchRequest,
    store: SessionStore = Depends(get_store),
    engine: PsychologyEngine = Depends(get_engine),
):
    """Ranks shared profiles by how similar, or how complementary, their fingerprint is."""
    profile = await store.get_profile(body.user_id)
    if profile.fingerprint is None:
        raise ProfileNotFound(body.user_id)

    return engine.match(
        body.user_id,
        profile.fingerprint,
        store.shares(),
        body.desired_interaction,
        body.limit,
    )
