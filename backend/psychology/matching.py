from models.metrics import CognitiveMatch, MatchResult
from models.profile import PrivacyLevel, ShareRecord
from psychology.archetypes import distance, parse_fingerprint

SIMILAR = "similar"
COMPLEMENTARY = "complementary"


def find_matches(
    user_id: str,
    own_fingerprint: str,
    shares: list[ShareRecord],
    desired_interaction: str,
    limit: int = 5,
) -> MatchResult:
    """
    Rank other users' shared profiles by fingerprint distance.

    "similar" puts the closest minds first, "complementary" the most
    distant. Private shares and shares without a fingerprint never match;
    anonymous shares are returned without their user id.
    """
    own = parse_fingerprint(own_fingerprint)
    candidates = []
    for share in shares:
        if share.user_id == user_id or share.fingerprint is None:
            continue
        if share.privacy_level is PrivacyLevel.PRIVATE:
            continue
        candidates.append(
            CognitiveMatch(
                user_id=share.user_id if share.privacy_level is PrivacyLevel.PUBLIC else None,
                share_id=share.share_id,
                archetype=share.archetype,
                fingerprint=share.fingerprint,
                distance=round(distance(own, parse_fingerprint(share.fingerprint)), 4),
            )
        )

    reverse = desired_interaction == COMPLEMENTARY
    candidates.sort(key=lambda m: (-m.distance if reverse else m.distance, m.share_id))

    return MatchResult(
        user_id=user_id,
        desired_interaction=desired_interaction,
        matches=candidates[:limit],
    )
