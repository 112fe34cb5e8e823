from typing import Optional

from models.metrics import CognitiveMetrics, Recommendation
from models.profile import CognitiveProfile
from psychology.archetypes import with_article
from psychology.catalog import DEFAULT_PUZZLE, DIMENSIONS, INVERTED_DIMENSIONS, PUZZLES, puzzles_for


def _need(metrics: CognitiveMetrics, dimension: str) -> float:
    value = getattr(metrics, dimension)
    return value if dimension in INVERTED_DIMENSIONS else 1.0 - value


def focus_dimension(metrics: CognitiveMetrics) -> str:
    """The dimension with the most room to grow; ties go to DIMENSIONS order."""
    return max(DIMENSIONS, key=lambda d: (_need(metrics, d), -DIMENSIONS.index(d)))


def recommend(
    user_id: str,
    profile: Optional[CognitiveProfile],
    latest: Optional[CognitiveMetrics],
) -> Recommendation:
    if profile is None or latest is None or not profile.sessions:
        return Recommendation(
            user_id=user_id,
            puzzle_type=DEFAULT_PUZZLE,
            focus_dimension=None,
            reason="Start with the labyrinth to establish your cognitive baseline.",
        )

    dimension = focus_dimension(latest)
    last_played = profile.sessions[-1].puzzle_type
    candidates = [p for p in puzzles_for(dimension) if p != last_played] or puzzles_for(dimension)
    puzzle_type = candidates[0]

    return Recommendation(
        user_id=user_id,
        puzzle_type=puzzle_type,
        focus_dimension=dimension,
        reason=(
            f"As {with_article(profile.archetype or 'newcomer')}, your {dimension} has the most room to grow; "
            f"{PUZZLES[puzzle_type]['title']} is built to stretch it."
        ),
    )