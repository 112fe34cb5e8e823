"""
Psychology engine: turns a session's event log into cognitive metrics.

The engine is deterministic over its inputs; only the narrative
interpretation calls out to Gemini, and that always has a template
fallback. One engine is built per application and shared by the HTTP
routes and the realtime relay.
"""

from typing import Optional, Sequence

from gemini.config import narrative_model_chain
from models.metrics import (
    CognitiveMetrics,
    ComparativeInsights,
    MatchResult,
    Recommendation,
    Visualization,
)
from models.profile import CognitiveProfile, ShareRecord
from models.session import Session
from psychology.archetypes import assign_archetype, fingerprint
from psychology.catalog import ARCHETYPES, DIMENSIONS, PUZZLES
from psychology.comparative import compare
from psychology.matching import find_matches
from psychology.metrics import compute_dimensions, session_duration_ms, session_score
from psychology.narrative import build_client, generate_interpretation
from psychology.recommendation import recommend
from psychology.visualization import build_visualization


class PsychologyEngine:
    version = "v2.1"

    def __init__(
        self,
        gemini_api_key: Optional[str] = None,
        gemini_models: Optional[Sequence[str]] = None,
    ):
        self._gemini = build_client(gemini_api_key)
        self._gemini_models = list(gemini_models or narrative_model_chain())

    @property
    def narrative_enabled(self) -> bool:
        return self._gemini is not None

    @property
    def cognitive_models(self) -> int:
        return len(ARCHETYPES)

    @property
    def puzzle_count(self) -> int:
        return len(PUZZLES)

    def analyze(self, session: Session) -> CognitiveMetrics:
        dimensions = compute_dimensions(session)
        vector = tuple(dimensions[d] for d in DIMENSIONS)
        return CognitiveMetrics(
            **dimensions,
            event_count=len(session.events),
            duration_ms=session_duration_ms(session),
            score=session_score(session),
            archetype=assign_archetype(vector),
            fingerprint=fingerprint(vector),
        )

    async def interpret(self, session: Session, metrics: CognitiveMetrics) -> CognitiveMetrics:
        """Return a copy of metrics carrying a narrative interpretation."""
        text = await generate_interpretation(
            metrics,
            puzzle_type=session.puzzle_type,
            client=self._gemini,
            models=self._gemini_models,
        )
        return metrics.model_copy(update={"interpretation": text})

    def comparative(
        self,
        user_id: str,
        own: CognitiveMetrics,
        population: list[CognitiveMetrics],
        everyone: list[CognitiveMetrics],
        archetype: Optional[str] = None,
    ) -> ComparativeInsights:
        return compare(user_id, own, population, everyone, archetype)

    def visualize(self, session: Session) -> Visualization:
        metrics = session.metrics
        if metrics is None and session.events:
            metrics = self.analyze(session)
        return build_visualization(session, metrics)

    def recommend(self, user_id: str, profile: Optional[CognitiveProfile], latest: Optional[CognitiveMetrics]) -> Recommendation:
        return recommend(user_id, profile, latest)

    def match(self, user_id: str, own_fingerprint: str, shares: list[ShareRecord], desired_interaction: str, limit: int = 5) -> MatchResult:
        return find_matches(user_id, own_fingerprint, shares, desired_interaction, limit)
