from typing import Optional

from models.base import CamelModel


class CognitiveMetrics(CamelModel):
    decisiveness: float     # 0.0 - 1.0
    exploration: float      # 0.0 - 1.0
    persistence: float      # 0.0 - 1.0
    reflection: float       # 0.0 - 1.0
    impulsivity: float      # 0.0 - 1.0
    event_count: int
    duration_ms: int
    score: Optional[float] = None
    archetype: str
    fingerprint: str
    interpretation: Optional[str] = None


class DimensionComparison(CamelModel):
    dimension: str
    value: float
    population_mean: float
    percentile: float       # 0 - 100


class ComparativeInsights(CamelModel):
    user_id: str
    archetype: Optional[str]
    population_size: int
    comparisons: list[DimensionComparison]
    archetype_distribution: dict[str, int]


class VisualizationNode(CamelModel):
    id: str
    count: int
    weight: float           # share of all events, 0.0 - 1.0


class VisualizationEdge(CamelModel):
    source: str
    target: str
    weight: int


class TimelinePoint(CamelModel):
    sequence: int
    event_type: str
    offset_ms: int


class Visualization(CamelModel):
    session_id: str
    nodes: list[VisualizationNode]
    edges: list[VisualizationEdge]
    timeline: list[TimelinePoint]
    metrics: Optional[CognitiveMetrics] = None


class Recommendation(CamelModel):
    user_id: str
    puzzle_type: str
    focus_dimension: Optional[str]
    reason: str


class CognitiveMatch(CamelModel):
    user_id: Optional[str]      # None for anonymous shares
    share_id: str
    archetype: Optional[str]
    fingerprint: str
    distance: float


class MatchResult(CamelModel):
    user_id: str
    desired_interaction: str
    matches: list[CognitiveMatch]
