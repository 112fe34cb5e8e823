from collections import Counter
from typing import Optional

from models.metrics import CognitiveMetrics, ComparativeInsights, DimensionComparison
from psychology.catalog import DIMENSIONS


def percentile(value: float, population: list[float]) -> float:
    """Share of the population below value, counting ties as half, on a 0-100 scale."""
    if not population:
        return 50.0
    below = sum(1 for v in population if v < value)
    equal = sum(1 for v in population if v == value)
    return round(100.0 * (below + 0.5 * equal) / len(population), 1)


def compare(
    user_id: str,
    own: CognitiveMetrics,
    population: list[CognitiveMetrics],
    everyone: list[CognitiveMetrics],
    archetype: Optional[str] = None,
) -> ComparativeInsights:
    comparisons = []
    for dimension in DIMENSIONS:
        values = [getattr(m, dimension) for m in population]
        mean = round(sum(values) / len(values), 4) if values else getattr(own, dimension)
        comparisons.append(
            DimensionComparison(
                dimension=dimension,
                value=getattr(own, dimension),
                population_mean=mean,
                percentile=percentile(getattr(own, dimension), values),
            )
        )

    return ComparativeInsights(
        user_id=user_id,
        archetype=archetype,
        population_size=len(population),
        comparisons=comparisons,
        archetype_distribution=dict(Counter(m.archetype for m in everyone)),
    )
