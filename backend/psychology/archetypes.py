import math
from typing import Sequence

from psychology.catalog import ARCHETYPES


def distance(a: Sequence[float], b: Sequence[float]) -> float:
    return math.sqrt(sum((x - y) ** 2 for x, y in zip(a, b)))


def assign_archetype(vector: Sequence[float]) -> str:
    """Nearest centroid wins; ties go to the archetype listed first in the catalog."""
    best_name = None
    best_distance = math.inf
    for name, archetype in ARCHETYPES.items():
        d = distance(vector, archetype["centroid"])
        if d < best_distance:
            best_name, best_distance = name, d
    return best_name


def fingerprint(vector: Sequence[float]) -> str:
    """Quantised metric vector, e.g. "0.8-0.4-0.8-0.7-0.1"."""
    return "-".join(f"{round(v, 1):.1f}" for v in vector)


def parse_fingerprint(value: str) -> tuple[float, ...]:
    return tuple(float(part) for part in value.split("-"))


def with_article(name: str) -> str:
    return f"{'an' if name[:1] in ('a', 'e', 'i', 'o', 'u') else 'a'} {name}"
