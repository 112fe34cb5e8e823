"""
Graph data for the neural-network visualization of a session.

Nodes are event types sized by frequency; edges are transitions between
consecutive events weighted by how often they occurred; the timeline keeps
each event's offset from the first one.
"""

from collections import Counter
from typing import Optional

from models.metrics import (
    CognitiveMetrics,
    TimelinePoint,
    Visualization,
    VisualizationEdge,
    VisualizationNode,
)
from models.session import Session


def build_visualization(session: Session, metrics: Optional[CognitiveMetrics] = None) -> Visualization:
    events = sorted(session.events, key=lambda e: e.sequence)
    total = len(events)

    counts = Counter(e.event_type for e in events)
    nodes = [
        VisualizationNode(id=kind, count=count, weight=round(count / total, 4))
        for kind, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    ]

    transitions = Counter(
        (earlier.event_type, later.event_type)
        for earlier, later in zip(events, events[1:])
    )
    edges = [
        VisualizationEdge(source=source, target=target, weight=weight)
        for (source, target), weight in sorted(
            transitions.items(), key=lambda item: (-item[1], item[0])
        )
    ]

    origin = events[0].timestamp if events else 0
    timeline = [
        TimelinePoint(sequence=e.sequence, event_type=e.event_type, offset_ms=max(0, e.timestamp - origin))
        for e in events
    ]

    return Visualization(
        session_id=session.session_id,
        nodes=nodes,
        edges=edges,
        timeline=timeline,
        metrics=metrics,
    )
