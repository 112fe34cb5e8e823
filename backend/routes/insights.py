from typing import Optional

from fastapi import APIRouter, Depends, Query

from deps import get_connections, get_engine, get_store
from errors import ProfileNotFound
from models.base import CamelModel
from models.metrics import ComparativeInsights, Recommendation, Visualization
from psychology.catalog import BIASES_DETECTED
from psychology.engine import PsychologyEngine
from realtime.manager import ConnectionManager
from store import SessionStore

router = APIRouter(prefix="/cognitive", tags=["insights"])


# ---------- Response schema ----------

class StatsResponse(CamelModel):
    total_puzzles: int
    minds_analyzed: int
    biases_detected: int
    sessions: int
    completed_sessions: int
    live_connections: int
    archetype_distribution: dict[str, int]


# ---------- Endpoints ----------

@router.get("/comparative/{user_id}", response_model=ComparativeInsights)
async def get_comparative_insights(
    user_id: str,
    archetype: Optional[str] = Query(default=None),
    store: SessionStore = Depends(get_store),
    engine: PsychologyEngine = Depends(get_engine),
):
    """
    Places the user's latest completed session within the population of
    completed sessions, optionally restricted to one archetype.
    """
    latest = store.latest_completed_for(user_id)
    if latest is None:
        raise ProfileNotFound(user_id)

    population = [s.metrics for s in store.completed_sessions(archetype)]
    everyone = [s.metrics for s in store.completed_sessions()]
    return engine.comparative(user_id, latest.metrics, population, everyone, archetype)


@router.get("/visualization/{session_id}", response_model=Visualization)
async def get_visualization(
    session_id: str,
    store: SessionStore = Depends(get_store),
    engine: PsychologyEngine = Depends(get_engine),
):
    """Graph of event types and transitions for a session, finished or not."""
    session = await store.get_session(session_id)
    return engine.visualize(session)


@router.get("/recommendation/{user_id}", response_model=Recommendation)
async def get_recommendation(
    user_id: str,
    store: SessionStore = Depends(get_store),
    engine: PsychologyEngine = Depends(get_engine),
):
    """Next puzzle for the user. Users without history get the baseline puzzle."""
    latest = store.latest_completed_for(user_id)
    return engine.recommend(
        user_id,
        store.find_profile(user_id),
        latest.metrics if latest else None,
    )


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    store: SessionStore = Depends(get_store),
    engine: PsychologyEngine = Depends(get_engine),
    connections: ConnectionManager = Depends(get_connections),
):
    """Headline numbers for the landing page."""
    stats = store.stats()
    return StatsResponse(
        total_puzzles=engine.puzzle_count,
        minds_analyzed=stats["minds_analyzed"],
        biases_detected=BIASES_DETECTED,
        sessions=stats["sessions"],
        completed_sessions=stats["completed_sessions"],
        live_connections=connections.count,
        archetype_distribution=stats["archetype_distribution"],
    )
