"""FastAPI dependencies resolving the resources owned by the running app."""

from fastapi.requests import HTTPConnection

from psychology.engine import PsychologyEngine
from realtime.manager import ConnectionManager
from store import SessionStore


def get_store(conn: HTTPConnection) -> SessionStore:
    return conn.app.state.store


def get_engine(conn: HTTPConnection) -> PsychologyEngine:
    return conn.app.state.engine


def get_connections(conn: HTTPConnection) -> ConnectionManager:
    return conn.app.state.connections
