from dotenv import load_dotenv
load_dotenv()

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from config import Settings, get_settings
from db import Database
from errors import CognitiveError
from gemini.config import narrative_model_chain
from logging_config import configure_logging
from psychology.engine import PsychologyEngine
from realtime import router as realtime_router
from realtime.manager import ConnectionManager
from routes import insights, session, social
from store import BACKEND_DISCONNECTED, SessionStore

API_NAME = "Cognitive Mirrors API"
API_VERSION = "1.0.0"

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info("%s %s starting (%s)", API_NAME, API_VERSION, settings.environment)
    logger.info("Gemini narratives enabled: %s", app.state.engine.narrative_enabled)
    await app.state.store.open()
    yield
    closed = await app.state.connections.close_all()
    app.state.store.close()
    logger.info("Shutdown complete: closed %d realtime connection(s)", closed)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application and the resources it owns.

    The store, the psychology engine and the connection registry live on
    app.state for the lifetime of the app; routes and the realtime relay
    reach them through the dependencies in deps.py. The store is backed by
    settings.database_url when one is set and opened by the lifespan.
    """
    settings = settings or get_settings()
    database = Database.from_settings(settings) if settings.database_url else None

    app = FastAPI(title=API_NAME, version=API_VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.store = SessionStore(database)
    app.state.engine = PsychologyEngine(
        gemini_api_key=settings.gemini_api_key,
        gemini_models=narrative_model_chain(settings.gemini_model),
    )
    app.state.connections = ConnectionManager()
    app.state.started_monotonic = time.monotonic()

    app.add_middleware(GZipMiddleware, minimum_size=settings.gzip_minimum_size)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )

    @app.middleware("http")
    async def log_request(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "%s %s -> %d (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )
        return response

    @app.exception_handler(CognitiveError)
    async def cognitive_error_handler(request: Request, exc: CognitiveError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={
                "message": "Invalid request",
                "code": "INVALID_REQUEST",
                "errors": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"message": "Internal server error", "code": "INTERNAL_ERROR"},
        )

    app.include_router(session.router, prefix="/api")
    app.include_router(insights.router, prefix="/api")
    app.include_router(social.router, prefix="/api")
    app.include_router(realtime_router.router)

    @app.get("/api/health")
    def health():
        """Reports the store backend as connected, disconnected or in-memory; 503 when disconnected."""
        store_status = app.state.store.backend_status()
        healthy = store_status != BACKEND_DISCONNECTED
        body = {
            "status": "healthy" if healthy else "degraded",
            "healthy": healthy,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - app.state.started_monotonic, 3),
            "environment": settings.environment,
            "store": store_status,
            "connections": app.state.connections.count,
        }
        return JSONResponse(status_code=200 if healthy else 503, content=body)

    @app.get("/api/version")
    def version():
        engine: PsychologyEngine = app.state.engine
        return {
            "name": API_NAME,
            "version": API_VERSION,
            "psychologyEngine": engine.version,
            "cognitiveModels": engine.cognitive_models,
            "puzzles": engine.puzzle_count,
        }

    return app


configure_logging()
app = create_app()


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
