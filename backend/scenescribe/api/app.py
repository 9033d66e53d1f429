"""FastAPI application setup with lifespan and exception handlers."""

from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from scenescribe import __version__
from scenescribe.api.routes import router
from scenescribe.config import Settings, settings as default_settings
from scenescribe.errors import (
    InvalidRequest,
    PersistenceError,
    ProjectNotFound,
    TopicNotFound,
)
from scenescribe.orchestrator.pipeline import ProjectOrchestrator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    Startup:
        - Initialize the project store (creates tables for the SQL backend)

    Shutdown:
        - Close provider clients and storage connections
    """
    orchestrator: ProjectOrchestrator = app.state.orchestrator
    logger.info("Starting SceneScribe API...")
    await orchestrator.startup()
    logger.info("API startup complete")

    yield

    logger.info("Shutting down SceneScribe API...")
    await orchestrator.shutdown()
    logger.info("API shutdown complete")


async def not_found_handler(request: Request, exc: Exception):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def invalid_request_handler(request: Request, exc: Exception):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def persistence_error_handler(request: Request, exc: Exception):
    logger.error(f"Persistence failure in {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc),
        }
    )


async def generic_exception_handler(request: Request, exc: Exception):
    """Catch-all exception handler to prevent stack traces in API responses."""
    logger.error(f"Unhandled exception in {request.method} {request.url.path}: {type(exc).__name__}: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc),
        }
    )


def create_app(
    orchestrator: Optional[ProjectOrchestrator] = None,
    app_settings: Optional[Settings] = None,
) -> FastAPI:
    """Build the API around an orchestrator (one built from settings if omitted)."""
    cfg = app_settings or default_settings

    app = FastAPI(
        title="SceneScribe API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.orchestrator = orchestrator or ProjectOrchestrator.from_settings(cfg)

    # CORS for local frontends
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    app.add_exception_handler(ProjectNotFound, not_found_handler)
    app.add_exception_handler(TopicNotFound, not_found_handler)
    app.add_exception_handler(InvalidRequest, invalid_request_handler)
    app.add_exception_handler(PersistenceError, persistence_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
    return app


app = create_app()
