"""
Legacy Planner - Main Application Entry Point

Estate plan recording: beneficiaries, asset and residue allocations, and
progress through the will-making workflow.
"""

import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from legacy_planner.core.config import settings
from legacy_planner.core.database import SessionLocal
from legacy_planner.core.events import mutation_notifier
from legacy_planner.core.exceptions import (
    DuplicateError,
    EstateEngineError,
    NotFoundError,
    TransientIOError,
    ValidationError,
)
from legacy_planner.modules.estate_planning.completion import CompletionMonitor
from legacy_planner.modules.profile.services import get_completion_flags

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Import module routers
from legacy_planner.modules.estate_planning.router import router as estate_planning_router

# Error class -> HTTP status, most specific first
ERROR_STATUS = (
    (ValidationError, 422),
    (NotFoundError, 404),
    (DuplicateError, 409),
    (TransientIOError, 503),
)


def status_for(error: EstateEngineError) -> int:
    for error_class, status_code in ERROR_STATUS:
        if isinstance(error, error_class):
            return status_code
    return 400


def _load_completion_flags(profile_id: str):
    db = SessionLocal()
    try:
        return get_completion_flags(db, profile_id)
    finally:
        db.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Estate plan beneficiaries, allocations and workflow progress",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    # Use ["*"] if CORS_ALLOW_ALL is True (development), otherwise use explicit origins
    cors_origins = ["*"] if settings.CORS_ALLOW_ALL else settings.CORS_ORIGINS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register module routers
    app.include_router(estate_planning_router, prefix="/api/v1/estate-planning", tags=["Estate Planning"])

    @app.exception_handler(EstateEngineError)
    async def estate_error_handler(request: Request, exc: EstateEngineError):
        """Every engine error gets its own code and message."""
        status_code = status_for(exc)
        if status_code >= 500:
            logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
        else:
            logger.info(f"{exc.code} on {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=status_code,
            content={"error": exc.code, "detail": exc.message},
        )

    @app.get("/", tags=["Health"])
    async def root():
        """Root endpoint - health check."""
        return {
            "application": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "status": "running"
        }

    @app.get("/api/health", tags=["Health"])
    async def health_check():
        """API health check endpoint."""
        return {"status": "healthy"}

    @app.on_event("startup")
    async def startup_event():
        """Start re-evaluating the completion gate whenever a profile changes."""
        monitor = CompletionMonitor(mutation_notifier, _load_completion_flags)
        monitor.add_listener(
            lambda profile_id, complete: logger.debug(f"Profile {profile_id} completion: {complete}")
        )
        app.state.completion_monitor = monitor
        logger.info("Application startup complete - completion monitor subscribed")

    @app.on_event("shutdown")
    async def shutdown_event():
        monitor = getattr(app.state, "completion_monitor", None)
        if monitor is not None:
            monitor.close()
            logger.info("Application shutdown - completion monitor unsubscribed")

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("legacy_planner.main:app", host="0.0.0.0", port=8000, reload=True)
