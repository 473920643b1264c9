"""
Application factory for FastAPI.

This module provides a factory function for creating FastAPI application instances.
The factory pattern allows for:
- Easy testing with custom settings
- Multiple app instances with different configurations
- Clear separation of app creation from route definitions

Usage:
    from backend.main import create_app
    from backend.settings import Settings

    # Default app (uses get_settings())
    app = create_app()

    # Test app with custom settings
    test_settings = Settings(environment="test", _env_file=None)
    test_app = create_app(settings=test_settings)
"""

import logging
from datetime import date
from typing import Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from supabase import create_client

from backend.settings import Settings, get_settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Application Factory
# ---------------------------------------------------------------------------


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure a FastAPI application instance.

    Args:
        settings: Optional Settings instance. If not provided, uses get_settings()
                  which loads from environment variables.

    Returns:
        Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    # Initialize Sentry for error tracking
    _init_sentry(settings)

    app = FastAPI(
        title="Class Scheduler API",
        description="Recurring class templates, auto-scheduling and quick-add",
        version="1.0.0",
    )

    # Store settings on app state for middleware access
    app.state.settings = settings

    _configure_cors(app, settings)
    _include_routers(app)
    _register_lifecycle(app, settings)

    return app


def _init_sentry(settings: Settings) -> None:
    """Initialize Sentry SDK if DSN is configured."""
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            release=settings.render_git_commit,
            traces_sample_rate=0.1,
        )
        logger.info(
            "Sentry initialized for class-scheduler (release=%s)",
            settings.render_git_commit or "unknown",
        )


def _configure_cors(app: FastAPI, settings: Settings) -> None:
    """Configure CORS middleware for the application."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _include_routers(app: FastAPI) -> None:
    """Include all API routers in the application."""
    from api.routers import health_router, schedule_router

    # Health router (no prefix - /health at root)
    app.include_router(health_router)

    # Schedule router (/api/schedule/*)
    app.include_router(schedule_router)


def run_startup_catch_up(settings: Settings) -> None:
    """Catch up all active templates once, if enabled and a database is configured.

    Failures are logged; they never stop the application from starting.
    """
    if not settings.run_catch_up_on_startup:
        logger.info("Startup catch-up disabled via settings")
        return
    if not settings.supabase_configured:
        logger.info("Supabase not configured, skipping startup catch-up")
        return

    from api.deps import build_auto_schedule_use_case
    from application.errors import SchedulingError
    from infrastructure.db.class_instance_repository import SupabaseClassInstanceRepository
    from infrastructure.db.class_template_repository import SupabaseClassTemplateRepository

    client = create_client(settings.supabase_url, settings.supabase_key)
    use_case = build_auto_schedule_use_case(
        SupabaseClassTemplateRepository(client),
        SupabaseClassInstanceRepository(client),
        settings,
    )
    try:
        report = use_case.run_catch_up_for_all_active_templates(
            date.today(),
            timeout_seconds=settings.catch_up_timeout_seconds,
        )
    except SchedulingError as e:
        logger.error("Startup catch-up could not run: %s", e)
        return
    for outcome in report.failed:
        logger.warning(
            "Startup catch-up failed for template %s: %s",
            outcome.template_id,
            outcome.error,
        )


def _register_lifecycle(app: FastAPI, settings: Settings) -> None:
    """Register startup and shutdown handlers."""

    @app.on_event("startup")
    def startup_event():
        run_startup_catch_up(settings)

    @app.on_event("shutdown")
    def shutdown_event():
        logger.info("class-scheduler shutdown complete")


# Default app instance for uvicorn
# This allows: uvicorn backend.main:app --reload
app = create_app()
