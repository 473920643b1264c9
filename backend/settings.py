"""
Centralized settings configuration using Pydantic BaseSettings.

All environment variables are defined here with types, defaults, and validation.
Use get_settings() for dependency injection compatibility in FastAPI.

Usage:
    from backend.settings import get_settings, Settings

    # In FastAPI endpoints (dependency injection)
    @app.get("/")
    def read_root(settings: Settings = Depends(get_settings)):
        return {"environment": settings.environment}

    # Direct access (module-level)
    settings = get_settings()
    print(settings.schedule_horizon_weeks)
"""

import json
from functools import lru_cache
from typing import List, Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Core Environment
    # -------------------------------------------------------------------------
    environment: str = Field(
        default="development",
        description="Runtime environment: development, staging, production, test",
    )

    # -------------------------------------------------------------------------
    # Supabase Database
    # -------------------------------------------------------------------------
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL",
    )
    supabase_service_role_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key (full access)",
    )

    @property
    def supabase_key(self) -> Optional[str]:
        """Get the Supabase key.

        The scheduler writes instances and watermarks for every studio, so
        it requires service role access.
        """
        return self.supabase_service_role_key

    # -------------------------------------------------------------------------
    # Auto-Scheduling
    # -------------------------------------------------------------------------
    schedule_horizon_weeks: int = Field(
        default=1,
        ge=1,
        le=52,
        description="Weeks past today that auto-scheduling keeps populated",
    )
    catch_up_max_workers: int = Field(
        default=1,
        ge=1,
        le=32,
        description="Templates caught up in parallel (1 = sequential)",
    )
    catch_up_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Overall time budget for a catch-up over all templates",
    )
    run_catch_up_on_startup: bool = Field(
        default=True,
        description="Catch up all active templates when the app starts",
    )

    # -------------------------------------------------------------------------
    # CORS
    # -------------------------------------------------------------------------
    allowed_origins: List[str] = Field(
        default_factory=list,
        description="Allowed CORS origins. If empty, defaults to localhost:3000/3001.",
    )

    # -------------------------------------------------------------------------
    # Observability - Sentry
    # -------------------------------------------------------------------------
    sentry_dsn: Optional[str] = Field(
        default=None,
        description="Sentry DSN for error tracking",
    )

    # -------------------------------------------------------------------------
    # Deployment / Render
    # -------------------------------------------------------------------------
    render_git_commit: Optional[str] = Field(
        default=None,
        description="Git commit SHA provided by Render (RENDER_GIT_COMMIT)",
    )

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_allowed_origins(cls, v: Union[str, List[str], None]) -> List[str]:
        """Accept JSON array, comma-separated string, or list."""
        if v is None:
            return []
        if isinstance(v, list):
            return v
        v = v.strip()
        if not v:
            return []
        if v.startswith("["):
            return json.loads(v)
        return [origin.strip() for origin in v.split(",") if origin.strip()]

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is a valid value."""
        valid_environments = {"development", "staging", "production", "test"}
        if v.lower() not in valid_environments:
            raise ValueError(
                f"Invalid environment '{v}'. Must be one of: {valid_environments}"
            )
        return v.lower()

    # -------------------------------------------------------------------------
    # Helper Properties
    # -------------------------------------------------------------------------
    @property
    def allowed_origins_list(self) -> List[str]:
        """CORS origins with the local development defaults applied."""
        return self.allowed_origins or ["http://localhost:3000", "http://localhost:3001"]

    @property
    def supabase_configured(self) -> bool:
        """Whether both Supabase URL and key are present."""
        return bool(self.supabase_url and self.supabase_key)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    For testing, you can clear the cache with get_settings.cache_clear().

    Returns:
        Settings: Application settings instance
    """
    return Settings()
