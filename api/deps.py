"""
FastAPI Dependency Providers for the Class Scheduler API.

This module provides FastAPI dependency injection functions that return
interface types (Protocols) rather than concrete implementations.

Architecture:
- Settings, Supabase client and the template lock registry are cached
  per-process (lru_cache)
- Repositories are instantiated per-request with the shared Supabase client
- Use cases are wired through dependency chains
"""

from datetime import date
from functools import lru_cache
from typing import Optional

from fastapi import Depends
from supabase import Client, create_client

from application.ports.class_instance_repository import ClassInstanceRepository
from application.ports.class_template_repository import ClassTemplateRepository
from application.use_cases.auto_schedule import AutoScheduleUseCase
from application.use_cases.quick_add import QuickAddUseCase
from backend.services.template_locks import TemplateLockRegistry
from backend.settings import Settings, get_settings as _get_settings
from infrastructure.db.class_instance_repository import SupabaseClassInstanceRepository
from infrastructure.db.class_template_repository import SupabaseClassTemplateRepository


# =============================================================================
# Settings Provider
# =============================================================================


def get_settings() -> Settings:
    """
    Get application settings.

    Returns cached Settings instance from backend.settings.
    Use this as a FastAPI dependency for settings access.
    """
    return _get_settings()


def get_today() -> date:
    """Today's date in the studio's local calendar."""
    return date.today()


# =============================================================================
# Supabase Client Provider
# =============================================================================


@lru_cache
def get_supabase_client() -> Optional[Client]:
    """
    Get Supabase client instance (cached).

    Returns None if credentials are not configured.
    """
    settings = _get_settings()

    if not settings.supabase_configured:
        return None

    return create_client(settings.supabase_url, settings.supabase_key)


def get_supabase_client_required(
    client: Optional[Client] = Depends(get_supabase_client),
) -> Client:
    """
    Get Supabase client instance, raising if not configured.

    Raises:
        HTTPException: 503 if Supabase is not configured
    """
    from fastapi import HTTPException

    if client is None:
        raise HTTPException(
            status_code=503,
            detail="Database not available. Supabase credentials not configured.",
        )
    return client


# =============================================================================
# Scheduling Locks
# =============================================================================


@lru_cache
def get_template_lock_registry() -> TemplateLockRegistry:
    """Process-wide lock registry shared by auto-schedule and quick-add."""
    return TemplateLockRegistry()


# =============================================================================
# Repository Providers
# =============================================================================


def get_class_template_repository(
    client: Client = Depends(get_supabase_client_required),
) -> ClassTemplateRepository:
    return SupabaseClassTemplateRepository(client)


def get_class_instance_repository(
    client: Client = Depends(get_supabase_client_required),
) -> ClassInstanceRepository:
    return SupabaseClassInstanceRepository(client)


# =============================================================================
# Use Case Providers
# =============================================================================


def build_auto_schedule_use_case(
    templates: ClassTemplateRepository,
    instances: ClassInstanceRepository,
    settings: Settings,
) -> AutoScheduleUseCase:
    """Wire the auto-schedule use case outside of a request (e.g. on startup)."""
    return AutoScheduleUseCase(
        template_repository=templates,
        instance_repository=instances,
        locks=get_template_lock_registry(),
        horizon_weeks=settings.schedule_horizon_weeks,
        max_workers=settings.catch_up_max_workers,
    )


def get_auto_schedule_use_case(
    templates: ClassTemplateRepository = Depends(get_class_template_repository),
    instances: ClassInstanceRepository = Depends(get_class_instance_repository),
    settings: Settings = Depends(get_settings),
) -> AutoScheduleUseCase:
    return build_auto_schedule_use_case(templates, instances, settings)


def get_quick_add_use_case(
    instances: ClassInstanceRepository = Depends(get_class_instance_repository),
) -> QuickAddUseCase:
    return QuickAddUseCase(
        instance_repository=instances,
        locks=get_template_lock_registry(),
    )
