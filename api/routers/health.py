"""
Health check router.

Liveness plus a readiness probe that confirms both scheduler tables answer.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from backend.settings import Settings, get_settings
from infrastructure.db.class_instance_repository import SupabaseClassInstanceRepository
from infrastructure.db.class_template_repository import SupabaseClassTemplateRepository

logger = logging.getLogger(__name__)

SERVICE_NAME = "class-scheduler"

# Tables the scheduler reads and writes
SCHEDULER_TABLES = (
    SupabaseClassTemplateRepository.TABLE,
    SupabaseClassInstanceRepository.TABLE,
)

router = APIRouter(
    tags=["Health"],
)


@router.get("/health")
def health():
    """Liveness: the process is up."""
    return {"status": "ok", "service": SERVICE_NAME}


@router.get("/health/ready")
def health_ready(settings: Settings = Depends(get_settings)):
    """
    Readiness: every scheduler table can be queried.

    Each table is reported separately as ok, unavailable or not_configured.
    Returns 503 if any table is unavailable.
    """
    if not settings.supabase_configured:
        checks = {table: "not_configured" for table in SCHEDULER_TABLES}
        return {"status": "ready", "service": SERVICE_NAME, "checks": checks}

    from supabase import create_client

    checks = {}
    try:
        client = create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logger.warning("Readiness check could not create Supabase client: %s", e)
        client = None

    for table in SCHEDULER_TABLES:
        if client is None:
            checks[table] = "unavailable"
            continue
        try:
            client.table(table).select("id").limit(1).execute()
            checks[table] = "ok"
        except Exception as e:
            logger.warning("Readiness check failed for %s: %s", table, e)
            checks[table] = "unavailable"

    if any(state != "ok" for state in checks.values()):
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "service": SERVICE_NAME, "checks": checks},
        )
    return {"status": "ready", "service": SERVICE_NAME, "checks": checks}
