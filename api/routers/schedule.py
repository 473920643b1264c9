"""Class scheduling endpoints.

  POST /api/schedule/catch-up                          - catch up all active templates
  POST /api/schedule/templates/{id}/catch-up           - catch up one template
  PUT  /api/schedule/templates/{id}/auto-schedule      - toggle auto-scheduling
  POST /api/schedule/templates/{id}/quick-add          - one-off class from a template
"""

import datetime as dt
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from api.deps import (
    get_auto_schedule_use_case,
    get_class_template_repository,
    get_quick_add_use_case,
    get_settings,
    get_today,
)
from application.errors import (
    DuplicateOccurrence,
    InvalidOverride,
    InvalidTemplate,
    SchedulingError,
    TemplateNotFound,
)
from application.ports.class_template_repository import ClassTemplateRepository
from application.use_cases.auto_schedule import (
    AutoScheduleUseCase,
    CatchUpReport,
    TemplateCatchUpOutcome,
)
from application.use_cases.quick_add import MAX_DURATION_HOURS, QuickAddUseCase
from backend.settings import Settings

router = APIRouter(prefix="/api/schedule", tags=["schedule"])
logger = logging.getLogger(__name__)


# =============================================================================
# Request Models
# =============================================================================


class AutoScheduleRequest(BaseModel):
    enabled: bool


class QuickAddRequest(BaseModel):
    date: dt.date
    start_time: Optional[dt.time] = None
    duration_hours: Optional[float] = Field(None, gt=0, le=MAX_DURATION_HOURS)
    title: Optional[str] = Field(None, min_length=1, max_length=200)


# =============================================================================
# Serialization
# =============================================================================


def _outcome_to_dict(outcome: TemplateCatchUpOutcome) -> Dict[str, Any]:
    return {
        "template_id": outcome.template_id,
        "status": outcome.status.value,
        "created": [i.model_dump(mode="json") for i in outcome.created],
        "skipped_dates": [d.isoformat() for d in outcome.skipped_dates],
        "last_scheduled_date": (
            outcome.last_scheduled_date.isoformat() if outcome.last_scheduled_date else None
        ),
        "error_kind": outcome.error_kind,
        "error": outcome.error,
    }


def _report_to_dict(report: CatchUpReport) -> Dict[str, Any]:
    return {
        "outcomes": [_outcome_to_dict(o) for o in report.outcomes],
        "total_created": report.total_created,
        "failed": len(report.failed),
        "timed_out": len(report.timed_out),
        "duration_seconds": report.duration_seconds,
    }


def _http_error(error: SchedulingError) -> HTTPException:
    """Map a scheduling error onto the HTTP status the client should see."""
    if isinstance(error, TemplateNotFound):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, DuplicateOccurrence):
        return HTTPException(
            status_code=409,
            detail={
                "code": error.kind,
                "message": "This class is already scheduled for this date.",
                "template_id": error.template_id,
                "date": error.date.isoformat(),
            },
        )
    if isinstance(error, (InvalidTemplate, InvalidOverride)):
        return HTTPException(status_code=422, detail={"code": error.kind, "message": str(error)})
    logger.warning("Scheduling store error: %s", error)
    return HTTPException(status_code=503, detail={"code": error.kind, "message": str(error)})


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/catch-up")
def catch_up_all(
    today: dt.date = Depends(get_today),
    settings: Settings = Depends(get_settings),
    use_case: AutoScheduleUseCase = Depends(get_auto_schedule_use_case),
):
    """Catch up every active, auto-scheduled template.

    Always 200 when the template list could be read; per-template failures
    are reported in the outcome list.
    """
    try:
        report = use_case.run_catch_up_for_all_active_templates(
            today,
            timeout_seconds=settings.catch_up_timeout_seconds,
        )
    except SchedulingError as e:
        raise _http_error(e)
    return _report_to_dict(report)


@router.post("/templates/{template_id}/catch-up")
def catch_up_template(
    template_id: str,
    today: dt.date = Depends(get_today),
    use_case: AutoScheduleUseCase = Depends(get_auto_schedule_use_case),
):
    """Catch up a single template."""
    return _outcome_to_dict(use_case.run_catch_up_for_template(template_id, today))


@router.put("/templates/{template_id}/auto-schedule")
def set_auto_schedule(
    template_id: str,
    body: AutoScheduleRequest,
    today: dt.date = Depends(get_today),
    use_case: AutoScheduleUseCase = Depends(get_auto_schedule_use_case),
):
    """Enable or disable auto-scheduling.

    Enabling runs the catch-up before responding, so the returned template
    and outcome already include the newly scheduled classes.
    """
    try:
        toggle = use_case.set_auto_schedule(template_id, body.enabled, today)
    except SchedulingError as e:
        raise _http_error(e)
    return {
        "template": toggle.template.model_dump(mode="json"),
        "catch_up": _outcome_to_dict(toggle.catch_up) if toggle.catch_up else None,
    }


@router.post("/templates/{template_id}/quick-add", status_code=201)
def quick_add(
    template_id: str,
    body: QuickAddRequest,
    templates: ClassTemplateRepository = Depends(get_class_template_repository),
    use_case: QuickAddUseCase = Depends(get_quick_add_use_case),
):
    """Create one manual-override class from a template on any date."""
    try:
        template = templates.get(template_id)
    except Exception:
        logger.exception("Failed to load template %s for quick-add", template_id)
        raise HTTPException(status_code=503, detail="Could not load class template")
    if template is None:
        raise HTTPException(status_code=404, detail=f"Class template {template_id} not found")

    try:
        instance = use_case.resolve(
            template,
            body.date,
            start_time_override=body.start_time,
            duration_override=body.duration_hours,
            title_override=body.title,
        )
    except SchedulingError as e:
        raise _http_error(e)
    return instance.model_dump(mode="json")
