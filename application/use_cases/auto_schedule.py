"""Use case: Auto-schedule class instances from recurring templates.

Every template carries a watermark (``last_scheduled_date``). A catch-up run
materializes each missing weekly occurrence between the watermark and the
forward horizon, then advances the watermark. Runs are idempotent: the
watermark only moves after all writes for a template succeeded, and every
write is preceded by an existence check, so a retried window never produces
duplicates.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import List, Optional

from application.errors import (
    DuplicateOccurrence,
    SchedulingError,
    StoreReadFailed,
    StoreWriteFailed,
    TemplateNotFound,
)
from application.models import ClassInstance, ClassStatus, ClassTemplate, CreationSource
from application.ports.class_instance_repository import ClassInstanceRepository
from application.ports.class_template_repository import ClassTemplateRepository
from backend.observability import SchedulerMetrics, record
from backend.services.occurrences import occurrences
from backend.services.template_locks import TemplateLockRegistry

logger = logging.getLogger(__name__)

DEFAULT_HORIZON_WEEKS = 1


class CatchUpStatus(str, Enum):
    success = "success"
    no_op = "no_op"
    failed = "failed"
    timed_out = "timed_out"


@dataclass
class TemplateCatchUpOutcome:
    """Result of one template's catch-up run."""

    template_id: str
    status: CatchUpStatus
    created: List[ClassInstance] = field(default_factory=list)
    skipped_dates: List[date] = field(default_factory=list)
    last_scheduled_date: Optional[date] = None
    error_kind: Optional[str] = None
    error: Optional[str] = None

    @property
    def created_count(self) -> int:
        return len(self.created)


@dataclass
class CatchUpReport:
    """Per-template outcomes of a catch-up over all active templates."""

    outcomes: List[TemplateCatchUpOutcome] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def total_created(self) -> int:
        return sum(o.created_count for o in self.outcomes)

    @property
    def failed(self) -> List[TemplateCatchUpOutcome]:
        return [o for o in self.outcomes if o.status == CatchUpStatus.failed]

    @property
    def timed_out(self) -> List[TemplateCatchUpOutcome]:
        return [o for o in self.outcomes if o.status == CatchUpStatus.timed_out]

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)

    def outcome_for(self, template_id: str) -> Optional[TemplateCatchUpOutcome]:
        for outcome in self.outcomes:
            if outcome.template_id == template_id:
                return outcome
        return None


@dataclass
class AutoScheduleToggle:
    """Result of switching a template's auto-schedule flag."""

    template: ClassTemplate
    catch_up: Optional[TemplateCatchUpOutcome] = None


def build_instance_from_template(template: ClassTemplate, day: date) -> ClassInstance:
    """Create the unsaved instance a template produces on ``day``."""
    return ClassInstance(
        studio_id=template.studio_id,
        title=template.class_name,
        date=day,
        start_time=template.start_time,
        end_time=template.end_time,
        duration_hours=template.duration_hours,
        status=ClassStatus.scheduled,
        creation_source=CreationSource.from_template,
        source_template_id=template.id,
    )


class AutoScheduleUseCase:
    """Orchestrates watermark-based catch-up of recurring class templates."""

    def __init__(
        self,
        template_repository: ClassTemplateRepository,
        instance_repository: ClassInstanceRepository,
        locks: Optional[TemplateLockRegistry] = None,
        horizon_weeks: int = DEFAULT_HORIZON_WEEKS,
        max_workers: int = 1,
    ) -> None:
        self._templates = template_repository
        self._instances = instance_repository
        self._locks = locks or TemplateLockRegistry()
        self._horizon_weeks = horizon_weeks
        self._max_workers = max(1, max_workers)

    # ------------------------------------------------------------------
    # Single template
    # ------------------------------------------------------------------

    def run_catch_up_for_template(
        self,
        template_id: str,
        now: date,
        horizon_weeks: Optional[int] = None,
    ) -> TemplateCatchUpOutcome:
        """Generate all missing instances of one template up to the horizon.

        Inactive templates and templates with auto-schedule switched off are
        a no-op. Store failures, a missing template and a template with
        broken invariants are reported in the outcome, never raised.

        Args:
            template_id: Template to catch up.
            now: Today's date in the studio's local calendar.
            horizon_weeks: Weeks past ``now`` to keep populated; defaults to
                the configured horizon.

        Returns:
            TemplateCatchUpOutcome with created instances and the watermark.
        """
        weeks = self._horizon_weeks if horizon_weeks is None else horizon_weeks
        with self._locks.hold(template_id):
            outcome = self._catch_up(template_id, now, weeks)
        record(
            SchedulerMetrics.catch_up_runs_total,
            attributes={"status": outcome.status.value},
        )
        return outcome

    def _catch_up(self, template_id: str, now: date, horizon_weeks: int) -> TemplateCatchUpOutcome:
        outcome = TemplateCatchUpOutcome(template_id=template_id, status=CatchUpStatus.no_op)
        try:
            template = self._load(template_id)
            outcome.last_scheduled_date = template.last_scheduled_date
            if not (template.is_active and template.auto_schedule):
                logger.debug("Template %s is not auto-scheduled, skipping", template_id)
                return outcome

            template.validate_schedule()
            window_start = max(template.last_scheduled_date or now, now)
            horizon_end = now + timedelta(weeks=horizon_weeks)
            candidates = occurrences(template, window_start, horizon_end)

            for day in candidates:
                created = self._create_if_missing(template, day)
                if created is None:
                    outcome.skipped_dates.append(day)
                else:
                    outcome.created.append(created)

            if outcome.created:
                self._advance_watermark(template, candidates[-1])
                outcome.last_scheduled_date = candidates[-1]
        except SchedulingError as e:
            logger.warning(
                "Catch-up failed for template %s after %d new instances: %s",
                template_id,
                outcome.created_count,
                e,
            )
            outcome.status = CatchUpStatus.failed
            outcome.error_kind = e.kind
            outcome.error = str(e)
            return outcome

        outcome.status = CatchUpStatus.success
        if outcome.created:
            logger.info(
                "Scheduled %d classes for template %s through %s",
                outcome.created_count,
                template_id,
                outcome.last_scheduled_date,
            )
        return outcome

    def _load(self, template_id: str) -> ClassTemplate:
        try:
            template = self._templates.get(template_id)
        except Exception as e:
            raise StoreReadFailed(f"Could not load template {template_id}: {e}") from e
        if template is None:
            raise TemplateNotFound(template_id)
        return template

    def _create_if_missing(self, template: ClassTemplate, day: date) -> Optional[ClassInstance]:
        """Insert the template's instance for ``day`` unless one exists.

        Returns:
            The created instance, or None if the date was already taken.
        """
        try:
            taken = self._instances.exists(template.id, day)
        except Exception as e:
            raise StoreReadFailed(
                f"Could not check template {template.id} on {day.isoformat()}: {e}"
            ) from e
        if taken:
            logger.debug("Template %s already scheduled on %s", template.id, day)
            record(
                SchedulerMetrics.duplicate_occurrences_total,
                attributes={"path": "auto_schedule"},
            )
            return None

        try:
            created = self._instances.create(build_instance_from_template(template, day))
        except DuplicateOccurrence:
            # Another writer inserted the pair between our check and insert
            logger.debug("Template %s was scheduled concurrently on %s", template.id, day)
            record(
                SchedulerMetrics.duplicate_occurrences_total,
                attributes={"path": "auto_schedule"},
            )
            return None
        except SchedulingError:
            raise
        except Exception as e:
            raise StoreWriteFailed(
                f"Could not create class for template {template.id} on {day.isoformat()}: {e}"
            ) from e

        record(
            SchedulerMetrics.class_instances_created_total,
            attributes={"creation_source": CreationSource.from_template.value},
        )
        return created

    def _advance_watermark(self, template: ClassTemplate, latest: date) -> None:
        try:
            self._templates.set_last_scheduled_date(template.id, latest)
        except Exception as e:
            raise StoreWriteFailed(
                f"Could not advance watermark of template {template.id} to {latest}: {e}"
            ) from e

    # ------------------------------------------------------------------
    # All templates
    # ------------------------------------------------------------------

    def run_catch_up_for_all_active_templates(
        self,
        now: date,
        horizon_weeks: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
    ) -> CatchUpReport:
        """Catch up every active, auto-scheduled template independently.

        One template's failure never stops the others. Templates not reached
        before ``timeout_seconds`` elapse are reported as timed out; they are
        safe to retry on the next run.

        Raises:
            StoreReadFailed: If the active templates cannot be listed.
        """
        start = time.monotonic()
        try:
            templates = self._templates.list_active()
        except Exception as e:
            raise StoreReadFailed(f"Could not list active templates: {e}") from e

        template_ids = [t.id for t in templates if t.is_active and t.auto_schedule]
        if self._max_workers > 1 and len(template_ids) > 1:
            outcomes = self._run_pooled(template_ids, now, horizon_weeks, timeout_seconds)
        else:
            outcomes = self._run_sequential(template_ids, now, horizon_weeks, timeout_seconds)

        report = CatchUpReport(
            outcomes=outcomes,
            duration_seconds=round(time.monotonic() - start, 2),
        )
        logger.info(
            "Catch-up over %d templates created %d classes (%d failed, %d timed out)",
            len(template_ids),
            report.total_created,
            len(report.failed),
            len(report.timed_out),
        )
        return report

    def _run_sequential(
        self,
        template_ids: List[str],
        now: date,
        horizon_weeks: Optional[int],
        timeout_seconds: Optional[float],
    ) -> List[TemplateCatchUpOutcome]:
        deadline = None if timeout_seconds is None else time.monotonic() + timeout_seconds
        outcomes = []
        for template_id in template_ids:
            if deadline is not None and time.monotonic() >= deadline:
                outcomes.append(_timed_out(template_id))
                continue
            outcomes.append(self._run_isolated(template_id, now, horizon_weeks))
        return outcomes

    def _run_pooled(
        self,
        template_ids: List[str],
        now: date,
        horizon_weeks: Optional[int],
        timeout_seconds: Optional[float],
    ) -> List[TemplateCatchUpOutcome]:
        executor = ThreadPoolExecutor(
            max_workers=self._max_workers,
            thread_name_prefix="catch-up",
        )
        futures = [
            executor.submit(self._run_isolated, template_id, now, horizon_weeks)
            for template_id in template_ids
        ]
        done, _ = wait(futures, timeout=timeout_seconds)
        # Runs still in flight finish in the background; they are idempotent
        executor.shutdown(wait=False, cancel_futures=True)
        return [
            future.result() if future in done else _timed_out(template_id)
            for template_id, future in zip(template_ids, futures)
        ]

    def _run_isolated(
        self,
        template_id: str,
        now: date,
        horizon_weeks: Optional[int],
    ) -> TemplateCatchUpOutcome:
        try:
            return self.run_catch_up_for_template(template_id, now, horizon_weeks)
        except Exception as e:
            logger.exception("Unexpected error catching up template %s", template_id)
            return TemplateCatchUpOutcome(
                template_id=template_id,
                status=CatchUpStatus.failed,
                error_kind="unexpected_error",
                error=str(e),
            )

    # ------------------------------------------------------------------
    # Toggle
    # ------------------------------------------------------------------

    def set_auto_schedule(
        self,
        template_id: str,
        enabled: bool,
        now: date,
        horizon_weeks: Optional[int] = None,
    ) -> AutoScheduleToggle:
        """Switch auto-scheduling for a template.

        Turning it on runs the template's catch-up immediately so the
        schedule reflects the change right away. Turning it off keeps every
        instance already generated.

        Raises:
            TemplateNotFound: If the template does not exist.
            StoreReadFailed: If the template cannot be loaded.
            StoreWriteFailed: If the flag cannot be saved.
        """
        with self._locks.hold(template_id):
            template = self._load(template_id)
            was_enabled = template.auto_schedule
            if was_enabled != enabled:
                try:
                    template = self._templates.set_auto_schedule(template_id, enabled)
                except Exception as e:
                    raise StoreWriteFailed(
                        f"Could not update auto-schedule of template {template_id}: {e}"
                    ) from e
                logger.info(
                    "Auto-schedule %s for template %s",
                    "enabled" if enabled else "disabled",
                    template_id,
                )

        if not enabled or was_enabled:
            return AutoScheduleToggle(template=template)

        outcome = self.run_catch_up_for_template(template_id, now, horizon_weeks)
        if outcome.last_scheduled_date != template.last_scheduled_date:
            template = template.model_copy(
                update={"last_scheduled_date": outcome.last_scheduled_date}
            )
        return AutoScheduleToggle(template=template, catch_up=outcome)


def _timed_out(template_id: str) -> TemplateCatchUpOutcome:
    return TemplateCatchUpOutcome(
        template_id=template_id,
        status=CatchUpStatus.timed_out,
        error="Not yet caught up before the timeout",
    )
