"""Unit tests for QuickAddUseCase."""

import threading
from datetime import time, timedelta
from unittest.mock import MagicMock

import pytest

from application.errors import (
    DuplicateOccurrence,
    InvalidOverride,
    InvalidTemplate,
    StoreReadFailed,
    StoreWriteFailed,
)
from application.models import ClassStatus, CreationSource
from application.use_cases.auto_schedule import CatchUpStatus
from application.use_cases.quick_add import QuickAddUseCase, build_override_instance
from backend.services.template_locks import TemplateLockRegistry
from tests.fixtures import MONDAY, make_template


class TestBuildOverrideInstance:
    @pytest.mark.unit
    def test_overrides_start_and_duration(self):
        template = make_template(id="t1")

        instance = build_override_instance(
            template, MONDAY, start_time_override=time(20, 0), duration_override=1.0
        )

        assert instance.start_time == time(20, 0)
        assert instance.end_time == time(21, 0)
        assert instance.duration_hours == 1.0
        assert instance.creation_source == CreationSource.manual_override
        assert instance.source_template_id == "t1"

    @pytest.mark.unit
    def test_start_override_keeps_template_duration(self):
        instance = build_override_instance(make_template(id="t1"), MONDAY, start_time_override=time(7, 30))

        assert instance.end_time == time(8, 45)
        assert instance.duration_hours == 1.25

    @pytest.mark.unit
    def test_duration_override_keeps_template_start(self):
        instance = build_override_instance(make_template(id="t1"), MONDAY, duration_override=1.5)

        assert instance.start_time == time(18, 0)
        assert instance.end_time == time(19, 30)

    @pytest.mark.unit
    def test_no_overrides_matches_template(self):
        instance = build_override_instance(make_template(id="t1"), MONDAY)

        assert (instance.start_time, instance.end_time) == (time(18, 0), time(19, 15))
        assert instance.title == "Vinyasa Flow"

    @pytest.mark.unit
    def test_title_override(self):
        instance = build_override_instance(make_template(id="t1"), MONDAY, title_override="Sub: Yin")

        assert instance.title == "Sub: Yin"

    @pytest.mark.unit
    def test_past_midnight_rejected(self):
        with pytest.raises(InvalidOverride):
            build_override_instance(
                make_template(id="t1"), MONDAY, start_time_override=time(23, 30), duration_override=1.0
            )

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "duration", [0, -1.0, 24.5, 1e9, float("nan"), float("inf")]
    )
    def test_out_of_range_duration_rejected(self, duration):
        with pytest.raises(InvalidOverride):
            build_override_instance(make_template(id="t1"), MONDAY, duration_override=duration)


class TestResolve:
    @pytest.mark.unit
    def test_creates_override_and_leaves_template_alone(self, quick_add, template_repo, instance_repo):
        template = template_repo.add(make_template())
        before = template.model_copy()

        instance = quick_add.resolve(
            template, MONDAY, start_time_override=time(20, 0), duration_override=1.0
        )

        assert instance.id is not None
        assert (instance.start_time, instance.end_time) == (time(20, 0), time(21, 0))
        assert instance.creation_source == CreationSource.manual_override
        assert instance.status == ClassStatus.scheduled
        assert template == before
        assert template_repo.get(template.id) == before
        assert template_repo.update_calls == 0
        assert instance_repo.instances == [instance]

    @pytest.mark.unit
    def test_any_weekday_accepted(self, quick_add, template_repo):
        template = template_repo.add(make_template())
        thursday = MONDAY + timedelta(days=3)

        instance = quick_add.resolve(template, thursday)

        assert instance.date == thursday

    @pytest.mark.unit
    def test_rejects_date_already_auto_scheduled(self, auto_schedule, quick_add, template_repo, instance_repo):
        template = template_repo.add(make_template())
        auto_schedule.run_catch_up_for_template(template.id, MONDAY)

        with pytest.raises(DuplicateOccurrence) as exc_info:
            quick_add.resolve(template, MONDAY + timedelta(weeks=1), start_time_override=time(20, 0))

        assert exc_info.value.template_id == template.id
        assert exc_info.value.date == MONDAY + timedelta(weeks=1)
        assert len(instance_repo.instances) == 5

    @pytest.mark.unit
    def test_rejects_second_quick_add_same_date(self, quick_add, template_repo):
        template = template_repo.add(make_template())
        quick_add.resolve(template, MONDAY)

        with pytest.raises(DuplicateOccurrence):
            quick_add.resolve(template, MONDAY, duration_override=2.0)

    @pytest.mark.unit
    def test_engine_skips_quick_added_date(self, auto_schedule, quick_add, template_repo, instance_repo):
        template = template_repo.add(make_template())
        quick_add.resolve(template, MONDAY, start_time_override=time(20, 0))

        outcome = auto_schedule.run_catch_up_for_template(template.id, MONDAY)

        assert outcome.skipped_dates == [MONDAY]
        assert outcome.created_count == 4
        on_monday = [i for i in instance_repo.instances if i.date == MONDAY]
        assert len(on_monday) == 1
        assert on_monday[0].start_time == time(20, 0)

    @pytest.mark.unit
    def test_store_uniqueness_rejection_surfaces(self, template_repo):
        template = template_repo.add(make_template())
        repo = MagicMock()
        repo.exists.return_value = False
        repo.create.side_effect = DuplicateOccurrence(template.id, MONDAY)

        with pytest.raises(DuplicateOccurrence):
            QuickAddUseCase(repo).resolve(template, MONDAY)

    @pytest.mark.unit
    def test_huge_duration_is_invalid_override(self, quick_add, template_repo, instance_repo):
        template = template_repo.add(make_template())

        with pytest.raises(InvalidOverride):
            quick_add.resolve(template, MONDAY, duration_override=1e9)
        assert instance_repo.instances == []

    @pytest.mark.unit
    def test_unsaved_template_rejected(self, quick_add):
        with pytest.raises(InvalidTemplate):
            quick_add.resolve(make_template(), MONDAY)

    @pytest.mark.unit
    def test_inconsistent_template_rejected(self, quick_add, template_repo, instance_repo):
        template = template_repo.add(make_template(end_time=time(17, 0)))

        with pytest.raises(InvalidTemplate):
            quick_add.resolve(template, MONDAY)
        assert instance_repo.instances == []

    @pytest.mark.unit
    def test_read_failure_raises(self, quick_add, template_repo, instance_repo):
        template = template_repo.add(make_template())
        instance_repo.fail_exists = True

        with pytest.raises(StoreReadFailed):
            quick_add.resolve(template, MONDAY)

    @pytest.mark.unit
    def test_write_failure_raises(self, quick_add, template_repo, instance_repo):
        template = template_repo.add(make_template())
        instance_repo.fail_create_for = {template.id}

        with pytest.raises(StoreWriteFailed):
            quick_add.resolve(template, MONDAY)


class TestConcurrentQuickAdd:
    def _race(self, auto_schedule, quick_add, template):
        barrier = threading.Barrier(2)
        results = {}

        def run_engine():
            barrier.wait()
            results["engine"] = auto_schedule.run_catch_up_for_template(template.id, MONDAY)

        def run_quick_add():
            barrier.wait()
            try:
                results["quick_add"] = quick_add.resolve(
                    template, MONDAY, start_time_override=time(20, 0)
                )
            except DuplicateOccurrence as e:
                results["quick_add"] = e

        threads = [threading.Thread(target=run_engine), threading.Thread(target=run_quick_add)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)
        return results

    def _assert_single_winner(self, results, instance_repo):
        on_monday = [i for i in instance_repo.instances if i.date == MONDAY]
        assert len(on_monday) == 1
        assert results["engine"].status == CatchUpStatus.success
        if isinstance(results["quick_add"], DuplicateOccurrence):
            assert on_monday[0].creation_source == CreationSource.from_template
        else:
            assert on_monday[0].creation_source == CreationSource.manual_override
            assert MONDAY in results["engine"].skipped_dates

    @pytest.mark.unit
    def test_shared_locks_allow_one_instance(self, auto_schedule, quick_add, template_repo, instance_repo):
        template = template_repo.add(make_template())
        instance_repo.exists_delay = 0.01

        results = self._race(auto_schedule, quick_add, template)

        self._assert_single_winner(results, instance_repo)

    @pytest.mark.unit
    def test_store_constraint_guards_without_shared_locks(self, auto_schedule, template_repo, instance_repo):
        template = template_repo.add(make_template())
        instance_repo.exists_delay = 0.01
        separate = QuickAddUseCase(instance_repo, locks=TemplateLockRegistry())

        results = self._race(auto_schedule, separate, template)

        self._assert_single_winner(results, instance_repo)
