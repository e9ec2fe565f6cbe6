from __future__ import annotations

import logging
from datetime import datetime

import pytest

from backoffice_tasks.core.enums import RecurringPattern, Role, TaskCategory, TaskStatus
from backoffice_tasks.core.exceptions import ValidationError
from backoffice_tasks.tasks.model import AuthenticatedViewer, TaskFilter
from backoffice_tasks.tasks.recurrence import is_expired
from backoffice_tasks.tasks.service import TaskService

NOW = datetime(2026, 3, 10, 14, 0)
TODAY_KEY = "2026-03-10"
YESTERDAY = datetime(2026, 3, 9, 16, 30)


def daily_template(make_task, task_id="tpl-1", **overrides):
    fields = dict(
        title="Check attendance sheet",
        description="Every morning",
        due_date=datetime(2026, 3, 1, 9, 0),
        is_template=True,
        is_recurring=True,
        recurring_pattern=RecurringPattern.DAILY,
        task_category=TaskCategory.RECURRING_DAILY,
        assigned_to=("u1", "u3"),
        labels=("ops",),
        project_id="proj-1",
        created_by="admin-1",
    )
    fields.update(overrides)
    return make_task(task_id, **fields)


class StaleSnapshot:
    """Store whose reads predate another reader's insert."""

    def __init__(self, inner):
        self._inner = inner

    def list_all(self):
        return [t for t in self._inner.list_all() if t.source_recurring_task_id is None]

    def __getattr__(self, name):
        return getattr(self._inner, name)


def instances_for(store, template_id, date_key):
    return [
        t
        for t in store.list_all()
        if t.source_recurring_task_id == template_id and t.recurrence_date_key == date_key
    ]


def test_materializes_todays_instance_from_daily_template(new_store, make_task):
    store = new_store(daily_template(make_task))
    svc = TaskService(store)

    tasks = svc.list_tasks(now=NOW)

    assert len(tasks) == 1
    inst = tasks[0]
    assert inst.task_id == "tpl-1_2026-03-10"
    assert inst.due_date == datetime(2026, 3, 10, 9, 0)
    assert inst.status == TaskStatus.TODO
    assert inst.is_template is False
    assert inst.is_recurring is False
    assert inst.recurrence_date_key == TODAY_KEY
    assert inst.source_recurring_task_id == "tpl-1"
    assert inst.task_category == TaskCategory.RECURRING_DAILY
    assert inst.completed_at is None
    assert inst.created_at == NOW and inst.updated_at == NOW


def test_instance_inherits_template_fields(new_store, make_task):
    store = new_store(daily_template(make_task))

    inst = TaskService(store).list_tasks(now=NOW)[0]

    assert inst.title == "Check attendance sheet"
    assert inst.description == "Every morning"
    assert inst.assigned_to == ("u1", "u3")
    assert inst.labels == ("ops",)
    assert inst.project_id == "proj-1"
    assert inst.created_by == "admin-1"
    assert inst.recurring_pattern == RecurringPattern.DAILY


def test_repeated_reads_keep_one_instance_per_template_and_day(new_store, make_task):
    store = new_store(daily_template(make_task))
    svc = TaskService(store)

    for _ in range(3):
        svc.list_tasks(now=NOW)

    assert len(instances_for(store, "tpl-1", TODAY_KEY)) == 1
    assert store.created == ["tpl-1_2026-03-10"]


def test_next_day_gets_its_own_instance(new_store, make_task):
    store = new_store(daily_template(make_task))
    svc = TaskService(store)

    svc.list_tasks(now=NOW)
    svc.list_tasks(now=datetime(2026, 3, 11, 7, 0))

    assert len(instances_for(store, "tpl-1", "2026-03-10")) == 1
    assert len(instances_for(store, "tpl-1", "2026-03-11")) == 1


def test_second_read_without_changes_is_identical_and_write_free(new_store, make_task):
    store = new_store(daily_template(make_task), make_task("a"), make_task("b", created_at=datetime(2026, 3, 2)))
    svc = TaskService(store)

    first = svc.list_tasks(now=NOW)
    store.reset_calls()
    second = svc.list_tasks(now=NOW)

    assert first == second
    assert store.created == []
    assert store.deleted_batches == []


def test_expired_task_is_purged_for_system_caller(new_store, make_task):
    store = new_store(make_task("old", status=TaskStatus.DONE, completed_at=YESTERDAY), make_task("open"))

    tasks = TaskService(store).list_tasks(now=NOW)

    assert [t.task_id for t in tasks] == ["open"]
    assert store.get("old") is None
    assert store.deleted_batches == [["old"]]


def test_expired_task_is_purged_for_admin(new_store, make_task, admin):
    store = new_store(make_task("old", status=TaskStatus.DONE, completed_at=YESTERDAY))

    tasks = TaskService(store).list_tasks(TaskFilter(viewer=admin), now=NOW)

    assert tasks == []
    assert store.get("old") is None


def test_non_admin_hides_expired_task_but_does_not_delete_it(new_store, make_task):
    store = new_store(make_task("old", status=TaskStatus.DONE, completed_at=YESTERDAY, assigned_to=("u1",)))
    viewer = AuthenticatedViewer(user_id="u1", role=Role.TRAINER)

    tasks = TaskService(store).list_tasks(TaskFilter(viewer=viewer), now=NOW)

    assert tasks == []
    assert store.get("old") is not None
    assert store.deleted_batches == []


def test_task_completed_today_stays_visible(new_store, make_task):
    store = new_store(make_task("fresh", status=TaskStatus.DONE, completed_at=datetime(2026, 3, 10, 0, 5)))

    tasks = TaskService(store).list_tasks(now=NOW)

    assert [t.task_id for t in tasks] == ["fresh"]
    assert store.deleted_batches == []


def test_expiry_falls_back_to_updated_at_when_completion_time_missing(new_store, make_task):
    store = new_store(make_task("old", status=TaskStatus.DONE, completed_at=None, updated_at=YESTERDAY))

    assert TaskService(store).list_tasks(now=NOW) == []
    assert store.get("old") is None


def test_failed_purge_is_logged_and_listing_continues(new_store, make_task, caplog):
    store = new_store(make_task("old", status=TaskStatus.DONE, completed_at=YESTERDAY), make_task("open"))
    store.fail_delete_many = True

    with caplog.at_level(logging.ERROR, logger="backoffice_tasks.tasks.service"):
        tasks = TaskService(store).list_tasks(now=NOW)

    assert [t.task_id for t in tasks] == ["open"]
    assert store.get("old") is not None
    assert "Failed to purge 1 expired tasks" in caplog.text


def test_materialization_failure_propagates(new_store, make_task):
    store = new_store(daily_template(make_task))
    store.fail_create = True

    with pytest.raises(ConnectionError):
        TaskService(store).list_tasks(now=NOW)


def test_instance_created_by_concurrent_reader_is_reused(new_store, make_task):
    store = new_store(daily_template(make_task))
    other = TaskService(store)
    other.list_tasks(now=NOW)
    store.reset_calls()

    tasks = TaskService(StaleSnapshot(store)).list_tasks(now=NOW)

    assert [t.task_id for t in tasks] == ["tpl-1_2026-03-10"]
    assert store.created == []
    assert len(instances_for(store, "tpl-1", TODAY_KEY)) == 1


def test_weekly_templates_are_not_materialized(new_store, make_task):
    store = new_store(daily_template(make_task, recurring_pattern=RecurringPattern.WEEKLY))

    assert TaskService(store).list_tasks(now=NOW) == []
    assert store.created == []


def test_templates_listed_only_on_request(new_store, make_task):
    store = new_store(daily_template(make_task))
    svc = TaskService(store)

    with_templates = svc.list_tasks(TaskFilter(include_templates=True), now=NOW)

    assert {t.task_id for t in with_templates} == {"tpl-1", "tpl-1_2026-03-10"}


def test_results_are_newest_first(new_store, make_task):
    store = new_store(
        make_task("older", created_at=datetime(2026, 3, 1)),
        make_task("newer", created_at=datetime(2026, 3, 5)),
        daily_template(make_task, created_at=datetime(2026, 2, 1)),
    )

    tasks = TaskService(store).list_tasks(now=NOW)

    assert [t.task_id for t in tasks] == ["tpl-1_2026-03-10", "newer", "older"]


def test_instance_stored_under_another_id_is_an_error(new_store, make_task):
    store = new_store(
        daily_template(make_task),
        make_task("imported-copy", source_recurring_task_id="tpl-1", recurrence_date_key=TODAY_KEY),
    )

    with pytest.raises(RuntimeError):
        TaskService(StaleSnapshot(store)).list_tasks(now=NOW)


def test_template_is_never_purged(new_store, make_task, admin):
    store = new_store(daily_template(make_task, status=TaskStatus.DONE, completed_at=YESTERDAY))

    tasks = TaskService(store).list_tasks(TaskFilter(viewer=admin), now=NOW)

    assert store.get("tpl-1") is not None
    assert store.deleted_batches == []
    assert [t.task_id for t in tasks] == ["tpl-1_2026-03-10"]


def test_template_status_cannot_be_changed(new_store, make_task, admin):
    store = new_store(daily_template(make_task))
    svc = TaskService(store)

    with pytest.raises(ValidationError):
        svc.complete_task(admin, "tpl-1", now=datetime(2026, 3, 10, 10, 0))
    with pytest.raises(ValidationError):
        svc.update_task(admin, "tpl-1", {"status": "done"}, now=datetime(2026, 3, 10, 10, 0))

    svc.list_tasks(now=datetime(2026, 3, 11, 8, 0))

    assert store.get("tpl-1").status == TaskStatus.TODO
    assert len(instances_for(store, "tpl-1", "2026-03-11")) == 1


def test_expired_instance_for_today_is_neither_returned_nor_recreated(new_store, make_task):
    done_early = make_task(
        "tpl-1_2026-03-10",
        status=TaskStatus.DONE,
        completed_at=datetime(2026, 3, 9, 23, 0),
        source_recurring_task_id="tpl-1",
        recurrence_date_key=TODAY_KEY,
        task_category=TaskCategory.RECURRING_DAILY,
        assigned_to=("u1",),
    )
    store = new_store(daily_template(make_task), done_early)
    viewer = AuthenticatedViewer(user_id="u1", role=Role.TRAINER)

    tasks = TaskService(store).list_tasks(TaskFilter(viewer=viewer), now=NOW)

    assert not any(is_expired(t, TODAY_KEY) for t in tasks)
    assert tasks == []
    assert store.created == []
    assert store.get("tpl-1_2026-03-10").status == TaskStatus.DONE


def test_expired_instance_read_back_after_collision_is_skipped(new_store, make_task):
    done_early = make_task(
        "tpl-1_2026-03-10",
        status=TaskStatus.DONE,
        completed_at=datetime(2026, 3, 9, 23, 0),
        source_recurring_task_id="tpl-1",
        recurrence_date_key=TODAY_KEY,
    )
    store = new_store(daily_template(make_task), done_early)

    tasks = TaskService(StaleSnapshot(store)).list_tasks(now=NOW)

    assert tasks == []
    assert store.created == []
