from __future__ import annotations

from datetime import date, datetime

from backoffice_tasks.core.enums import Role, TaskPriority, TaskStatus
from backoffice_tasks.tasks.model import SYSTEM, AuthenticatedViewer, TaskFilter
from backoffice_tasks.tasks.policy import can_cleanup, is_visible
from backoffice_tasks.tasks.service import TaskService

NOW = datetime(2026, 3, 10, 14, 0)


def ids(tasks):
    return sorted(t.task_id for t in tasks)


def test_visibility_by_assignment_and_role(new_store, make_task):
    store = new_store(make_task("only-a", assigned_to=("A",), created_by="creator"))
    svc = TaskService(store)

    as_b_trainer = svc.list_tasks(TaskFilter(viewer=AuthenticatedViewer("B", Role.TRAINER)), now=NOW)
    as_b_admin = svc.list_tasks(TaskFilter(viewer=AuthenticatedViewer("B", Role.ADMIN)), now=NOW)
    as_a = svc.list_tasks(TaskFilter(viewer=AuthenticatedViewer("A", Role.SALER)), now=NOW)

    assert as_b_trainer == []
    assert ids(as_b_admin) == ["only-a"]
    assert ids(as_a) == ["only-a"]


def test_creator_sees_unassigned_task(make_task):
    task = make_task("t", assigned_to=(), created_by="C")

    assert is_visible(task, AuthenticatedViewer("C", Role.ACCOUNTANCE))
    assert not is_visible(task, AuthenticatedViewer("D", Role.ACCOUNTANCE))
    assert is_visible(task, SYSTEM)


def test_only_system_and_admin_may_clean_up():
    assert can_cleanup(SYSTEM)
    assert can_cleanup(AuthenticatedViewer("x", Role.ADMIN))
    assert not can_cleanup(AuthenticatedViewer("x", Role.TRAINER))
    assert not can_cleanup(AuthenticatedViewer("x", Role.ADMINISTRATIVE_ASSISTANT))


def test_status_and_priority_filters_intersect(new_store, make_task):
    store = new_store(
        make_task("todo-low", status=TaskStatus.TODO, priority=TaskPriority.LOW),
        make_task("todo-high", status=TaskStatus.TODO, priority=TaskPriority.HIGH),
        make_task("prog-high", status=TaskStatus.IN_PROGRESS, priority=TaskPriority.HIGH),
        make_task("done-high", status=TaskStatus.DONE, priority=TaskPriority.HIGH, completed_at=NOW),
        make_task("done-low", status=TaskStatus.DONE, priority=TaskPriority.LOW, completed_at=NOW),
    )

    flt = TaskFilter(status=frozenset({TaskStatus.TODO}), priority=frozenset({TaskPriority.HIGH}))

    assert ids(TaskService(store).list_tasks(flt, now=NOW)) == ["todo-high"]


def test_assignee_label_and_project_filters(new_store, make_task):
    store = new_store(
        make_task("a", assigned_to=("u1", "u2"), labels=("x",), project_id="p1"),
        make_task("b", assigned_to=("u3",), labels=("y", "z"), project_id="p1"),
        make_task("c", assigned_to=("u2",), labels=(), project_id="p2"),
    )
    svc = TaskService(store)

    assert ids(svc.list_tasks(TaskFilter(assigned_to=frozenset({"u2", "u9"})), now=NOW)) == ["a", "c"]
    assert ids(svc.list_tasks(TaskFilter(labels=frozenset({"z"})), now=NOW)) == ["b"]
    assert ids(svc.list_tasks(TaskFilter(project_id="p1"), now=NOW)) == ["a", "b"]


def test_today_overdue_and_upcoming_filters(new_store, make_task):
    store = new_store(
        make_task("due-this-morning", due_date=datetime(2026, 3, 10, 9, 0)),
        make_task("due-tonight", due_date=datetime(2026, 3, 10, 20, 0)),
        make_task("due-last-week", due_date=datetime(2026, 3, 3, 9, 0)),
        make_task(
            "done-late",
            due_date=datetime(2026, 3, 3, 9, 0),
            status=TaskStatus.DONE,
            completed_at=datetime(2026, 3, 10, 8, 0),
        ),
        make_task("due-in-week", due_date=datetime(2026, 3, 17, 9, 0)),
        make_task("due-next-month", due_date=datetime(2026, 4, 10, 9, 0)),
    )
    svc = TaskService(store)

    assert ids(svc.list_tasks(TaskFilter(today=True), now=NOW)) == ["due-this-morning", "due-tonight"]
    assert ids(svc.list_tasks(TaskFilter(overdue=True), now=NOW)) == ["due-last-week", "due-this-morning"]
    assert ids(svc.list_tasks(TaskFilter(next_7_days=True), now=NOW)) == [
        "due-in-week",
        "due-this-morning",
        "due-tonight",
    ]


def test_due_window_is_inclusive_by_day(new_store, make_task):
    store = new_store(
        make_task("d1", due_date=datetime(2026, 3, 1, 23, 0)),
        make_task("d5", due_date=datetime(2026, 3, 5, 8, 0)),
        make_task("d9", due_date=datetime(2026, 3, 9, 8, 0)),
    )

    flt = TaskFilter(due_from=date(2026, 3, 1), due_to=date(2026, 3, 5))

    assert ids(TaskService(store).list_tasks(flt, now=NOW)) == ["d1", "d5"]


def test_visibility_applies_before_other_filters(new_store, make_task):
    store = new_store(
        make_task("mine", assigned_to=("u2",), priority=TaskPriority.URGENT),
        make_task("theirs", assigned_to=("u1",), priority=TaskPriority.URGENT),
    )
    viewer = AuthenticatedViewer("u2", Role.TRAINER)

    flt = TaskFilter(viewer=viewer, priority=frozenset({TaskPriority.URGENT}), assigned_to=frozenset({"u1", "u2"}))

    assert ids(TaskService(store).list_tasks(flt, now=NOW)) == ["mine"]
