"""Daily recurrence rules: which tasks have expired and which instances are due.

These helpers are pure; the service decides when to call the store.
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import on_day, parse_iso_date, to_date_key
from ..core.enums import RecurringPattern, TaskCategory, TaskStatus
from .model import NewTask, Task


def effective_completion(task: Task) -> datetime:
    return task.completed_at or task.updated_at or task.created_at


def is_expired(task: Task, today_key: str) -> bool:
    """Done tasks stay on the board for the day they were completed only.

    Templates never expire.
    """
    if task.is_template or task.status != TaskStatus.DONE:
        return False
    return to_date_key(effective_completion(task)) < today_key


def split_expired(tasks: Iterable[Task], today_key: str) -> tuple[list[Task], list[Task]]:
    """Return ``(live, expired)`` preserving input order."""
    live: list[Task] = []
    expired: list[Task] = []
    for t in tasks:
        (expired if is_expired(t, today_key) else live).append(t)
    return live, expired


def is_daily_setting(is_recurring: bool, recurring_pattern: Optional[RecurringPattern]) -> bool:
    return bool(is_recurring) and recurring_pattern == RecurringPattern.DAILY


def derive_category(*, is_recurring: bool, recurring_pattern: Optional[RecurringPattern]) -> TaskCategory:
    if is_daily_setting(is_recurring, recurring_pattern):
        return TaskCategory.RECURRING_DAILY
    return TaskCategory.AD_HOC


def instance_id(template_id: str, date_key: str) -> str:
    """Deterministic id so two callers materializing the same day collide."""
    return f"{template_id}_{date_key}"


def daily_templates(tasks: Iterable[Task]) -> list[Task]:
    return [t for t in tasks if t.is_daily_template]


def missing_templates(tasks: Sequence[Task], today_key: str) -> list[Task]:
    """Daily templates that have no instance for ``today_key`` in ``tasks``."""
    existing = {
        t.source_recurring_task_id
        for t in tasks
        if t.source_recurring_task_id and t.recurrence_date_key == today_key
    }
    return [t for t in daily_templates(tasks) if t.task_id not in existing]


def build_instance(template: Task, *, today_key: str, now: datetime) -> NewTask:
    """Concrete task for one day, due at the template's time of day."""
    return NewTask(
        title=template.title,
        description=template.description,
        due_date=on_day(parse_iso_date(today_key), template.due_date),
        priority=template.priority,
        status=TaskStatus.TODO,
        created_by=template.created_by,
        created_at=now,
        updated_at=now,
        assigned_to=tuple(template.assigned_to),
        labels=tuple(template.labels),
        project_id=template.project_id,
        is_recurring=False,
        recurring_pattern=template.recurring_pattern,
        reminder_time=None,
        completed_at=None,
        source_recurring_task_id=template.task_id,
        recurrence_date_key=today_key,
        is_template=False,
        task_category=TaskCategory.RECURRING_DAILY,
    )
