from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable

from ..common.datetime_utils import shift_date_key, to_date_key
from ..core.constants import UPCOMING_WINDOW_DAYS
from ..core.enums import TaskStatus
from .model import AuthenticatedViewer, SystemContext, Task, TaskFilter, Viewer


def can_cleanup(viewer: Viewer) -> bool:
    """Only trusted callers and admins may purge expired tasks from the store."""
    if isinstance(viewer, SystemContext):
        return True
    return viewer.is_admin


def is_visible(task: Task, viewer: Viewer) -> bool:
    if isinstance(viewer, SystemContext):
        return True
    if viewer.is_admin:
        return True
    return viewer.user_id in task.assigned_to or viewer.user_id == task.created_by


def viewer_id(viewer: Viewer) -> str | None:
    return viewer.user_id if isinstance(viewer, AuthenticatedViewer) else None


def _predicates(flt: TaskFilter, now: datetime) -> list[Callable[[Task], bool]]:
    today_key = to_date_key(now)
    preds: list[Callable[[Task], bool]] = []

    if flt.status:
        preds.append(lambda t: t.status in flt.status)
    if flt.priority:
        preds.append(lambda t: t.priority in flt.priority)
    if flt.assigned_to:
        preds.append(lambda t: not flt.assigned_to.isdisjoint(t.assigned_to))
    if flt.project_id:
        preds.append(lambda t: t.project_id == flt.project_id)
    if flt.labels:
        preds.append(lambda t: not flt.labels.isdisjoint(t.labels))
    if flt.due_from is not None:
        from_key = to_date_key(flt.due_from)
        preds.append(lambda t: to_date_key(t.due_date) >= from_key)
    if flt.due_to is not None:
        to_key = to_date_key(flt.due_to)
        preds.append(lambda t: to_date_key(t.due_date) <= to_key)
    if flt.today:
        preds.append(lambda t: to_date_key(t.due_date) == today_key)
    if flt.overdue:
        preds.append(lambda t: t.status != TaskStatus.DONE and t.due_date < now)
    if flt.next_7_days:
        end_key = shift_date_key(today_key, days=UPCOMING_WINDOW_DAYS)
        preds.append(lambda t: today_key <= to_date_key(t.due_date) <= end_key)

    return preds


def apply_filter(tasks: Iterable[Task], flt: TaskFilter, *, now: datetime) -> list[Task]:
    """Template exclusion, then visibility, then the optional predicates."""
    out = [t for t in tasks if flt.include_templates or not t.is_template]
    out = [t for t in out if is_visible(t, flt.viewer)]

    for pred in _predicates(flt, now):
        out = [t for t in out if pred(t)]
    return out
