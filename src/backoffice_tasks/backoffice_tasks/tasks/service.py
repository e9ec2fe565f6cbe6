from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local, to_date_key
from ..common.validators import clean_ids, optional_text, require_enum, require_non_empty
from ..core.constants import DEFAULT_BUSINESS_TIMEZONE, REPORT_COMPLETED_LIST_LIMIT, SYSTEM_USER_ID
from ..core.enums import RecurringPattern, TaskPriority, TaskStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..stats.service import StatsService
from .model import (
    AuthenticatedViewer,
    DailyReport,
    MaintenanceResult,
    NewTask,
    Task,
    TaskFilter,
    Viewer,
)
from .policy import apply_filter, can_cleanup, is_visible, viewer_id
from .recurrence import (
    build_instance,
    derive_category,
    instance_id,
    is_daily_setting,
    is_expired,
    missing_templates,
    split_expired,
)
from .repository import TaskRepository

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "due_date",
        "priority",
        "status",
        "assigned_to",
        "project_id",
        "labels",
        "is_recurring",
        "recurring_pattern",
        "reminder_time",
        "completed_at",
    }
)


class TaskService:
    """Task board operations.

    Reading the board is not a pure query: ``list_tasks`` purges completed
    tasks from previous days (for privileged callers) and creates today's
    instance of every daily template that does not have one yet.
    """

    def __init__(
        self,
        tasks: TaskRepository,
        stats: StatsService | None = None,
        *,
        timezone: str = DEFAULT_BUSINESS_TIMEZONE,
    ):
        self._tasks = tasks
        self._stats = stats
        self._timezone = timezone

    def _now(self, now: datetime | None) -> datetime:
        return now or now_local(self._timezone)

    def list_tasks(self, flt: TaskFilter | None = None, *, now: datetime | None = None) -> list[Task]:
        flt = flt or TaskFilter()
        now = self._now(now)
        today_key = to_date_key(now)

        loaded = list(self._tasks.list_all())
        working = self._sweep_expired(loaded, today_key, viewer=flt.viewer)
        working.extend(self._materialize(loaded, today_key, now))

        result = apply_filter(working, flt, now=now)
        result.sort(key=lambda t: t.created_at, reverse=True)
        return result

    def _sweep_expired(self, tasks: Iterable[Task], today_key: str, *, viewer: Viewer) -> list[Task]:
        live, expired = split_expired(tasks, today_key)
        if not expired or not can_cleanup(viewer):
            return live

        ids = [t.task_id for t in expired]
        try:
            deleted = self._tasks.delete_many(ids)
            logger.info("Purged %d expired tasks before %s", deleted, today_key)
        except Exception:
            # Listing stays available; the next privileged read retries.
            logger.exception("Failed to purge %d expired tasks", len(ids))
        return live

    def _materialize(self, tasks: Sequence[Task], today_key: str, now: datetime) -> list[Task]:
        """Create missing instances for today.

        ``tasks`` is everything loaded from the store, expired rows included, so
        an instance completed earlier is never mistaken for a missing one.
        """
        created: list[Task] = []
        for template in missing_templates(tasks, today_key):
            tid = instance_id(template.task_id, today_key)
            instance = self._tasks.create_if_absent(
                build_instance(template, today_key=today_key, now=now), task_id=tid
            )
            if instance is None:
                # A concurrent reader created it first.
                instance = self._tasks.get(tid)
                if instance is None:
                    raise RuntimeError(f"Daily instance {tid} was not stored")
                if is_expired(instance, today_key):
                    continue
            else:
                logger.info("Created daily instance %s from template %s", instance.task_id, template.task_id)
            created.append(instance)
        return created

    def get_user_tasks(self, viewer: AuthenticatedViewer, *, now: datetime | None = None) -> list[Task]:
        """Tasks assigned to the viewer, earliest due first."""
        tasks = self.list_tasks(TaskFilter(viewer=viewer, assigned_to=frozenset({viewer.user_id})), now=now)
        tasks.sort(key=lambda t: t.due_date)
        return tasks

    def get_project_tasks(self, viewer: Viewer, project_id: str, *, now: datetime | None = None) -> list[Task]:
        project_id = require_non_empty(project_id, "Dự án")
        return self.list_tasks(TaskFilter(viewer=viewer, project_id=project_id), now=now)

    def get_task(self, viewer: Viewer, task_id: str) -> Task:
        task = self._tasks.get(str(task_id))
        if task is None:
            raise NotFoundError("Không tìm thấy task")
        if not is_visible(task, viewer):
            raise AuthorizationError("Bạn không có quyền với task này")
        return task

    def daily_report(self, viewer: AuthenticatedViewer, *, now: datetime | None = None) -> DailyReport:
        """End-of-day summary of the viewer's tasks due today."""
        now = self._now(now)
        tasks = self.list_tasks(
            TaskFilter(viewer=viewer, assigned_to=frozenset({viewer.user_id}), today=True),
            now=now,
        )

        by_status = {s: [t for t in tasks if t.status == s] for s in TaskStatus}
        done = by_status[TaskStatus.DONE]
        return DailyReport(
            date_key=to_date_key(now),
            done=len(done),
            in_progress=len(by_status[TaskStatus.IN_PROGRESS]),
            todo=len(by_status[TaskStatus.TODO]),
            total=len(tasks),
            completed_titles=[t.title or "Untitled task" for t in done[:REPORT_COMPLETED_LIST_LIMIT]],
        )

    def run_daily_maintenance(self, *, now: datetime | None = None) -> MaintenanceResult:
        """Purge expired tasks and materialize today's instances outside any read.

        Unlike the read path, a failed purge raises so the scheduler sees it.
        """
        now = self._now(now)
        today_key = to_date_key(now)

        loaded = list(self._tasks.list_all())
        _, expired = split_expired(loaded, today_key)
        deleted = self._tasks.delete_many([t.task_id for t in expired]) if expired else 0
        created = self._materialize(loaded, today_key, now)

        logger.info("Daily maintenance %s: purged=%d created=%d", today_key, deleted, len(created))
        return MaintenanceResult(date_key=today_key, expired_deleted=deleted, instances_created=len(created))

    def create_task(
        self,
        viewer: Viewer,
        *,
        title: str,
        due_date: datetime,
        description: str = "",
        priority: TaskPriority | str = TaskPriority.MEDIUM,
        assigned_to: Iterable[str] = (),
        project_id: Optional[str] = None,
        labels: Iterable[str] = (),
        is_recurring: bool = False,
        recurring_pattern: RecurringPattern | str | None = None,
        reminder_time: Optional[datetime] = None,
        now: datetime | None = None,
    ) -> Task:
        """Create an ad-hoc task, or a template when the task recurs daily."""
        now = self._now(now)
        title = require_non_empty(title, "Tiêu đề")
        if not isinstance(due_date, datetime):
            raise ValidationError("Hạn chót không hợp lệ")

        pattern = None
        if is_recurring:
            if recurring_pattern is None:
                raise ValidationError("Task lặp lại cần chọn chu kỳ")
            pattern = require_enum(RecurringPattern, recurring_pattern, "Chu kỳ")

        is_template = bool(is_recurring) and pattern == RecurringPattern.DAILY
        new = NewTask(
            title=title,
            description=optional_text(description, "Mô tả"),
            due_date=due_date,
            priority=require_enum(TaskPriority, priority, "Độ ưu tiên"),
            status=TaskStatus.TODO,
            created_by=viewer_id(viewer) or SYSTEM_USER_ID,
            created_at=now,
            updated_at=now,
            assigned_to=clean_ids(assigned_to),
            labels=clean_ids(labels),
            project_id=optional_text(project_id, "Dự án") or None,
            is_recurring=bool(is_recurring),
            recurring_pattern=pattern,
            reminder_time=reminder_time,
            is_template=is_template,
            task_category=derive_category(is_recurring=bool(is_recurring), recurring_pattern=pattern),
        )
        task = self._tasks.create(new)
        logger.info("Created %s %s", "template" if is_template else "task", task.task_id)
        return task

    def update_task(
        self,
        viewer: Viewer,
        task_id: str,
        changes: Mapping[str, Any],
        *,
        now: datetime | None = None,
    ) -> Task:
        """Merge-patch a task. Any status may move to any other status.

        A template keeps its status and its daily recurrence; an ordinary task
        cannot be turned into a template by editing.
        """
        now = self._now(now)
        task = self.get_task(viewer, task_id)

        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Không thể cập nhật trường: {', '.join(sorted(unknown))}")

        fields = self._normalize_changes(changes)
        if task.is_template and ("completed_at" in fields or fields.get("status", task.status) != task.status):
            raise ValidationError("Không thể đổi trạng thái của task mẫu")

        new_status = fields.get("status", task.status)
        if new_status == TaskStatus.DONE:
            if task.status != TaskStatus.DONE and fields.get("completed_at") is None:
                fields["completed_at"] = now
        elif "status" in fields:
            fields["completed_at"] = None

        if "completed_at" in fields and task.recurrence_date_key and fields["completed_at"] is not None:
            if to_date_key(fields["completed_at"]) < task.recurrence_date_key:
                raise ValidationError("Thời điểm hoàn thành sớm hơn ngày của task")

        if "is_recurring" in fields or "recurring_pattern" in fields:
            is_recurring = fields.get("is_recurring", task.is_recurring)
            pattern = fields.get("recurring_pattern", task.recurring_pattern)
            if is_recurring and pattern is None:
                raise ValidationError("Task lặp lại cần chọn chu kỳ")
            if is_daily_setting(is_recurring, pattern) != task.is_template:
                raise ValidationError("Không thể chuyển đổi giữa task mẫu và task thường")
            if not task.source_recurring_task_id:
                fields["task_category"] = derive_category(is_recurring=is_recurring, recurring_pattern=pattern)

        fields["updated_at"] = now
        if not self._tasks.update(task.task_id, fields):
            raise NotFoundError("Không tìm thấy task")
        return replace(task, **fields)

    def _normalize_changes(self, changes: Mapping[str, Any]) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        for key, value in changes.items():
            if key == "title":
                value = require_non_empty(value, "Tiêu đề")
            elif key == "description":
                value = optional_text(value, "Mô tả")
            elif key == "priority":
                value = require_enum(TaskPriority, value, "Độ ưu tiên")
            elif key == "status":
                value = require_enum(TaskStatus, value, "Trạng thái")
            elif key in ("assigned_to", "labels"):
                value = clean_ids(value)
            elif key == "project_id":
                value = optional_text(value, "Dự án") or None
            elif key == "is_recurring":
                value = bool(value)
            elif key == "recurring_pattern":
                value = require_enum(RecurringPattern, value, "Chu kỳ") if value else None
            elif key == "due_date":
                if not isinstance(value, datetime):
                    raise ValidationError("Hạn chót không hợp lệ")
            elif key in ("reminder_time", "completed_at"):
                if value is not None and not isinstance(value, datetime):
                    raise ValidationError(f"{key} không hợp lệ")
            fields[key] = value
        return fields

    def complete_task(self, viewer: Viewer, task_id: str, *, now: datetime | None = None) -> Task:
        """Mark done and credit the completing user with karma."""
        now = self._now(now)
        current = self.get_task(viewer, task_id)
        if current.is_template:
            raise ValidationError("Không thể hoàn thành task mẫu")
        if current.status == TaskStatus.DONE:
            return current

        task = self.update_task(viewer, task_id, {"status": TaskStatus.DONE, "completed_at": now}, now=now)

        uid = viewer_id(viewer)
        if self._stats is not None and uid:
            self._stats.record_completion(uid, now=now)
        return task

    def delete_task(self, viewer: Viewer, task_id: str) -> None:
        task = self.get_task(viewer, task_id)
        if not self._tasks.delete(task.task_id):
            raise NotFoundError("Không tìm thấy task")
        logger.info("Deleted task %s", task.task_id)
