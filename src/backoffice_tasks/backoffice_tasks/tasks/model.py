from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Optional, Union

from ..core.enums import RecurringPattern, Role, TaskCategory, TaskPriority, TaskStatus


@dataclass(frozen=True)
class NewTask:
    """Payload for inserting a task document (everything except its id)."""

    title: str
    description: str
    due_date: datetime
    priority: TaskPriority
    status: TaskStatus
    created_by: str
    created_at: datetime
    updated_at: datetime
    assigned_to: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()
    project_id: Optional[str] = None
    is_recurring: bool = False
    recurring_pattern: Optional[RecurringPattern] = None
    reminder_time: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    source_recurring_task_id: Optional[str] = None
    recurrence_date_key: Optional[str] = None
    is_template: bool = False
    task_category: TaskCategory = TaskCategory.AD_HOC


@dataclass(frozen=True)
class Task:
    task_id: str
    title: str
    description: str
    due_date: datetime
    priority: TaskPriority
    status: TaskStatus
    created_by: str
    created_at: datetime
    updated_at: datetime
    assigned_to: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()
    project_id: Optional[str] = None
    is_recurring: bool = False
    recurring_pattern: Optional[RecurringPattern] = None
    reminder_time: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    source_recurring_task_id: Optional[str] = None
    recurrence_date_key: Optional[str] = None
    is_template: bool = False
    task_category: TaskCategory = TaskCategory.AD_HOC

    @classmethod
    def from_new(cls, task_id: str, new: NewTask) -> "Task":
        return cls(task_id=task_id, **asdict(new))

    @property
    def is_daily_template(self) -> bool:
        return self.is_template and self.is_recurring and self.recurring_pattern == RecurringPattern.DAILY

    def to_dict(self) -> dict:
        def _dt(v: Optional[datetime]) -> Optional[str]:
            return v.isoformat() if v else None

        return {
            "id": self.task_id,
            "title": self.title,
            "description": self.description,
            "dueDate": _dt(self.due_date),
            "priority": self.priority.value,
            "status": self.status.value,
            "createdBy": self.created_by,
            "assignedTo": list(self.assigned_to),
            "projectId": self.project_id,
            "labels": list(self.labels),
            "isRecurring": self.is_recurring,
            "recurringPattern": self.recurring_pattern.value if self.recurring_pattern else None,
            "reminderTime": _dt(self.reminder_time),
            "completedAt": _dt(self.completed_at),
            "sourceRecurringTaskId": self.source_recurring_task_id,
            "recurrenceDateKey": self.recurrence_date_key,
            "isTemplate": self.is_template,
            "taskCategory": self.task_category.value,
            "createdAt": _dt(self.created_at),
            "updatedAt": _dt(self.updated_at),
        }


@dataclass(frozen=True)
class SystemContext:
    """Trusted caller without a user identity (cron jobs, scripts)."""


@dataclass(frozen=True)
class AuthenticatedViewer:
    user_id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


Viewer = Union[SystemContext, AuthenticatedViewer]

SYSTEM = SystemContext()


@dataclass(frozen=True)
class TaskFilter:
    """Optional read predicates. Unset fields impose no constraint."""

    viewer: Viewer = SYSTEM
    status: Optional[frozenset[TaskStatus]] = None
    priority: Optional[frozenset[TaskPriority]] = None
    assigned_to: Optional[frozenset[str]] = None
    project_id: Optional[str] = None
    labels: Optional[frozenset[str]] = None
    due_from: Optional[date] = None
    due_to: Optional[date] = None
    today: bool = False
    overdue: bool = False
    next_7_days: bool = False
    include_templates: bool = False


@dataclass(frozen=True)
class DailyReport:
    date_key: str
    done: int
    in_progress: int
    todo: int
    total: int
    completed_titles: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class MaintenanceResult:
    date_key: str
    expired_deleted: int
    instances_created: int
