from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles used for permission checks across the back office."""

    ADMIN = "admin"
    TRAINER = "trainer"
    ADMINISTRATIVE_ASSISTANT = "administrative_assistant"
    ACCOUNTANCE = "accountance"
    SALER = "saler"


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class RecurringPattern(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class TaskCategory(str, Enum):
    """Derived from the recurrence settings, never set directly."""

    RECURRING_DAILY = "recurring_daily"
    AD_HOC = "ad_hoc"
