from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional

import pytest

from backoffice_tasks.core.enums import Role, TaskCategory, TaskPriority, TaskStatus
from backoffice_tasks.labels.model import Label
from backoffice_tasks.projects.model import Project
from backoffice_tasks.stats.model import UserStats
from backoffice_tasks.tasks.model import AuthenticatedViewer, Task


class InMemoryTasks:
    """Task store fake that records every write call."""

    def __init__(self, tasks=()):
        self._by_id: dict[str, Task] = {t.task_id: t for t in tasks}
        self._next_id = 0
        self.created: list[str] = []
        self.deleted_batches: list[list[str]] = []
        self.fail_delete_many = False
        self.fail_create = False

    def reset_calls(self) -> None:
        self.created = []
        self.deleted_batches = []

    def list_all(self):
        return sorted(self._by_id.values(), key=lambda t: t.created_at, reverse=True)

    def get(self, task_id: str) -> Optional[Task]:
        return self._by_id.get(str(task_id))

    def create(self, task):
        if self.fail_create:
            raise ConnectionError("store unavailable")
        self._next_id += 1
        created = Task.from_new(f"task-{self._next_id}", task)
        self._by_id[created.task_id] = created
        self.created.append(created.task_id)
        return created

    def create_if_absent(self, task, *, task_id: str):
        if self.fail_create:
            raise ConnectionError("store unavailable")
        if task_id in self._by_id:
            return None
        for t in self._by_id.values():
            if (
                task.source_recurring_task_id
                and t.source_recurring_task_id == task.source_recurring_task_id
                and t.recurrence_date_key == task.recurrence_date_key
            ):
                return None
        created = Task.from_new(task_id, task)
        self._by_id[task_id] = created
        self.created.append(task_id)
        return created

    def update(self, task_id: str, fields) -> bool:
        task = self._by_id.get(str(task_id))
        if task is None:
            return False
        self._by_id[task.task_id] = replace(task, **dict(fields))
        return True

    def delete(self, task_id: str) -> bool:
        return self._by_id.pop(str(task_id), None) is not None

    def delete_many(self, task_ids) -> int:
        ids = list(task_ids)
        self.deleted_batches.append(ids)
        if self.fail_delete_many:
            raise ConnectionError("batch delete failed")
        removed = 0
        for tid in ids:
            if self._by_id.pop(tid, None) is not None:
                removed += 1
        return removed


class InMemoryStats:
    def __init__(self):
        self.rows: dict[str, UserStats] = {}

    def get(self, user_id: str) -> Optional[UserStats]:
        return self.rows.get(user_id)

    def add_completion(self, *, user_id: str, karma_points: int, at: datetime) -> None:
        cur = self.rows.get(user_id) or UserStats(user_id=user_id, tasks_completed=0, karma_points=0)
        self.rows[user_id] = UserStats(
            user_id=user_id,
            tasks_completed=cur.tasks_completed + 1,
            karma_points=cur.karma_points + karma_points,
            last_updated=at,
        )

    def list_top(self, *, limit: int):
        rows = sorted(self.rows.values(), key=lambda s: (s.karma_points, s.tasks_completed), reverse=True)
        return rows[:limit]


class InMemoryProjects:
    def __init__(self):
        self.rows: dict[str, Project] = {}
        self._next_id = 0

    def list_all(self):
        return sorted(self.rows.values(), key=lambda p: p.created_at, reverse=True)

    def get(self, project_id: str) -> Optional[Project]:
        return self.rows.get(project_id)

    def create(self, *, name, description, color, created_by, members, created_at) -> Project:
        self._next_id += 1
        project = Project(
            project_id=f"p{self._next_id}",
            name=name,
            description=description,
            color=color,
            created_by=created_by,
            created_at=created_at,
            updated_at=created_at,
            members=tuple(members),
        )
        self.rows[project.project_id] = project
        return project

    def update(self, *, project_id, name, description, color, members, updated_at) -> bool:
        project = self.rows.get(project_id)
        if project is None:
            return False
        self.rows[project_id] = replace(
            project, name=name, description=description, color=color, members=tuple(members), updated_at=updated_at
        )
        return True

    def delete(self, project_id: str) -> bool:
        return self.rows.pop(project_id, None) is not None


class InMemoryLabels:
    def __init__(self):
        self.rows: dict[str, Label] = {}
        self._next_id = 0

    def list_all(self):
        return sorted(self.rows.values(), key=lambda lb: lb.name)

    def get(self, label_id: str) -> Optional[Label]:
        return self.rows.get(label_id)

    def create(self, *, name, color, created_by, created_at) -> Label:
        self._next_id += 1
        label = Label(label_id=f"l{self._next_id}", name=name, color=color, created_by=created_by, created_at=created_at)
        self.rows[label.label_id] = label
        return label

    def delete(self, label_id: str) -> bool:
        return self.rows.pop(label_id, None) is not None


def build_task(task_id: str, **overrides) -> Task:
    fields = dict(
        task_id=task_id,
        title=f"Task {task_id}",
        description="",
        due_date=datetime(2026, 3, 10, 17, 0),
        priority=TaskPriority.MEDIUM,
        status=TaskStatus.TODO,
        created_by="creator",
        created_at=datetime(2026, 3, 1, 8, 0),
        updated_at=datetime(2026, 3, 1, 8, 0),
        assigned_to=("u1",),
        task_category=TaskCategory.AD_HOC,
    )
    fields.update(overrides)
    return Task(**fields)


@pytest.fixture
def new_store():
    """Factory: ``new_store(*tasks)`` returns a fresh in-memory task store."""
    return lambda *tasks: InMemoryTasks(tasks)


@pytest.fixture
def make_task():
    return build_task


@pytest.fixture
def admin():
    return AuthenticatedViewer(user_id="admin-1", role=Role.ADMIN)


@pytest.fixture
def trainer():
    return AuthenticatedViewer(user_id="u2", role=Role.TRAINER)


@pytest.fixture
def stats_repo():
    return InMemoryStats()


@pytest.fixture
def projects_repo():
    return InMemoryProjects()


@pytest.fixture
def labels_repo():
    return InMemoryLabels()
