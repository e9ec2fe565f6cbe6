from __future__ import annotations

import json
import uuid
from dataclasses import asdict
from enum import Enum
from typing import Any, Collection, Mapping, Optional, Sequence

from ..core.enums import RecurringPattern, TaskCategory, TaskPriority, TaskStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import NewTask, Task
from .repository import TaskRepository

_COLUMNS = (
    "task_id",
    "title",
    "description",
    "due_date",
    "priority",
    "status",
    "created_by",
    "assigned_to",
    "project_id",
    "labels",
    "is_recurring",
    "recurring_pattern",
    "reminder_time",
    "completed_at",
    "source_recurring_task_id",
    "recurrence_date_key",
    "is_template",
    "task_category",
    "created_at",
    "updated_at",
)

_UPDATABLE = frozenset(_COLUMNS) - {"task_id", "created_at"}
_JSON_COLUMNS = frozenset({"assigned_to", "labels"})

_SELECT = f"SELECT {', '.join(_COLUMNS)} FROM tasks"


def _load_ids(value: Any) -> tuple[str, ...]:
    # mysql-connector returns JSON columns as str (C ext) or bytes (pure python)
    if value is None:
        return ()
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        value = json.loads(value) if value else []
    return tuple(str(v) for v in value)


def _to_db(column: str, value: Any) -> Any:
    if column in _JSON_COLUMNS:
        return json.dumps(list(value or ()))
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return int(value)
    return value


def _row_to_task(r: dict) -> Task:
    pattern = r.get("recurring_pattern")
    return Task(
        task_id=str(r["task_id"]),
        title=r["title"],
        description=r.get("description") or "",
        due_date=r["due_date"],
        priority=TaskPriority(r["priority"]),
        status=TaskStatus(r["status"]),
        created_by=str(r["created_by"]),
        created_at=r["created_at"],
        updated_at=r["updated_at"],
        assigned_to=_load_ids(r.get("assigned_to")),
        labels=_load_ids(r.get("labels")),
        project_id=r.get("project_id"),
        is_recurring=bool(r.get("is_recurring")),
        recurring_pattern=RecurringPattern(pattern) if pattern else None,
        reminder_time=r.get("reminder_time"),
        completed_at=r.get("completed_at"),
        source_recurring_task_id=r.get("source_recurring_task_id"),
        recurrence_date_key=r.get("recurrence_date_key"),
        is_template=bool(r.get("is_template")),
        task_category=TaskCategory(r.get("task_category") or TaskCategory.AD_HOC.value),
    )


class MySQLTaskRepository(TaskRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} ORDER BY created_at DESC")
            return [_row_to_task(r) for r in fetchall(cur)]

    def get(self, task_id: str) -> Optional[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE task_id=%s", (str(task_id),))
            r = fetchone(cur)
            return _row_to_task(r) if r else None

    def _insert(self, task: NewTask, *, task_id: str, ignore_duplicate: bool) -> Optional[Task]:
        values = {"task_id": task_id, **asdict(task)}
        placeholders = ", ".join(["%s"] * len(_COLUMNS))
        # A key collision leaves the existing row untouched and reports 0 rows;
        # every other insert error still raises.
        on_duplicate = " ON DUPLICATE KEY UPDATE task_id=task_id" if ignore_duplicate else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO tasks ({', '.join(_COLUMNS)}) VALUES ({placeholders}){on_duplicate}",
                tuple(_to_db(c, values[c]) for c in _COLUMNS),
            )
            if cur.rowcount == 0:
                return None

        return Task.from_new(task_id, task)

    def create(self, task: NewTask) -> Task:
        created = self._insert(task, task_id=uuid.uuid4().hex, ignore_duplicate=False)
        if created is None:
            raise RuntimeError("Task insert affected no rows")
        return created

    def create_if_absent(self, task: NewTask, *, task_id: str) -> Optional[Task]:
        return self._insert(task, task_id=task_id, ignore_duplicate=True)

    def update(self, task_id: str, fields: Mapping[str, Any]) -> bool:
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Unsupported task fields: {sorted(unknown)}")
        if not fields:
            return self.get(task_id) is not None

        columns = list(fields)
        assignments = ", ".join(f"{c}=%s" for c in columns)
        params = [_to_db(c, fields[c]) for c in columns]
        params.append(str(task_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE tasks SET {assignments} WHERE task_id=%s", tuple(params))
            if cur.rowcount > 0:
                return True
            # MySQL reports 0 rows when the values did not change.
            cur.execute("SELECT 1 AS found FROM tasks WHERE task_id=%s", (str(task_id),))
            return fetchone(cur) is not None

    def delete(self, task_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM tasks WHERE task_id=%s", (str(task_id),))
            return cur.rowcount > 0

    def delete_many(self, task_ids: Collection[str]) -> int:
        ids = [str(t) for t in task_ids]
        if not ids:
            return 0

        placeholders = ", ".join(["%s"] * len(ids))
        # db_cursor commits once at the end, or rolls the whole batch back.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM tasks WHERE task_id IN ({placeholders})", tuple(ids))
            return int(cur.rowcount)
