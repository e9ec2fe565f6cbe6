from __future__ import annotations

import json
import uuid
from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Project
from .repository import ProjectRepository


def _load_members(value) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        value = json.loads(value) if value else []
    return tuple(str(v) for v in value)


def _row_to_project(r: dict) -> Project:
    return Project(
        project_id=str(r["project_id"]),
        name=r["name"],
        description=r.get("description") or "",
        color=r.get("color") or "",
        created_by=str(r["created_by"]),
        created_at=r["created_at"],
        updated_at=r["updated_at"],
        members=_load_members(r.get("members")),
    )


class MySQLProjectRepository(ProjectRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Project]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT project_id, name, description, color, created_by, members, created_at, updated_at
                FROM projects
                ORDER BY created_at DESC
                """
            )
            return [_row_to_project(r) for r in fetchall(cur)]

    def get(self, project_id: str) -> Optional[Project]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT project_id, name, description, color, created_by, members, created_at, updated_at
                FROM projects
                WHERE project_id=%s
                """,
                (str(project_id),),
            )
            r = fetchone(cur)
            return _row_to_project(r) if r else None

    def create(
        self,
        *,
        name: str,
        description: str,
        color: str,
        created_by: str,
        members: tuple[str, ...],
        created_at: datetime,
    ) -> Project:
        project_id = uuid.uuid4().hex
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO projects(project_id, name, description, color, created_by, members, created_at, updated_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (project_id, name, description, color, created_by, json.dumps(list(members)), created_at, created_at),
            )
        return Project(
            project_id=project_id,
            name=name,
            description=description,
            color=color,
            created_by=created_by,
            created_at=created_at,
            updated_at=created_at,
            members=tuple(members),
        )

    def update(
        self,
        *,
        project_id: str,
        name: str,
        description: str,
        color: str,
        members: tuple[str, ...],
        updated_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE projects
                SET name=%s, description=%s, color=%s, members=%s, updated_at=%s
                WHERE project_id=%s
                """,
                (name, description, color, json.dumps(list(members)), updated_at, str(project_id)),
            )
            return cur.rowcount > 0

    def delete(self, project_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM projects WHERE project_id=%s", (str(project_id),))
            return cur.rowcount > 0
