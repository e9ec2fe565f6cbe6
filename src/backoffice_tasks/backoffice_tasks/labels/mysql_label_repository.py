from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Label
from .repository import LabelRepository


def _row_to_label(r: dict) -> Label:
    return Label(
        label_id=str(r["label_id"]),
        name=r["name"],
        color=r.get("color") or "",
        created_by=str(r["created_by"]),
        created_at=r["created_at"],
    )


class MySQLLabelRepository(LabelRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Label]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT label_id, name, color, created_by, created_at
                FROM labels
                ORDER BY name ASC
                """
            )
            return [_row_to_label(r) for r in fetchall(cur)]

    def get(self, label_id: str) -> Optional[Label]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT label_id, name, color, created_by, created_at FROM labels WHERE label_id=%s",
                (str(label_id),),
            )
            r = fetchone(cur)
            return _row_to_label(r) if r else None

    def create(self, *, name: str, color: str, created_by: str, created_at: datetime) -> Label:
        label_id = uuid.uuid4().hex
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO labels(label_id, name, color, created_by, created_at)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (label_id, name, color, created_by, created_at),
            )
        return Label(label_id=label_id, name=name, color=color, created_by=created_by, created_at=created_at)

    def delete(self, label_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM labels WHERE label_id=%s", (str(label_id),))
            return cur.rowcount > 0
