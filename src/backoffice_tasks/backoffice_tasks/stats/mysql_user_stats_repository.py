from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import UserStats
from .repository import UserStatsRepository


def _row_to_stats(r: dict) -> UserStats:
    return UserStats(
        user_id=str(r["user_id"]),
        tasks_completed=int(r["tasks_completed"]),
        karma_points=int(r["karma_points"]),
        last_updated=r.get("last_updated"),
    )


class MySQLUserStatsRepository(UserStatsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, user_id: str) -> Optional[UserStats]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, tasks_completed, karma_points, last_updated
                FROM user_stats
                WHERE user_id=%s
                """,
                (str(user_id),),
            )
            r = fetchone(cur)
            return _row_to_stats(r) if r else None

    def add_completion(self, *, user_id: str, karma_points: int, at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO user_stats(user_id, tasks_completed, karma_points, last_updated)
                VALUES(%s, 1, %s, %s)
                ON DUPLICATE KEY UPDATE
                    tasks_completed = tasks_completed + 1,
                    karma_points = karma_points + VALUES(karma_points),
                    last_updated = VALUES(last_updated)
                """,
                (str(user_id), int(karma_points), at),
            )

    def list_top(self, *, limit: int) -> Sequence[UserStats]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, tasks_completed, karma_points, last_updated
                FROM user_stats
                ORDER BY karma_points DESC, tasks_completed DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [_row_to_stats(r) for r in fetchall(cur)]
