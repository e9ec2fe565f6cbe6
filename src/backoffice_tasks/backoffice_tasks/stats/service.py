from __future__ import annotations

from datetime import datetime
from typing import Sequence

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_BUSINESS_TIMEZONE, DEFAULT_LEADERBOARD_LIMIT, KARMA_POINTS_PER_TASK
from ..core.exceptions import ValidationError
from .model import UserStats
from .repository import UserStatsRepository


class StatsService:
    def __init__(self, stats: UserStatsRepository, *, timezone: str = DEFAULT_BUSINESS_TIMEZONE):
        self._stats = stats
        self._timezone = timezone

    def record_completion(self, user_id: str, *, now: datetime | None = None) -> None:
        if not user_id:
            raise ValidationError("Người dùng không hợp lệ")
        now = now or now_local(self._timezone)
        self._stats.add_completion(user_id=str(user_id), karma_points=KARMA_POINTS_PER_TASK, at=now)

    def get_user_stats(self, user_id: str) -> UserStats:
        stats = self._stats.get(str(user_id))
        return stats or UserStats(user_id=str(user_id), tasks_completed=0, karma_points=0)

    def leaderboard(self, *, limit: int = DEFAULT_LEADERBOARD_LIMIT) -> Sequence[UserStats]:
        if int(limit) <= 0:
            raise ValidationError("Giới hạn không hợp lệ")
        return self._stats.list_top(limit=int(limit))
