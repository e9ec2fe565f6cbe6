from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import UserStats


class UserStatsRepository(Protocol):
    def get(self, user_id: str) -> Optional[UserStats]:
        raise NotImplementedError

    def add_completion(self, *, user_id: str, karma_points: int, at: datetime) -> None:
        """Create the row on first completion, otherwise increment it."""

        raise NotImplementedError

    def list_top(self, *, limit: int) -> Sequence[UserStats]:
        """Highest karma first, ties broken by tasks completed."""

        raise NotImplementedError
