from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class UserStats:
    user_id: str
    tasks_completed: int
    karma_points: int
    last_updated: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "tasksCompleted": self.tasks_completed,
            "karmaPoints": self.karma_points,
            "lastUpdated": self.last_updated.isoformat() if self.last_updated else None,
        }
