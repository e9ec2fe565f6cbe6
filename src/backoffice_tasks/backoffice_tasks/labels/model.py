from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Label:
    label_id: str
    name: str
    color: str
    created_by: str
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.label_id,
            "name": self.name,
            "color": self.color,
            "createdBy": self.created_by,
            "createdAt": self.created_at.isoformat(),
        }
