from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Project:
    project_id: str
    name: str
    description: str
    color: str
    created_by: str
    created_at: datetime
    updated_at: datetime
    members: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "id": self.project_id,
            "name": self.name,
            "description": self.description,
            "color": self.color,
            "createdBy": self.created_by,
            "members": list(self.members),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }
