from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Project


class ProjectRepository(Protocol):
    def list_all(self) -> Sequence[Project]:
        """Newest first."""

        raise NotImplementedError

    def get(self, project_id: str) -> Optional[Project]:
        raise NotImplementedError

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
        raise NotImplementedError

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
        raise NotImplementedError

    def delete(self, project_id: str) -> bool:
        raise NotImplementedError
