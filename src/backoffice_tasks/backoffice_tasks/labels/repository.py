from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Label


class LabelRepository(Protocol):
    def list_all(self) -> Sequence[Label]:
        """Ordered by name."""

        raise NotImplementedError

    def get(self, label_id: str) -> Optional[Label]:
        raise NotImplementedError

    def create(self, *, name: str, color: str, created_by: str, created_at: datetime) -> Label:
        raise NotImplementedError

    def delete(self, label_id: str) -> bool:
        raise NotImplementedError
