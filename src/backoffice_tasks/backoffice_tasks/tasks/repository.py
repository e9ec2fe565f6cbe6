from __future__ import annotations

from typing import Any, Collection, Mapping, Optional, Protocol, Sequence

from .model import NewTask, Task


class TaskRepository(Protocol):
    """Task store used by the task service.

    Note: the service depends on this interface only; the MySQL implementation
    and the in-memory fakes in the tests are interchangeable.
    """

    def list_all(self) -> Sequence[Task]:
        """All task documents, newest ``created_at`` first."""

        raise NotImplementedError

    def get(self, task_id: str) -> Optional[Task]:
        raise NotImplementedError

    def create(self, task: NewTask) -> Task:
        """Insert with a store-assigned id."""

        raise NotImplementedError

    def create_if_absent(self, task: NewTask, *, task_id: str) -> Optional[Task]:
        """Insert under a caller-chosen id.

        Returns None when a document with that id (or the same template/date
        pair) already exists.
        """

        raise NotImplementedError

    def update(self, task_id: str, fields: Mapping[str, Any]) -> bool:
        """Merge-patch the given fields. Returns False if the task is missing."""

        raise NotImplementedError

    def delete(self, task_id: str) -> bool:
        raise NotImplementedError

    def delete_many(self, task_ids: Collection[str]) -> int:
        """Delete all given ids as one unit; either all go or the call raises."""

        raise NotImplementedError
