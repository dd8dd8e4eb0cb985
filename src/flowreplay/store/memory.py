"""
In-memory task status storage.

Every replay launched in this process gets an entry keyed by its task id.
Entries start as pending and are overwritten once with a terminal state by
the ReplayEngine that runs the task. Nothing is persisted and nothing
expires; evicting old tasks is left to the embedding process.

The store is used from a single event loop, so no locking is needed.
"""

import uuid
from datetime import UTC, datetime
from typing import Any, Iterator

from flowreplay.errors import TaskNotFoundError
from flowreplay.schema import TaskRecord, TaskStatus


def generate_task_id() -> str:
    """Generate a unique task id."""
    return str(uuid.uuid4())


class TaskStore:
    """
    Process-wide record of task id -> status.

    Usage:
        store = TaskStore()
        store.create_pending(task_id)
        ...
        store.set_completed(task_id, {"successReplay": True})
        store.get(task_id).status  # TaskStatus.COMPLETED
    """

    def __init__(self) -> None:
        self._tasks: dict[str, TaskRecord] = {}

    def create_pending(self, task_id: str) -> TaskRecord:
        """Insert a pending entry for ``task_id``."""
        record = TaskRecord(task_id=task_id)
        self._tasks[task_id] = record
        return record

    def set_completed(self, task_id: str, result: Any) -> TaskRecord:
        """Overwrite the entry with a completed state carrying ``result``."""
        return self._finish(task_id, TaskStatus.COMPLETED, result=result)

    def set_failed(self, task_id: str, error: str) -> TaskRecord:
        """Overwrite the entry with a failed state carrying ``error``."""
        return self._finish(task_id, TaskStatus.FAILED, error=error)

    def _finish(
        self,
        task_id: str,
        status: TaskStatus,
        result: Any = None,
        error: str | None = None,
    ) -> TaskRecord:
        previous = self._tasks.get(task_id)
        record = TaskRecord(
            task_id=task_id,
            status=status,
            result=result,
            error=error,
            created_at=previous.created_at if previous else datetime.now(UTC),
            finished_at=datetime.now(UTC),
        )
        self._tasks[task_id] = record
        return record

    def get(self, task_id: str) -> TaskRecord | None:
        """Return the entry for ``task_id``, or None if unknown."""
        return self._tasks.get(task_id)

    def require(self, task_id: str) -> TaskRecord:
        """
        Return the entry for ``task_id``.

        Raises:
            TaskNotFoundError: If the id is unknown
        """
        record = self._tasks.get(task_id)
        if record is None:
            raise TaskNotFoundError(task_id=task_id)
        return record

    def list_tasks(self, status: TaskStatus | None = None) -> list[TaskRecord]:
        """List entries in creation order, optionally filtered by status."""
        records = list(self._tasks.values())
        if status is not None:
            records = [r for r in records if r.status == status]
        return records

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: str) -> bool:
        return task_id in self._tasks

    def __iter__(self) -> Iterator[TaskRecord]:
        return iter(list(self._tasks.values()))
