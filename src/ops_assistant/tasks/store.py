"""Task store interface and the in-memory implementation.

The command handler, email ingestion and the daily briefing only talk to
the :class:`TaskStore` protocol.  :class:`InMemoryTaskStore` is the
reference implementation used by the CLI and the tests; it is safe to share
between the worker threads that run chat handlers and the briefing job.
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Protocol

from ops_assistant.exceptions import DuplicateTaskError, TaskNotFoundError
from ops_assistant.models.task import Task, TaskCreate, TaskStatus

logger = logging.getLogger(__name__)


class TaskStore(Protocol):
    """Operations the assistant needs from a task store."""

    def ensure_owner(self, email: str) -> str:
        """Return the owner id for *email*, creating the owner if needed."""
        ...

    def create_task(self, data: TaskCreate) -> Task:
        """Persist a new task.

        Raises:
            DuplicateTaskError: If ``(owner_id, source, external_id)``
                already exists.
        """
        ...

    def get_task(self, task_id: str) -> Task | None:
        """Return the task with *task_id*, or ``None``."""
        ...

    def list_open_tasks(self, owner_id: str, limit: int) -> list[Task]:
        """Return open tasks ordered by priority, then creation time."""
        ...

    def update_status(self, task_id: str, status: TaskStatus) -> Task:
        """Set the status of a task.

        Raises:
            TaskNotFoundError: If *task_id* does not exist.
        """
        ...


class InMemoryTaskStore:
    """Thread-safe, process-local :class:`TaskStore`."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._owners: dict[str, str] = {}
        self._tasks: dict[str, Task] = {}
        self._ids = itertools.count(1)
        self._owner_ids = itertools.count(1)

    def ensure_owner(self, email: str) -> str:
        key = email.strip().lower()
        with self._lock:
            if key not in self._owners:
                self._owners[key] = f"owner-{next(self._owner_ids)}"
                logger.info("Created owner %s for %s", self._owners[key], key)
            return self._owners[key]

    def create_task(self, data: TaskCreate) -> Task:
        with self._lock:
            if data.external_id is not None:
                for existing in self._tasks.values():
                    if (
                        existing.owner_id == data.owner_id
                        and existing.source == data.source
                        and existing.external_id == data.external_id
                    ):
                        raise DuplicateTaskError(
                            f"Task already exists for {data.source.value}:{data.external_id}"
                        )

            task = Task(id=str(next(self._ids)), **data.model_dump())
            self._tasks[task.id] = task

        logger.info("Created task %s '%s' (P%d, %s)", task.id, task.title, task.priority, task.source.value)
        return task

    def get_task(self, task_id: str) -> Task | None:
        with self._lock:
            return self._tasks.get(task_id)

    def list_open_tasks(self, owner_id: str, limit: int) -> list[Task]:
        with self._lock:
            tasks = [t for t in self._tasks.values() if t.owner_id == owner_id and t.is_open]
        tasks.sort(key=lambda t: (t.priority, t.created_at, int(t.id)))
        return tasks[:limit]

    def update_status(self, task_id: str, status: TaskStatus) -> Task:
        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                raise TaskNotFoundError(f"No task with id {task_id!r}")
            updated = task.model_copy(update={"status": status})
            self._tasks[task_id] = updated

        logger.info("Task %s '%s' -> %s", task_id, updated.title, status.value)
        return updated
