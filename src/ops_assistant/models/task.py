"""Task models shared by the command handler, email ingestion and the store.

Priorities follow the chat convention: ``P1`` is the most urgent, ``P3``
the least.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum, IntEnum

from pydantic import BaseModel, Field, field_validator


class Priority(IntEnum):
    """Numeric task priority."""

    HIGH = 1
    DEFAULT = 2
    LOW = 3


class TaskStatus(str, Enum):
    """Lifecycle status of a task."""

    PENDING = "PENDING"
    DOING = "DOING"
    BLOCKED = "BLOCKED"
    DONE = "DONE"


OPEN_STATUSES: frozenset[TaskStatus] = frozenset(
    {TaskStatus.PENDING, TaskStatus.DOING, TaskStatus.BLOCKED}
)


class TaskSource(str, Enum):
    """Where a task came from."""

    MANUAL = "manual"
    CALENDAR = "calendar"
    GMAIL = "gmail"


class TaskCreate(BaseModel):
    """Payload accepted by :meth:`TaskStore.create_task`."""

    owner_id: str
    title: str = Field(..., min_length=1)
    priority: Priority = Priority.DEFAULT
    status: TaskStatus = TaskStatus.PENDING
    source: TaskSource = TaskSource.MANUAL
    assignee: str | None = None
    description: str | None = None
    external_id: str | None = None
    linked_event_id: str | None = None
    linked_event_link: str | None = None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("title must not be blank")
        return stripped


class Task(TaskCreate):
    """A stored task.

    Attributes:
        id: Store-assigned identifier (a decimal string so that
            ``done 7`` can address it).
        created_at: UTC creation time, used as the secondary sort key.
    """

    id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_open(self) -> bool:
        """Whether the task still needs attention."""
        return self.status in OPEN_STATUSES


@dataclass(frozen=True)
class TaskDraft:
    """A task parsed from a ``tarea:`` message, before it is stored.

    Attributes:
        title: Task title.
        assignee: Role or person responsible, or ``None``.
        priority: Normalised priority.
    """

    title: str
    assignee: str | None = None
    priority: Priority = Priority.DEFAULT
