"""Task storage for ops-assistant."""

from __future__ import annotations

from ops_assistant.tasks.store import InMemoryTaskStore, TaskStore

__all__ = ["InMemoryTaskStore", "TaskStore"]
