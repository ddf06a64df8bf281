"""Custom exceptions for the ops-assistant command parser and task store.

Parsing failures are never fatal: the command handler catches every
:class:`CommandError` and turns it into a chat reply.

Exception hierarchy::

    CommandError          (base for anything the user typed wrong)
    +-- ParseError        (date/time or segment not understood)
    +-- ValidationError   (out-of-range hour, minute or date)

    TaskStoreError        (base for task store failures)
    +-- DuplicateTaskError
    +-- TaskNotFoundError
"""

from __future__ import annotations


class CommandError(Exception):
    """Base class for errors caused by the content of a chat message.

    Attributes:
        text: The fragment of user input that could not be handled.
    """

    def __init__(self, message: str, text: str = "") -> None:
        super().__init__(message)
        self.text = text


class ParseError(CommandError):
    """Raised when a time, date or required segment cannot be read."""


class ValidationError(CommandError):
    """Raised when a parsed value is outside its valid range.

    Examples are ``25:00``, ``9:75`` or ``2025-02-30``.
    """


class TaskStoreError(Exception):
    """Base class for task store failures."""


class DuplicateTaskError(TaskStoreError):
    """Raised when a task with the same owner, source and external id exists."""


class TaskNotFoundError(TaskStoreError):
    """Raised when a task id does not exist in the store."""
