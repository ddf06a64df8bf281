"""Keyword rules that decide whether an email becomes a task.

Every recent email becomes a task unless it looks like a newsletter.
Payment and urgency keywords raise the priority to P1; requests for
quotes, approvals and meetings stay at P2.  Keywords cover English and
Spanish.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ops_assistant.models.task import Priority

_NEWSLETTER_RE = re.compile(r"unsubscribe|newsletter|promotion|no-reply|noreply")
_HIGH_RE = re.compile(
    r"invoice|deposit|payment|paid|urgent|asap|deadline|overdue|past due|balance due"
    r"|factura|pago|urgente"
)
_ACTION_RE = re.compile(
    r"quote|estimate|confirm|approval|approve|schedule|meeting|call"
    r"|revisión|revision|revisar|confirmar|cotización|cotizacion"
)


@dataclass(frozen=True)
class EmailClassification:
    """Outcome of :func:`classify_email`.

    Attributes:
        create_task: Whether the email should become a task.
        priority: Priority for the task.
        reason: Short label for logs.
    """

    create_task: bool
    priority: Priority
    reason: str


def classify_email(subject: str = "", sender: str = "", snippet: str = "") -> EmailClassification:
    """Classify an email by keywords in its subject, sender and snippet."""
    text = f"{subject} {sender} {snippet}".lower()

    if _NEWSLETTER_RE.search(text):
        return EmailClassification(False, Priority.LOW, "newsletter/fyi")
    if _HIGH_RE.search(text):
        return EmailClassification(True, Priority.HIGH, "payment/urgent")
    if _ACTION_RE.search(text):
        return EmailClassification(True, Priority.DEFAULT, "action needed")
    return EmailClassification(True, Priority.DEFAULT, "default")
