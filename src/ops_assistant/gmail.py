"""Ingest recent Gmail messages into the task store.

Lists messages matching a recency query, fetches their metadata
(Subject, From, snippet), classifies each with
:func:`~ops_assistant.email_rules.classify_email` and creates one task per
actionable message.  The Gmail message id is the task's external id, so
re-running the sync never duplicates tasks.

A failure on one message is recorded and the sync moves on; a failure to
list messages propagates to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ops_assistant.email_rules import classify_email
from ops_assistant.exceptions import DuplicateTaskError
from ops_assistant.models.task import TaskCreate, TaskSource
from ops_assistant.owner import OwnerContext
from ops_assistant.tasks.store import TaskStore

logger = logging.getLogger(__name__)

GMAIL_SCOPES: list[str] = ["https://www.googleapis.com/auth/gmail.readonly"]

DEFAULT_QUERY = "newer_than:7d"
DEFAULT_MAX_RESULTS = 50

NO_SUBJECT = "(no subject)"
NO_SENDER = "(unknown sender)"


@dataclass
class EmailSyncResult:
    """Counts from one Gmail sync run.

    Attributes:
        fetched: Messages returned by the list call.
        created: Tasks created.
        duplicates: Messages that already had a task.
        filtered: Messages the rules decided to skip.
        failures: ``{"message_id", "error"}`` dicts for messages that could
            not be fetched.
    """

    fetched: int = 0
    created: int = 0
    duplicates: int = 0
    filtered: int = 0
    failures: list[dict] = field(default_factory=list)


def build_gmail_service(token_path: str | Path) -> Any:
    """Build a Gmail API service from an authorized-user token file."""
    creds = Credentials.from_authorized_user_file(str(token_path), GMAIL_SCOPES)
    return build("gmail", "v1", credentials=creds, cache_discovery=False)


def _header(headers: list[dict], name: str) -> str | None:
    for header in headers:
        if (header.get("name") or "").lower() == name:
            return header.get("value")
    return None


def sync_recent_email(
    service: Any,
    store: TaskStore,
    owner: OwnerContext,
    query: str = DEFAULT_QUERY,
    max_results: int = DEFAULT_MAX_RESULTS,
) -> EmailSyncResult:
    """Create tasks for recent, actionable emails.

    Args:
        service: Gmail API service resource (``build("gmail", "v1", ...)``).
        store: Task store to write into.
        owner: Owner the tasks belong to.
        query: Gmail search query limiting how far back to read.
        max_results: Maximum number of messages to inspect.

    Returns:
        An :class:`EmailSyncResult`.

    Raises:
        HttpError: If the message list cannot be fetched.
    """
    result = EmailSyncResult()
    messages = (
        service.users()
        .messages()
        .list(userId="me", q=query, maxResults=max_results)
        .execute()
        .get("messages", [])
    )
    result.fetched = len(messages)

    for message in messages:
        message_id = message["id"]
        try:
            full = (
                service.users()
                .messages()
                .get(userId="me", id=message_id, format="metadata")
                .execute()
            )
        except HttpError as exc:
            logger.error("Failed to fetch message %s: %s", message_id, exc)
            result.failures.append({"message_id": message_id, "error": str(exc)})
            continue

        headers = (full.get("payload") or {}).get("headers", [])
        subject = _header(headers, "subject") or NO_SUBJECT
        sender = _header(headers, "from") or NO_SENDER

        classification = classify_email(subject, sender, full.get("snippet", ""))
        if not classification.create_task:
            result.filtered += 1
            logger.debug("Skipping %s (%s): %s", message_id, classification.reason, subject)
            continue

        try:
            store.create_task(
                TaskCreate(
                    owner_id=owner.owner_id,
                    title=f"Reply / handle: {subject}",
                    description=f"From: {sender}",
                    priority=classification.priority,
                    source=TaskSource.GMAIL,
                    external_id=message_id,
                )
            )
        except DuplicateTaskError:
            result.duplicates += 1
            continue

        result.created += 1

    logger.info(
        "Email sync: %d fetched, %d created, %d duplicate(s), %d filtered, %d failure(s)",
        result.fetched,
        result.created,
        result.duplicates,
        result.filtered,
        len(result.failures),
    )
    return result
