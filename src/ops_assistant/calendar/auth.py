"""Service account credentials for the Google Calendar API.

The assistant writes to a shared calendar with a service account whose key
is supplied as JSON text (``GOOGLE_SERVICE_ACCOUNT_JSON``).  Hosting
dashboards often store that JSON with literal ``\\n`` sequences in the
private key, so a second parse attempt restores real newlines.

Usage::

    from ops_assistant.calendar.auth import load_service_account_credentials

    creds = load_service_account_credentials(settings.google_service_account_json)
"""

from __future__ import annotations

import json
import logging

from google.oauth2 import service_account

from ops_assistant.calendar.exceptions import CalendarAuthError

logger = logging.getLogger(__name__)

SCOPES: list[str] = ["https://www.googleapis.com/auth/calendar"]
"""OAuth 2.0 scope required to create and list events."""


def parse_service_account_info(raw: str | None) -> dict:
    """Decode service account JSON, tolerating escaped newlines.

    Raises:
        CalendarAuthError: If *raw* is empty or is not a JSON object.
    """
    if not raw or not raw.strip():
        raise CalendarAuthError("Missing GOOGLE_SERVICE_ACCOUNT_JSON")

    try:
        info = json.loads(raw)
    except json.JSONDecodeError:
        try:
            info = json.loads(raw.replace("\\n", "\n"), strict=False)
        except json.JSONDecodeError as exc:
            raise CalendarAuthError(f"Service account JSON is not valid JSON: {exc}") from exc

    if not isinstance(info, dict):
        raise CalendarAuthError("Service account JSON must be an object")
    return info


def load_service_account_credentials(raw: str | None) -> service_account.Credentials:
    """Build scoped service account credentials from JSON text.

    Raises:
        CalendarAuthError: If the JSON is missing, malformed, or lacks the
            fields ``google-auth`` needs (``client_email``, ``private_key``).
    """
    info = parse_service_account_info(raw)
    try:
        creds = service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
    except (ValueError, KeyError) as exc:
        raise CalendarAuthError(f"Invalid service account credentials: {exc}") from exc

    logger.info("Loaded service account credentials for %s", info.get("client_email", "?"))
    return creds
