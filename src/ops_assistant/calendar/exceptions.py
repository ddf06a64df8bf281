"""Calendar error types and the retry policy for Calendar API calls.

Every failure surfaced by :mod:`ops_assistant.calendar` is a
:class:`CalendarAPIError`, so callers (the chat handler, the ``hoy``
listing) catch one type and turn it into a reply::

    CalendarAPIError           status_code from the HTTP response, if any
    +-- CalendarAuthError      bad or rejected service account (401)
    +-- CalendarRateLimitError 429 that outlived the retries
    +-- CalendarNotFoundError  unknown calendar id or event (404)

:func:`with_retry` wraps the raw ``googleapiclient`` calls and performs the
``HttpError`` translation.
"""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Callable
from typing import Any, TypeVar

from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

RETRY_LIMIT = 3
BACKOFF_SECONDS = 1.0


class CalendarAPIError(Exception):
    """A Calendar API call failed.

    Attributes:
        status_code: HTTP status of the failed response, or ``None`` for
            network and credential problems.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CalendarAuthError(CalendarAPIError):
    """Service account credentials are missing, malformed or rejected."""

    def __init__(self, message: str = "Calendar credentials rejected") -> None:
        super().__init__(message, status_code=401)


class CalendarRateLimitError(CalendarAPIError):
    """The API kept answering 429 after every retry."""

    def __init__(self, message: str = "Calendar rate limit hit") -> None:
        super().__init__(message, status_code=429)


class CalendarNotFoundError(CalendarAPIError):
    """The calendar or event does not exist (404)."""

    def __init__(self, message: str = "Calendar or event not found") -> None:
        super().__init__(message, status_code=404)


_ERRORS_BY_STATUS: dict[int, type[CalendarAPIError]] = {
    401: CalendarAuthError,
    404: CalendarNotFoundError,
    429: CalendarRateLimitError,
}


def classify_http_error(error: HttpError) -> CalendarAPIError:
    """Translate an ``HttpError`` into the matching calendar error.

    The message is ``str(error)``, which carries the API's reason text; the
    attendee fallback in the client searches it.
    """
    status = error.resp.status
    error_type = _ERRORS_BY_STATUS.get(status)
    if error_type is None:
        return CalendarAPIError(str(error), status_code=status)
    return error_type(str(error))


def with_retry(
    max_retries: int = RETRY_LIMIT,
    base_delay: float = BACKOFF_SECONDS,
) -> Callable[[F], F]:
    """Retry a Calendar API call on rate limits and network failures.

    Attempt ``n`` (0-based) that fails with a 429 or an ``OSError`` waits
    ``base_delay * 2**n`` seconds before trying again, up to *max_retries*
    extra attempts.  Any other ``HttpError`` is translated and raised on the
    first failure.

    Raises:
        CalendarRateLimitError: 429 on the last attempt.
        CalendarAPIError: Network failure on the last attempt, or any
            non-retryable HTTP error.
    """

    def decorator(func: F) -> F:
        name = getattr(func, "__qualname__", "calendar call")

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except HttpError as exc:
                    error = classify_http_error(exc)
                    if not isinstance(error, CalendarRateLimitError):
                        logger.error("%s failed with HTTP %s: %s", name, error.status_code, exc)
                        raise error from exc
                    if attempt >= max_retries:
                        logger.error("%s still rate limited after %d retries", name, max_retries)
                        raise error from exc
                    reason = "rate limited"
                except OSError as exc:
                    if attempt >= max_retries:
                        logger.error("%s network failure after %d retries: %s", name, max_retries, exc)
                        raise CalendarAPIError(f"Network error after {max_retries} retries: {exc}") from exc
                    reason = f"network error ({exc})"

                delay = base_delay * (2**attempt)
                attempt += 1
                logger.warning(
                    "%s %s, retry %d/%d in %.1fs", name, reason, attempt, max_retries, delay
                )
                time.sleep(delay)

        return wrapper  # type: ignore[return-value]

    return decorator
