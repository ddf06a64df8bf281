"""Structured logging setup for ops-assistant.

Every process (the bot with its briefing job, one-off CLI commands) logs
through the root logger with ISO 8601 timestamps and pipe-separated fields.
Chatty third-party loggers are held at WARNING.
"""

from __future__ import annotations

import logging
import sys

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(message)s"

# Marks the handler installed here so repeated setup calls can find it.
_HANDLER_ATTR = "_ops_assistant_log_handler"

_QUIET_LOGGERS = ("googleapiclient.discovery_cache", "urllib3", "google.auth", "httpx")


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with the project formatter on *stderr*.

    Safe to call more than once: the existing handler is reused and only
    its level is updated.

    Args:
        level: A standard logging level name (e.g. ``"DEBUG"``,
            ``"INFO"``, ``"WARNING"``).

    Raises:
        ValueError: If *level* is not a recognised logging level string.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level!r}")

    root = logging.getLogger()
    root.setLevel(numeric_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    for handler in root.handlers:
        if getattr(handler, _HANDLER_ATTR, False):
            handler.setLevel(numeric_level)
            return

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))

    setattr(handler, _HANDLER_ATTR, True)
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Return a named logger (usually ``__name__`` of the caller)."""
    return logging.getLogger(name)
