"""Entry point for ``python -m ops_assistant``.

Provides a CLI built on stdlib :mod:`argparse`.

Subcommands:
    parse      -- Classify one chat message and print the intent as JSON.
                  Needs no configuration.
    bot        -- Run the Telegram bot with the daily briefing job.
    briefing   -- Compose the daily briefing now and send it (or print it
                  with ``--dry-run``).
    sync-email -- Ingest recent Gmail messages into the task store once.

Exit codes:
    0 -- Success (also when no subcommand is given; help is printed).
    1 -- An error occurred (unparseable message, config error).
    2 -- Argument parsing error (handled by argparse).
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from datetime import datetime

from ops_assistant.app import build_app, run_bot
from ops_assistant.briefing import BRIEFING_TASK_LIMIT, compose_briefing
from ops_assistant.config import ConfigError, load_settings
from ops_assistant.exceptions import CommandError
from ops_assistant.gmail import sync_recent_email
from ops_assistant.log import get_logger, setup_logging
from ops_assistant.parser.commands import classify
from ops_assistant.parser.when import now_in

logger = get_logger(__name__)

_DEFAULT_TIMEZONE = "America/New_York"


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="ops-assistant",
        description="Personal operations assistant: chat commands, events and briefings.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug-level logging.",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- "parse" ----------------------------------------------------------
    parse_parser = subparsers.add_parser(
        "parse",
        help="Classify a chat message and print the resulting intent.",
    )
    parse_parser.add_argument("message", type=str, help="Chat message text.")
    parse_parser.add_argument(
        "--timezone",
        type=str,
        default=None,
        help="Reference timezone (defaults to TIMEZONE or America/New_York).",
    )
    parse_parser.add_argument(
        "--now",
        type=datetime.fromisoformat,
        default=None,
        help="Pretend the current time is this ISO 8601 value.",
    )

    # --- "bot" ------------------------------------------------------------
    subparsers.add_parser("bot", help="Run the Telegram bot and the daily briefing.")

    # --- "briefing" -------------------------------------------------------
    briefing_parser = subparsers.add_parser("briefing", help="Send the daily briefing now.")
    briefing_parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Print the briefing instead of sending it.",
    )

    # --- "sync-email" -----------------------------------------------------
    subparsers.add_parser("sync-email", help="Ingest recent Gmail messages into tasks.")

    return parser


def _handle_parse(args: argparse.Namespace) -> int:
    timezone = args.timezone or os.environ.get("TIMEZONE", "").strip() or _DEFAULT_TIMEZONE
    try:
        intent = classify(args.message, timezone, now=args.now)
    except (CommandError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(intent.to_dict(), indent=2, ensure_ascii=False))
    return 0


def _handle_service(args: argparse.Namespace) -> int:
    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if not args.verbose:
        setup_logging(settings.log_level)

    app = build_app(settings)

    if args.command == "bot":
        run_bot(app)
        return 0

    if args.command == "briefing":
        if args.dry_run:
            today = now_in(app.owner.timezone).date()
            tasks = app.store.list_open_tasks(app.owner.owner_id, BRIEFING_TASK_LIMIT)
            print(compose_briefing(tasks, today))
            return 0
        app.send_briefing()
        return 0

    # sync-email
    if app.gmail_service is None:
        print("Error: GMAIL_TOKEN_PATH is not configured", file=sys.stderr)
        return 1
    result = sync_recent_email(app.gmail_service, app.store, app.owner)
    print(
        f"Fetched {result.fetched}, created {result.created}, "
        f"duplicates {result.duplicates}, filtered {result.filtered}, "
        f"failures {len(result.failures)}"
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the ops-assistant CLI.

    Args:
        argv: Command-line arguments.  Defaults to ``sys.argv[1:]``.

    Returns:
        Exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv if argv is not None else sys.argv[1:])

    setup_logging("DEBUG" if args.verbose else "INFO")

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "parse":
        return _handle_parse(args)

    logger.debug("Running %s", args.command)
    return _handle_service(args)


if __name__ == "__main__":
    raise SystemExit(main())
