"""Chat command handler.

:class:`CommandHandler` classifies an incoming message, runs the matching
action against the task store and calendar, and returns the reply text.
Every parsing failure is caught here and turned into a reply; nothing the
user types can crash the bot loop.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from rapidfuzz.fuzz import token_set_ratio

from ops_assistant.calendar.client import GoogleCalendarClient, event_start_label
from ops_assistant.calendar.exceptions import CalendarAPIError
from ops_assistant.exceptions import CommandError
from ops_assistant.models.event import EventRequest
from ops_assistant.models.intent import Intent, IntentKind
from ops_assistant.models.task import Task, TaskCreate, TaskSource, TaskStatus
from ops_assistant.owner import OwnerContext
from ops_assistant.parser.commands import classify, parse_task_draft
from ops_assistant.parser.when import format_local, now_in
from ops_assistant.tasks.store import TaskStore

logger = logging.getLogger(__name__)

TOP_LIMIT = 10
TODAY_LIMIT = 20
# Upper bound on open tasks scanned when matching "done: <text>".
_DONE_SCAN_LIMIT = 500
FUZZY_MATCH_THRESHOLD = 80.0

HELP_TEXT = "\n".join(
    [
        "Ops assistant",
        "",
        "Tasks:",
        "• tarea: cut kitchen fillers / Production / high",
        "• top",
        "• hoy (or: today)",
        "• done: fillers (or: done 7)",
        "",
        "Events:",
        "• event: site visit / tomorrow 5pm / 60 / loc: Miami / desc: kitchen",
        "• (optional) addr: 123 Main St",
        "• (optional) invite: a@b.com,b@c.com",
        "• (optional) task: call the client",
    ]
)


class CommandHandler:
    """Turn chat messages into task/calendar actions and reply text.

    Args:
        owner: Immutable owner context.
        store: Task store collaborator.
        calendar: Calendar client, or ``None`` when events are disabled.
        clock: Optional zero-argument callable returning the current time;
            read once per message.
    """

    def __init__(
        self,
        owner: OwnerContext,
        store: TaskStore,
        calendar: GoogleCalendarClient | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._owner = owner
        self._store = store
        self._calendar = calendar
        self._clock = clock

    def handle(self, text: str) -> str:
        """Handle one chat message and return the reply."""
        now = now_in(self._owner.timezone, self._clock() if self._clock else None)

        try:
            intent = classify(text, self._owner.timezone, now=now)
        except CommandError as exc:
            logger.info("Could not parse %r: %s", text, exc)
            return f"Could not understand that: {exc}"

        logger.info("Handling %s", intent.kind.value)

        if intent.kind is IntentKind.CREATE_TASK:
            return self._create_task(intent)
        if intent.kind is IntentKind.LIST_TOP:
            return self._list_top()
        if intent.kind is IntentKind.LIST_TODAY:
            return self._list_today(now)
        if intent.kind is IntentKind.MARK_DONE:
            return self._mark_done(intent.payload)
        if intent.kind is IntentKind.CREATE_EVENT and intent.event is not None:
            return self._create_event(intent.event)
        return HELP_TEXT

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def _create_task(self, intent: Intent) -> str:
        draft = parse_task_draft(intent.payload)
        task = self._store.create_task(
            TaskCreate(
                owner_id=self._owner.owner_id,
                title=draft.title,
                assignee=draft.assignee,
                priority=draft.priority,
                source=TaskSource.MANUAL,
            )
        )
        return "\n".join(
            [
                "Task created",
                f"• {task.title}",
                f"• Role: {task.assignee or '(unassigned)'}",
                f"• Priority: P{int(task.priority)}",
            ]
        )

    def _list_top(self) -> str:
        tasks = self._store.list_open_tasks(self._owner.owner_id, TOP_LIMIT)
        if not tasks:
            return "No open tasks."
        lines = [f"Top {len(tasks)} tasks:"]
        lines.extend(f"- [P{int(t.priority)}] {t.title} (#{t.id})" for t in tasks)
        return "\n".join(lines)

    def _list_today(self, now: datetime) -> str:
        tasks = self._store.list_open_tasks(self._owner.owner_id, TODAY_LIMIT)
        lines = ["Open tasks:"]
        if tasks:
            lines.extend(
                f"- [{t.status.value}] [P{int(t.priority)}] {t.title} (#{t.id})" for t in tasks
            )
        else:
            lines.append("- none")

        if self._calendar is not None:
            lines.append("")
            lines.append(f"Events {now.date().isoformat()}:")
            try:
                events = self._calendar.list_events_for_day(now.date())
            except CalendarAPIError as exc:
                logger.warning("Could not list today's events: %s", exc)
                lines.append("- (calendar unavailable)")
            else:
                if events:
                    lines.extend(
                        f"- {event_start_label(e)} {e.get('summary', '(no title)')}" for e in events
                    )
                else:
                    lines.append("- none")

        return "\n".join(lines)

    def _mark_done(self, query: str) -> str:
        task = self._find_open_task(query)
        if task is None:
            return f'No open task matches "{query}".'
        updated = self._store.update_status(task.id, TaskStatus.DONE)
        return f"Marked as DONE: {updated.title}"

    def _find_open_task(self, query: str) -> Task | None:
        """Find the task a ``done`` command refers to.

        Lookup order: exact task id, oldest open task whose title contains
        the query, best fuzzy title match at or above
        :data:`FUZZY_MATCH_THRESHOLD`.
        """
        if query.isdigit():
            task = self._store.get_task(query)
            if task is not None and task.owner_id == self._owner.owner_id and task.is_open:
                return task

        open_tasks = self._store.list_open_tasks(self._owner.owner_id, _DONE_SCAN_LIMIT)
        needle = query.lower()

        containing = [t for t in open_tasks if needle in t.title.lower()]
        if containing:
            return min(containing, key=lambda t: (t.created_at, int(t.id)))

        best: Task | None = None
        best_score = 0.0
        for task in open_tasks:
            score = token_set_ratio(needle, task.title.lower())
            if score > best_score:
                best, best_score = task, score
        if best is not None and best_score >= FUZZY_MATCH_THRESHOLD:
            logger.info("Fuzzy-matched %r to task %s (score %.0f)", query, best.id, best_score)
            return best
        return None

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _create_event(self, event: EventRequest) -> str:
        if self._calendar is None:
            return (
                "Calendar is not configured. Set GOOGLE_CALENDAR_ID and "
                "GOOGLE_SERVICE_ACCOUNT_JSON to create events."
            )

        try:
            created = self._calendar.create_event(event)
        except CalendarAPIError as exc:
            logger.error("Event creation failed for '%s': %s", event.title, exc)
            return f"Could not create the event: {exc}"

        linked: Task | None = None
        if event.linked_task_title:
            linked = self._store.create_task(
                TaskCreate(
                    owner_id=self._owner.owner_id,
                    title=event.linked_task_title,
                    source=TaskSource.CALENDAR,
                    linked_event_id=created.event_id,
                    linked_event_link=created.html_link or None,
                )
            )

        lines = [
            "Event created:",
            event.title,
            f"When: {format_local(event.start_local)} - {format_local(event.end_local)} ({event.timezone})",
        ]
        if event.location:
            lines.append(f"Where: {event.location}")
        if event.description:
            lines.append(f"Notes: {event.description}")
        if event.invitees:
            if created.attendees_dropped:
                lines.append("Invitations not sent (the calendar refused attendees)")
            else:
                lines.append(f"Invited: {', '.join(event.invitees)}")
        if created.html_link:
            lines.append(created.html_link)
        if linked is not None:
            lines.append(f"Linked task: {linked.title} (#{linked.id})")
        return "\n".join(lines)
