"""Natural-language date/time resolution against a fixed reference timezone.

Turns a "when" phrase such as ``"tomorrow 3pm"``, ``"mañana 9:30am"`` or
``"2026-02-23 15:00"`` into a naive local :class:`~datetime.datetime` in
the reference timezone.

The phrase is tokenized before anything is resolved, and resolution follows
fixed precedence rules:

1. An explicit ``YYYY-MM-DD`` date overrides any relative-day keyword.
2. Otherwise ``tomorrow`` (and its variants) moves the anchor date forward
   one day; ``today`` leaves it alone.
3. Date tokens are consumed before the time search, so the digits of a
   date are never read as an hour.
4. Among the remaining time candidates, the *last* one carrying minutes or
   a meridiem wins; a bare number is used only when there is no such
   candidate, and then the last bare number wins.

Durations are added in elapsed time through UTC with :mod:`zoneinfo`, so
daylight-saving transitions are honoured.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone as dt_timezone
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ops_assistant.exceptions import ParseError, ValidationError

logger = logging.getLogger(__name__)

TOMORROW_WORDS: frozenset[str] = frozenset({"tomorrow", "mañana", "manana", "tmrw", "tmr"})
TODAY_WORDS: frozenset[str] = frozenset({"today", "hoy"})

TIME_HINT = 'Use: "tomorrow 3pm", "today 9:30am" or "2026-02-23 15:00"'

# Optional trailing "T" swallows the separator of ISO strings like 2025-06-11T15:00.
_DATE_RE = re.compile(r"(?<!\d)(\d{4})-(\d{1,2})-(\d{1,2})(?:T|(?![\d-]))", re.IGNORECASE)
_TIME_RE = re.compile(
    r"(?<![\w:])(\d{1,2})(?::(\d{2}))?(?:\s*([ap])\.?m\.?)?(?![\w:])",
    re.IGNORECASE,
)
_WORD_RE = re.compile(r"[^\W\d_]+")


@dataclass(frozen=True)
class WhenToken:
    """One recognised unit of a when-phrase.

    Attributes:
        kind: ``"date"``, ``"time"`` or ``"word"``.
        text: The matched source text.
        position: Offset of the match in the normalised phrase.
        value: Parsed date for date tokens.
        hour: Raw hour (before 24h conversion) for time tokens.
        minute: Minute for time tokens.
        meridiem: ``"am"``, ``"pm"`` or ``None`` for time tokens.
    """

    kind: Literal["date", "time", "word"]
    text: str
    position: int
    value: date | None = None
    hour: int | None = None
    minute: int | None = None
    meridiem: str | None = None

    @property
    def is_strong_time(self) -> bool:
        """A time written with minutes or a meridiem, not a bare number."""
        return self.kind == "time" and (self.meridiem is not None or ":" in self.text)


def get_zone(timezone: str) -> ZoneInfo:
    """Return the :class:`ZoneInfo` for *timezone*.

    Raises:
        ValueError: If the timezone name is unknown.
    """
    try:
        return ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {timezone!r}") from exc


def now_in(timezone: str, now: datetime | None = None) -> datetime:
    """Return the current time (or *now*) as an aware datetime in *timezone*.

    A naive *now* is taken as wall-clock time in *timezone*.
    """
    zone = get_zone(timezone)
    if now is None:
        return datetime.now(zone)
    if now.tzinfo is None:
        return now.replace(tzinfo=zone)
    return now.astimezone(zone)


def _normalise(phrase: str) -> str:
    return unicodedata.normalize("NFC", phrase or "").lower()


def tokenize_when(phrase: str) -> list[WhenToken]:
    """Tokenize a when-phrase into date, time and word tokens.

    Date tokens are blanked out of the phrase before time tokens are
    searched, so ``2025-12-01`` never yields a time candidate.

    Raises:
        ValidationError: If a date token names an impossible calendar day.
    """
    text = _normalise(phrase)
    tokens: list[WhenToken] = []

    masked = list(text)
    for match in _DATE_RE.finditer(text):
        year, month, day = (int(g) for g in match.groups())
        try:
            value = date(year, month, day)
        except ValueError as exc:
            raise ValidationError(
                f"Invalid date {match.group(0).rstrip('tT')!r}: {exc}", text=phrase
            ) from exc
        tokens.append(WhenToken(kind="date", text=match.group(0), position=match.start(), value=value))
        masked[match.start() : match.end()] = " " * (match.end() - match.start())
    remaining = "".join(masked)

    for match in _TIME_RE.finditer(remaining):
        hour, minute, meridiem = match.groups()
        tokens.append(
            WhenToken(
                kind="time",
                text=match.group(0).strip(),
                position=match.start(),
                hour=int(hour),
                minute=int(minute) if minute is not None else 0,
                meridiem=f"{meridiem.lower()}m" if meridiem else None,
            )
        )

    for match in _WORD_RE.finditer(remaining):
        word = match.group(0)
        if word in {"am", "pm", "a", "p", "m"}:
            continue
        tokens.append(WhenToken(kind="word", text=word, position=match.start()))

    tokens.sort(key=lambda t: t.position)
    return tokens


def select_time_token(tokens: list[WhenToken]) -> WhenToken | None:
    """Pick the time token that wins under the "last plausible" rule."""
    candidates = [t for t in tokens if t.kind == "time"]
    strong = [t for t in candidates if t.is_strong_time]
    if strong:
        return strong[-1]
    return candidates[-1] if candidates else None


def to_24_hour(hour: int, minute: int, meridiem: str | None) -> tuple[int, int]:
    """Convert a possibly 12-hour clock reading to 24-hour form.

    ``pm`` adds 12 unless the hour is already 12 or more; ``12am`` is
    midnight.

    Raises:
        ValidationError: If the converted hour exceeds 23 or the minute
            exceeds 59.
    """
    if meridiem == "pm" and hour < 12:
        hour += 12
    elif meridiem == "am" and hour == 12:
        hour = 0

    if hour > 23:
        raise ValidationError(f"Hour out of range: {hour} (must be 0-23)")
    if minute > 59:
        raise ValidationError(f"Minute out of range: {minute} (must be 0-59)")
    return hour, minute


def resolve_date(tokens: list[WhenToken], anchor: date) -> date:
    """Apply the date precedence rules to *anchor*.

    An explicit date token wins outright; otherwise a tomorrow keyword
    advances the anchor by one calendar day.
    """
    explicit = [t.value for t in tokens if t.kind == "date" and t.value is not None]
    if explicit:
        return explicit[-1]

    words = {t.text for t in tokens if t.kind == "word"}
    if words & TOMORROW_WORDS:
        return anchor + timedelta(days=1)
    return anchor


def resolve_when(phrase: str, timezone: str, now: datetime | None = None) -> datetime:
    """Resolve a when-phrase to a naive local datetime in *timezone*.

    "Now" is read once per call so long-running processes stay correct.

    Args:
        phrase: Text such as ``"tomorrow 3pm"`` or ``"2026-02-23 15:00"``.
        timezone: IANA name of the reference timezone.
        now: Optional injected current time (aware, or naive local).

    Returns:
        A naive :class:`datetime` with seconds set to zero.

    Raises:
        ParseError: If the phrase contains no time.
        ValidationError: If the date, hour or minute is out of range.
    """
    anchor = now_in(timezone, now).date()
    tokens = tokenize_when(phrase)

    time_token = select_time_token(tokens)
    if time_token is None:
        raise ParseError(f"Could not read the time in {phrase!r}. {TIME_HINT}", text=phrase)

    hour, minute = to_24_hour(time_token.hour or 0, time_token.minute or 0, time_token.meridiem)
    day = resolve_date(tokens, anchor)

    resolved = datetime(day.year, day.month, day.day, hour, minute)
    logger.debug("Resolved %r to %s (%s)", phrase, resolved.isoformat(), timezone)
    return resolved


def localize(local: datetime, timezone: str) -> datetime:
    """Attach *timezone* to a naive local datetime, keeping its ``fold``.

    An aware value is converted to the zone instead.
    """
    zone = get_zone(timezone)
    if local.tzinfo is not None:
        return local.astimezone(zone)
    return local.replace(tzinfo=zone)


def add_duration(local: datetime, minutes: int, timezone: str) -> datetime:
    """Advance a naive local datetime by *minutes* of elapsed time.

    The value is localised in *timezone*, shifted in UTC and converted back,
    so month/year rollovers and DST transitions are handled by the zone
    database.  The returned value keeps ``fold`` so that repeated wall-clock
    hours round-trip.

    Raises:
        ValidationError: If the result falls outside the supported
            datetime range.
    """
    aware = localize(local, timezone)
    try:
        shifted = aware.astimezone(dt_timezone.utc) + timedelta(minutes=minutes)
        local_end = shifted.astimezone(aware.tzinfo)
    except OverflowError as exc:
        raise ValidationError(
            f"A duration of {minutes} minutes from {format_local(local)} is out of range",
            text=str(minutes),
        ) from exc
    return local_end.replace(tzinfo=None)


def format_local(value: datetime) -> str:
    """Format a naive local datetime as ``YYYY-MM-DDTHH:MM:SS``."""
    return value.replace(microsecond=0).isoformat(timespec="seconds")


def format_with_offset(value: datetime, timezone: str) -> str:
    """Format a naive local datetime with its UTC offset in *timezone*.

    ``2025-11-02T01:30:00`` with ``fold=1`` in ``America/New_York`` becomes
    ``2025-11-02T01:30:00-05:00``; the offset pins down which of the two
    repeated hours is meant.
    """
    return localize(value.replace(microsecond=0), timezone).isoformat(timespec="seconds")
