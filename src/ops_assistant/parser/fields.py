"""Labeled field extraction for event messages.

Event messages mix positional segments with labeled fields, all separated
by ``/``::

    Client visit / tomorrow 9am / 60 / loc: Miami / invite: a@b.com

The text is first tokenized into a flat stream of :class:`Token` values,
one ``text`` token for positional content and one ``field`` token per
``key:`` label.  A field value always ends at the next ``/`` (or the end of
the string), so it can never contain a slash.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Literal

logger = logging.getLogger(__name__)

FIELD_KEYS: tuple[str, ...] = ("loc", "addr", "desc", "invite", "task")

SEGMENT_DELIMITER = "/"

# Whole-word label: ``\b`` keeps ``reloc:`` out, the colon keeps ``location`` out.
_LABEL_RE = re.compile(
    r"\b(" + "|".join(FIELD_KEYS) + r")\s*:\s*",
    re.IGNORECASE,
)
_WHITESPACE_RE = re.compile(r"\s+")
_INVITE_SPLIT_RE = re.compile(r"[,;]")


@dataclass(frozen=True)
class Token:
    """One unit of an event message.

    Attributes:
        kind: ``"text"`` for positional content, ``"field"`` for a labeled
            value.
        value: Trimmed, whitespace-collapsed content.
        key: Lower-cased field key for ``field`` tokens, ``None`` otherwise.
        segment: 0-based index of the ``/``-delimited segment the token
            came from.
    """

    kind: Literal["text", "field"]
    value: str
    key: str | None = None
    segment: int = 0


def _collapse(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def tokenize_event_text(text: str) -> list[Token]:
    """Split event text into positional and labeled-field tokens.

    Each ``/``-delimited segment contributes at most one ``text`` token
    (whatever precedes its first label) and one ``field`` token per label.
    A field's value runs from its label to the end of the segment.  Blank
    positional content produces no token.

    Args:
        text: Event text with the command prefix already removed.

    Returns:
        Tokens in input order.
    """
    tokens: list[Token] = []

    for index, segment in enumerate((text or "").split(SEGMENT_DELIMITER)):
        labels = list(_LABEL_RE.finditer(segment))

        positional = segment[: labels[0].start()] if labels else segment
        positional = _collapse(positional)
        if positional:
            tokens.append(Token(kind="text", value=positional, segment=index))

        for match in labels:
            tokens.append(
                Token(
                    kind="field",
                    key=match.group(1).lower(),
                    value=_collapse(segment[match.end() :]),
                    segment=index,
                )
            )

    return tokens


def extract_field(text: str, key: str) -> str:
    """Return the value of the first ``key:`` field in *text*.

    Lookup is case-insensitive and whole-word.

    Args:
        text: Event text.
        key: One of :data:`FIELD_KEYS`.

    Returns:
        The trimmed value, or ``""`` when the field is absent.

    Raises:
        ValueError: If *key* is not a recognised field key.
    """
    normalized = key.lower()
    if normalized not in FIELD_KEYS:
        raise ValueError(f"Unknown field key: {key!r}")

    for token in tokenize_event_text(text):
        if token.kind == "field" and token.key == normalized:
            return token.value
    return ""


def extract_fields(text: str) -> dict[str, str]:
    """Return every recognised field, keyed by field name.

    Absent fields map to ``""``.  When a key is repeated, the first value
    wins, matching :func:`extract_field`.
    """
    values = dict.fromkeys(FIELD_KEYS, "")
    for token in tokenize_event_text(text):
        if token.kind == "field" and token.key and not values[token.key]:
            values[token.key] = token.value
    return values


def strip_fields(text: str) -> str:
    """Remove all ``key: value`` spans, leaving only positional content.

    Segment delimiters are kept so the result can be fed to
    :func:`~ops_assistant.parser.segments.split_segments`.  Runs of
    whitespace collapse to a single space.
    """
    segments = (text or "").split(SEGMENT_DELIMITER)
    kept: list[str] = []
    for segment in segments:
        match = _LABEL_RE.search(segment)
        kept.append(segment[: match.start()] if match else segment)
    return _collapse(SEGMENT_DELIMITER.join(kept))


def parse_invitees(value: str) -> list[str]:
    """Split an ``invite:`` value into an ordered list of unique emails.

    Entries are separated by commas or semicolons.  Entries without an
    ``@`` are dropped with a warning.
    """
    emails: list[str] = []
    for raw in _INVITE_SPLIT_RE.split(value or ""):
        email = raw.strip()
        if not email:
            continue
        if "@" not in email:
            logger.warning("Ignoring invitee without an email address: %r", email)
            continue
        if email.lower() not in (e.lower() for e in emails):
            emails.append(email)
    return emails
