"""Load a chat export into text-message and call events.

Reads a DiscordChatExporter-style JSON file and produces plain event records
whose timestamps are local wall-clock milliseconds, so the bucketing code
never has to deal with time zones.

Used by the CLI (dm_summary.py) and the web service (app.py).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Iterator

logger = logging.getLogger(__name__)

TEXT_TYPES = frozenset({"Default", "Reply"})
CALL_TYPE = "Call"

_EPOCH = datetime(1970, 1, 1)
_ONE_MS = timedelta(milliseconds=1)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TextMessage:
    id: int
    author: str
    timestamp_ms: int


@dataclass(frozen=True)
class Call:
    id: int
    author: str
    start_ms: int
    end_ms: int

    @property
    def duration_ms(self) -> int:
        return max(self.end_ms - self.start_ms, 0)


@dataclass
class AuthorRegistry:
    """Interns authors by id, remembering first-appearance order.

    The handle for an author is its display name, or ``"name (id)"`` when
    another id already holds that name (every deleted account is called
    "Deleted User").  The order of ``names`` fixes each author's column and
    color in every report.
    """

    names: list[str] = field(default_factory=list)
    _by_id: dict[str, str] = field(default_factory=dict)

    def intern(self, author: dict) -> str:
        """Return the handle for a raw author record, registering it if new."""
        author_id = str(author.get("id") or author["name"])
        handle = self._by_id.get(author_id)
        if handle is None:
            handle = str(author["name"])
            if handle in self.names:
                handle = f"{handle} ({author_id})"
            self._by_id[author_id] = handle
            self.names.append(handle)
        return handle

    def __contains__(self, name: str) -> bool:
        return name in self.names

    def __len__(self) -> int:
        return len(self.names)


@dataclass
class ChatExport:
    channel_id: str
    channel_name: str
    authors: list[str]
    texts: list[TextMessage]
    calls: list[Call]

    def calls_at_least(self, min_ms: int) -> Iterator[Call]:
        return (call for call in self.calls if call.duration_ms >= min_ms)


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------

def to_local_ms(value: str, utc_offset_minutes: int | None = None) -> int:
    """Convert an ISO 8601 timestamp to local wall-clock milliseconds.

    Args:
        value: Timestamp string, e.g. ``2024-01-15T21:04:05.123+00:00``.
            Naive timestamps are taken as already local.
        utc_offset_minutes: Fixed local offset.  None uses the system zone.

    Returns:
        Milliseconds since 1970-01-01T00:00 of the local wall clock.

    Raises:
        ValueError: If *value* is not a valid ISO 8601 timestamp.
    """
    moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if moment.tzinfo is not None:
        if utc_offset_minutes is None:
            moment = moment.astimezone()
        else:
            moment = moment.astimezone(timezone(timedelta(minutes=utc_offset_minutes)))
        moment = moment.replace(tzinfo=None)
    return (moment - _EPOCH) // _ONE_MS


def from_local_ms(value: int) -> datetime:
    """Naive local datetime for a wall-clock millisecond value."""
    return _EPOCH + timedelta(milliseconds=value)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _parse_message(
    raw: dict,
    registry: AuthorRegistry,
    utc_offset_minutes: int | None,
) -> TextMessage | Call | None:
    """Turn one raw message record into an event, or None for other types.

    Raises:
        KeyError, TypeError, ValueError: If a required field is missing or
            malformed.
    """
    author_raw = raw.get("author")
    if not isinstance(author_raw, dict):
        return None
    author = registry.intern(author_raw)
    kind = raw.get("type")
    timestamp = to_local_ms(raw["timestamp"], utc_offset_minutes)

    if kind in TEXT_TYPES:
        return TextMessage(id=int(raw["id"]), author=author, timestamp_ms=timestamp)
    if kind == CALL_TYPE:
        ended = raw.get("callEndedTimestamp")
        # A call still in progress at export time has no end.
        end = to_local_ms(ended, utc_offset_minutes) if ended else timestamp
        return Call(id=int(raw["id"]), author=author, start_ms=timestamp, end_ms=end)
    return None


def parse_export(data: Any, utc_offset_minutes: int | None = None) -> ChatExport:
    """Build a ``ChatExport`` from decoded export JSON.

    Malformed message records are skipped with a warning rather than
    aborting the whole export.

    Raises:
        ValueError: If *data* has no ``messages`` list.
    """
    if not isinstance(data, dict) or not isinstance(data.get("messages"), list):
        raise ValueError("Export JSON must be an object with a 'messages' list")

    channel = data.get("channel") if isinstance(data.get("channel"), dict) else {}
    registry = AuthorRegistry()
    texts: list[TextMessage] = []
    calls: list[Call] = []
    skipped = 0

    for raw in data["messages"]:
        if not isinstance(raw, dict):
            skipped += 1
            continue
        try:
            event = _parse_message(raw, registry, utc_offset_minutes)
        except (KeyError, TypeError, ValueError) as e:
            skipped += 1
            logger.warning("Skipping malformed message %s: %s", raw.get("id"), e)
            continue
        if isinstance(event, TextMessage):
            texts.append(event)
        elif isinstance(event, Call):
            calls.append(event)

    if skipped:
        logger.warning("Skipped %d malformed message records", skipped)

    return ChatExport(
        channel_id=str(channel.get("id", "")),
        channel_name=str(channel.get("name", "")),
        authors=list(registry.names),
        texts=texts,
        calls=calls,
    )


def load_export(path: str, utc_offset_minutes: int | None = None) -> ChatExport:
    """Load and parse a chat export JSON file.

    Args:
        path: Filesystem path to the export.
        utc_offset_minutes: Fixed local offset; None uses the system zone.

    Returns:
        The parsed ``ChatExport``.

    Raises:
        FileNotFoundError: If the file at *path* does not exist.
        json.JSONDecodeError: If the file contains invalid JSON.
        ValueError: If the JSON is not an export object.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    export = parse_export(data, utc_offset_minutes)
    logger.info(
        "Loaded %d messages and %d calls from %d authors in %s",
        len(export.texts),
        len(export.calls),
        len(export.authors),
        path,
    )
    return export
