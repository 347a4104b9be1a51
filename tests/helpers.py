"""Shared test helpers for dm_stats tests.

Regular functions (not fixtures) that can be imported by any test module.
Timestamps are written without an offset so they are taken as local wall
clock time and bucket indexes do not depend on the machine's time zone.
"""

from __future__ import annotations

from datetime import datetime, timedelta

BASE_DATE = datetime(2024, 1, 15)  # a Monday
EPOCH = datetime(1970, 1, 1)


def at(hour: int, minute: int = 0, second: int = 0, day: int = 0) -> datetime:
    """Naive local datetime *day* days after ``BASE_DATE``."""
    return BASE_DATE + timedelta(days=day, hours=hour, minutes=minute, seconds=second)


def local_ms(moment: datetime) -> int:
    return (moment - EPOCH) // timedelta(milliseconds=1)


def make_author(name: str, author_id: str | None = None) -> dict:
    return {"id": author_id or f"id-{name}", "name": name, "nickname": name.title()}


def make_text(msg_id: int, author: str, when: datetime, content: str = "hi") -> dict:
    return {
        "id": str(msg_id),
        "type": "Default",
        "timestamp": when.isoformat(),
        "timestampEdited": None,
        "callEndedTimestamp": None,
        "content": content,
        "author": make_author(author),
        "attachments": [],
    }


def make_call(msg_id: int, author: str, start: datetime, end: datetime | None) -> dict:
    return {
        "id": str(msg_id),
        "type": "Call",
        "timestamp": start.isoformat(),
        "timestampEdited": None,
        "callEndedTimestamp": end.isoformat() if end else None,
        "content": "",
        "author": make_author(author),
        "attachments": [],
    }


def make_export(messages: list[dict], name: str = "alice & bob", channel_id: str = "42") -> dict:
    """Build a minimal export dict around a list of raw messages."""
    return {
        "guild": {"id": "0", "name": "Direct Messages"},
        "channel": {"id": channel_id, "name": name, "type": "DirectTextChat"},
        "messages": messages,
    }
