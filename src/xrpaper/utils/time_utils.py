"""Time utility helpers for UTC-safe timestamps."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any


def now_utc() -> datetime:
    """Return current timezone-aware UTC timestamp."""

    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse ISO-like timestamps, including ``"YYYY-MM-DD HH:MM:SS"``, as UTC-aware datetimes.

    Naive values are taken to be UTC. Unparseable values give None.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if not text:
            return None
        if "T" not in text:
            text = text.replace(" ", "T", 1)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_iso_or_none(value: Any) -> str | None:
    """Return a UTC ISO-8601 string or None."""

    parsed = parse_timestamp(value)
    return parsed.isoformat() if parsed is not None else None
