"""
UTC time helpers.

Tokens carry integer epoch seconds, so every datetime we hand out is naive
UTC truncated to the second. That keeps a persisted expires_at identical to
the exp claim of the token it describes.
"""
from __future__ import annotations

import calendar
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as naive UTC, second precision."""
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def to_epoch(dt: datetime) -> int:
    """Naive UTC datetime -> integer epoch seconds."""
    return calendar.timegm(dt.utctimetuple())


def from_epoch(value: int | float) -> datetime:
    """Epoch seconds -> naive UTC datetime."""
    return datetime.fromtimestamp(int(value), tz=timezone.utc).replace(tzinfo=None)


def isoformat(dt: datetime | None) -> str | None:
    """ISO-8601 with an explicit UTC designator, for API payloads."""
    if dt is None:
        return None
    return dt.replace(microsecond=0).isoformat() + "Z"
