"""Shared timestamp formatting helpers."""
from __future__ import annotations

from datetime import datetime, timezone


def _format_datetime_utc(value: datetime) -> str:
    dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now_iso() -> str:
    """Current time as ``2026-02-16T10:00:00.000Z`` (the agent's log format)."""
    return _format_datetime_utc(datetime.now(timezone.utc))


def epoch_to_iso(value: float) -> str:
    """Convert a filesystem timestamp into the same ISO format."""
    return _format_datetime_utc(datetime.fromtimestamp(value, tz=timezone.utc))
