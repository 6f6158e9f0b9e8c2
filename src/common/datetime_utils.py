"""Datetime helpers for the event rules.

Timestamps are stored as timezone-aware UTC. Calendar rules ("the event date
has passed", "attendance on/after the event day") use the barangay's local
date, configured through ``settings.timezone``.
"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from src.config.settings import settings


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def local_today() -> date:
    """Return today's date in the configured local timezone."""
    return datetime.now(ZoneInfo(settings.timezone)).date()


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite returns them without tzinfo)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
