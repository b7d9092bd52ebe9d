"""Timezone helpers shared by the scheduler and the storage backends."""
from __future__ import annotations

from datetime import datetime, timezone, tzinfo

import pytz


def get_timezone(name: str) -> tzinfo:
    """Resolve an IANA timezone name (``US/Pacific``, ``UTC``...) via pytz."""

    return pytz.timezone(name)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime | None) -> datetime | None:
    """Treat naive datetimes (SQLite, legacy JSON) as UTC."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_local(value: datetime, tz: tzinfo | None) -> datetime:
    aware = ensure_aware(value)
    if tz is None:
        return aware
    return aware.astimezone(tz)
