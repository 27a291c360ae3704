from __future__ import annotations
from datetime import date, datetime, timezone


def now_utc() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def today_utc() -> date:
    """Calendar day in UTC; snapshots and aggregation windows are keyed by it."""
    return now_utc().date()


def iso_utc(dt: datetime | None = None) -> str:
    """Return ISO-8601 string in UTC for the given datetime (or now)."""
    return (dt or now_utc()).astimezone(timezone.utc).isoformat()


def now_db_utc() -> datetime:
    """Return UTC time for naive (TIMESTAMP WITHOUT TIME ZONE) database columns."""
    return now_utc().replace(tzinfo=None)
