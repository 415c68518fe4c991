"""
Shared date helpers.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return the current timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def utc_today() -> date:
    return utc_now().date()


def parse_iso_date(value: str) -> Optional[date]:
    """Parse a YYYY-MM-DD date, returning None when it is not one."""
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


def review_deadline(today: date, window_days: int) -> date:
    """Latest review_by date an allowlist entry may carry on ``today``.

    Deadlines past the last representable date are clamped to ``date.max``.
    """
    try:
        return today + timedelta(days=int(window_days))
    except OverflowError:
        return date.max


def format_timestamp(moment: datetime) -> str:
    """Render a datetime as an ISO 8601 UTC timestamp with millisecond precision."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
