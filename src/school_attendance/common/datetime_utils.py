from __future__ import annotations

import calendar
from datetime import date, datetime


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def month_bounds(value: str) -> tuple[date, date]:
    """Return first and last day of a YYYY-MM month string."""
    first = datetime.strptime(value, "%Y-%m").date()
    last_day = calendar.monthrange(first.year, first.month)[1]
    return first, first.replace(day=last_day)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def to_unix_seconds(value: datetime) -> int:
    return int(value.timestamp())


def iso_or_none(value) -> str | None:
    return value.isoformat() if value is not None else None
