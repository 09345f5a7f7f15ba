"""Clock and calendar-range helpers."""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Iterator, Optional
from zoneinfo import ZoneInfo

from teamleave.config import settings


def today() -> date:
    """Current date in the configured timezone."""
    return datetime.now(ZoneInfo(settings.TIMEZONE)).date()


def resolve_today(value: Optional[date]) -> date:
    return value if value is not None else today()


def year_start(year: int) -> date:
    return date(year, 1, 1)


def year_end(year: int) -> date:
    return date(year, 12, 31)


def month_end(year: int, month_index: int) -> date:
    """Last day of a month given as a 0-based index (0 = January)."""
    month = month_index + 1
    return date(year, month, calendar.monthrange(year, month)[1])


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every date in ``[start, end]``; empty when ``start > end``."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def clip_to_year(start: date, end: date, year: int) -> Optional[tuple[date, date]]:
    """Intersection of ``[start, end]`` with the calendar year, or ``None``."""
    first, last = year_start(year), year_end(year)
    if start > last or end < first:
        return None
    return max(start, first), min(end, last)
