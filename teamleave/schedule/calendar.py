"""Working-day calendar: is a given date a working day for a person?

Every function takes either a ``User`` (schedule history is honoured for
past dates) or a bare ``ShiftSchedule``. ``None``, or a user without a
schedule, means "always working" so an unscheduled person is never blocked.
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Union

from teamleave.common.constants import ShiftType
from teamleave.common.dates import iter_days, year_end, year_start
from teamleave.members.schemas import ShiftSchedule, User

ScheduleSource = Union[User, ShiftSchedule, None]


def schedule_for_date(user: User, day: date) -> Optional[ShiftSchedule]:
    """The schedule version in force for ``user`` on ``day``.

    Days on or after the current schedule's start always use the current
    schedule. Earlier days use the historical version whose window contains
    them, or, failing that, the earliest version that starts after them.
    """
    current = user.shift_schedule
    if current is None:
        return None
    if day >= current.start_date or not user.shift_history:
        return current

    history = sorted(user.shift_history, key=lambda h: h.start_date)
    for historical in history:
        if historical.start_date <= day <= historical.end_date:
            return historical.as_schedule()
    for historical in history:
        if day < historical.start_date:
            return historical.as_schedule()
    return current


def _resolve(source: ScheduleSource, day: date) -> Optional[ShiftSchedule]:
    if isinstance(source, User):
        return schedule_for_date(source, day)
    return source


def is_working_day(day: date, source: ScheduleSource) -> bool:
    schedule = _resolve(source, day)
    if schedule is None:
        return True

    pattern = schedule.pattern
    if schedule.type == ShiftType.rotating:
        # Python's modulo is non-negative, so days before the anchor wrap correctly.
        index = (day - schedule.start_date).days % len(pattern)
    else:
        index = day.weekday()
    return pattern[index] if index < len(pattern) else False


def get_working_days(start: date, end: date, source: ScheduleSource) -> list[date]:
    """Working days in ``[start, end]`` inclusive."""
    return [d for d in iter_days(start, end) if is_working_day(d, source)]


def count_working_days(start: date, end: date, source: ScheduleSource) -> int:
    return len(get_working_days(start, end, source))


def remaining_working_days_in_year(source: ScheduleSource, today: date) -> int:
    """Raw working days from ``today`` to 31 Dec, ignoring concurrency."""
    return count_working_days(today, year_end(today.year), source)


def year_to_date_working_days(source: ScheduleSource, today: date) -> int:
    return count_working_days(year_start(today.year), today, source)
