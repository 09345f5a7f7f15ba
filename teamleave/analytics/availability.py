"""Per-date concurrency slots and the usable-day pool built from them.

``calculate_date_availability`` is the single place the concurrency limit is
enforced; usable days, allocation and every aggregate derive from it.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional

from teamleave.common.constants import ShiftTag
from teamleave.common.dates import iter_days, resolve_today, year_end, year_start
from teamleave.common.types import normalize_identifier
from teamleave.leave.reasons import is_parental_leave
from teamleave.leave.schemas import LeaveRequest
from teamleave.members.schemas import ShiftSchedule, User
from teamleave.schedule.calendar import ScheduleSource, is_working_day
from teamleave.schedule.grouping import (
    resolve_working_days_tag,
    shift_tags_match,
    subgroup_of,
    working_days_match,
)
from teamleave.team.schemas import Team
from teamleave.team.service import (
    earliest_requestable_date,
    require_concurrency_limit,
)

logger = logging.getLogger(__name__)


def calculate_date_availability(
    team: Team,
    approved_requests: Iterable[LeaveRequest],
    members: Iterable[User],
    day: date,
    subject_id: str,
    subject_schedule: ScheduleSource,
    subject_working_days_tag: Optional[str] = None,
    subject_shift_tag: Optional[ShiftTag] = None,
    subject_subgroup_tag: Optional[str] = None,
    *,
    today: Optional[date] = None,
) -> int:
    """Free concurrency slots on ``day`` for the subject's competitive group.

    A requester occupies a slot when their approved regular request covers
    ``day``, they work that day, and they match the subject on working days
    (identical tag or partial overlap), on shift tag, and on subgroup when
    subgrouping is enabled. Each requester occupies at most one slot.
    """
    limit = require_concurrency_limit(team)
    if not is_working_day(day, subject_schedule):
        return 0

    today = resolve_today(today)
    subject_id = normalize_identifier(subject_id)
    plain_schedule: Optional[ShiftSchedule] = (
        subject_schedule.shift_schedule if isinstance(subject_schedule, User) else subject_schedule
    )
    enable_subgrouping = team.settings.enable_subgrouping
    roster = {m.id: m for m in members}

    on_leave: set[str] = set()
    for request in approved_requests:
        if not request.is_approved or is_parental_leave(request.reason):
            continue
        if not request.covers(day) or request.user_id == subject_id:
            continue
        if request.user_id in on_leave:
            continue
        requester = roster.get(request.user_id)
        if requester is None:
            logger.debug("Skipping request %s: requester %s not in roster", request.id, request.user_id)
            continue
        if not is_working_day(day, requester):
            continue
        if not working_days_match(
            subject_working_days_tag,
            plain_schedule,
            resolve_working_days_tag(requester, today=today),
            requester.shift_schedule,
            today=today,
        ):
            continue
        if not shift_tags_match(subject_shift_tag, requester.shift_tag):
            continue
        if enable_subgrouping and subgroup_of(subject_subgroup_tag) != subgroup_of(requester):
            continue
        on_leave.add(request.user_id)

    return max(0, limit - len(on_leave))


def usable_days_horizon(team: Team, year: int, today: date) -> tuple[date, date]:
    """``[first, last]`` days a request for ``year`` could still cover.

    Past years span the whole year. Otherwise the horizon opens at the
    earliest requestable date; the range is empty once that is past year end.
    """
    if year < today.year:
        return year_start(year), year_end(year)
    return max(earliest_requestable_date(team, today), year_start(year)), year_end(year)


def calculate_usable_days(
    subject: User,
    team: Team,
    approved_requests: Iterable[LeaveRequest],
    members: Iterable[User],
    schedule: ScheduleSource = None,
    year: Optional[int] = None,
    *,
    today: Optional[date] = None,
) -> int:
    """Working days in the horizon with at least one free slot for ``subject``.

    This is the pool the subject's competitive group draws from, not yet
    divided among competitors. ``schedule`` defaults to the subject's own
    (history-aware) schedule.
    """
    require_concurrency_limit(team)
    today = resolve_today(today)
    year = year if year is not None else today.year
    source = schedule if schedule is not None else subject

    requests = [r for r in approved_requests if r.is_approved and not is_parental_leave(r.reason)]
    roster = list(members)
    subject_tag = resolve_working_days_tag(subject, today=today)

    first, last = usable_days_horizon(team, year, today)
    usable = 0
    for day in iter_days(first, last):
        if not is_working_day(day, source):
            continue
        slots = calculate_date_availability(
            team,
            requests,
            roster,
            day,
            subject.id,
            source,
            subject_tag,
            subject.shift_tag,
            subject.subgroup_tag,
            today=today,
        )
        if slots > 0:
            usable += 1
    return usable
