"""Grouping keys: working-days tags, shift/subgroup matching, partial overlap.

Fixed-schedule tags are stable (``MTWTF__``). Rotating-schedule tags are a
10-day binary look-ahead from "today" and change daily, so they are always
regenerated and never read back from ``User.working_days_tag``.
"""

from __future__ import annotations

from datetime import date, timedelta
from functools import lru_cache
from typing import Optional

from teamleave.common.constants import (
    ALL_MEMBERS_GROUP,
    DAYS_PER_WEEK,
    NO_SCHEDULE_TAG,
    NO_SHIFT_TAG,
    OFF_DAY_MARK,
    ROTATING_TAG_DAYS,
    UNGROUPED,
    WEEKDAY_LETTERS,
    ShiftTag,
    ShiftType,
)
from teamleave.common.dates import resolve_today
from teamleave.config import settings
from teamleave.members.schemas import ShiftSchedule, User
from teamleave.schedule.calendar import is_working_day
from teamleave.schedule.schemas import (
    SubgroupConflict,
    SubgroupSuggestion,
    SubgroupSuggestions,
)


# ─────────────────────────────────────────────────────────────────────
# Working-days tags
# ─────────────────────────────────────────────────────────────────────


@lru_cache(maxsize=4096)
def _rotating_tag(schedule: ShiftSchedule, today: date) -> str:
    return "".join(
        "1" if is_working_day(today + timedelta(days=i), schedule) else "0"
        for i in range(ROTATING_TAG_DAYS)
    )


def generate_working_days_tag(
    schedule: Optional[ShiftSchedule],
    *,
    today: Optional[date] = None,
) -> str:
    if schedule is None:
        return NO_SCHEDULE_TAG

    if schedule.type == ShiftType.fixed:
        week = (list(schedule.pattern[:DAYS_PER_WEEK]) + [False] * DAYS_PER_WEEK)[:DAYS_PER_WEEK]
        return "".join(
            letter if working else OFF_DAY_MARK
            for letter, working in zip(WEEKDAY_LETTERS, week)
        )

    return _rotating_tag(schedule, resolve_today(today))


def pattern_from_working_days_tag(tag: str) -> tuple[bool, ...]:
    """Inverse of the fixed-schedule tag: ``"MTWTF__"`` → Mon-Fri pattern."""
    if len(tag) != DAYS_PER_WEEK:
        raise ValueError(f"Fixed working-days tag must have {DAYS_PER_WEEK} characters: {tag!r}")
    pattern: list[bool] = []
    for letter, char in zip(WEEKDAY_LETTERS, tag):
        if char == OFF_DAY_MARK:
            pattern.append(False)
        elif char == letter:
            pattern.append(True)
        else:
            raise ValueError(f"Unexpected character {char!r} in working-days tag {tag!r}")
    return tuple(pattern)


def resolve_working_days_tag(user: User, *, today: Optional[date] = None) -> str:
    """Tag for ``user``: regenerated for rotating schedules, cached otherwise."""
    schedule = user.shift_schedule
    if schedule is not None and schedule.type == ShiftType.rotating:
        return generate_working_days_tag(schedule, today=today)
    return user.working_days_tag or generate_working_days_tag(schedule, today=today)


def subgroup_of(user_or_tag) -> str:
    tag = user_or_tag.subgroup_tag if isinstance(user_or_tag, User) else user_or_tag
    return tag or UNGROUPED


def competitive_group_key(
    user: User,
    enable_subgrouping: bool,
    *,
    today: Optional[date] = None,
) -> tuple[str, str, str]:
    """``(subgroup, shift tag, working-days tag)`` used to bucket aggregates."""
    subgroup = subgroup_of(user) if enable_subgrouping else ALL_MEMBERS_GROUP
    shift = user.shift_tag.value if user.shift_tag else NO_SHIFT_TAG
    return subgroup, shift, resolve_working_days_tag(user, today=today)


# ─────────────────────────────────────────────────────────────────────
# Partial overlap
# ─────────────────────────────────────────────────────────────────────


@lru_cache(maxsize=8192)
def _schedules_overlap(a: ShiftSchedule, b: ShiftSchedule, window_days: int, today: date) -> bool:
    for offset in range(window_days):
        day = today + timedelta(days=offset)
        if is_working_day(day, a) and is_working_day(day, b):
            return True
    return False


def detect_partial_overlap(
    a: Optional[ShiftSchedule],
    b: Optional[ShiftSchedule],
    window_days: Optional[int] = None,
    *,
    today: Optional[date] = None,
) -> bool:
    """True when both schedules work on at least one day of the look-ahead window."""
    if a is None or b is None:
        return False
    window = settings.PARTIAL_OVERLAP_WINDOW_DAYS if window_days is None else window_days
    return _schedules_overlap(a, b, window, resolve_today(today))


def find_members_with_partial_overlap(
    user: User,
    members: list[User],
    window_days: Optional[int] = None,
    *,
    today: Optional[date] = None,
) -> list[User]:
    if user.shift_schedule is None:
        return []
    return [
        member
        for member in members
        if member.id != user.id
        and member.shift_schedule is not None
        and detect_partial_overlap(
            user.shift_schedule, member.shift_schedule, window_days, today=today,
        )
    ]


def group_members_by_partial_overlap(
    members: list[User],
    window_days: Optional[int] = None,
    *,
    today: Optional[date] = None,
) -> dict[str, list[User]]:
    """Transitive overlap groups keyed by the id of the member that seeded them.

    A overlaps B and B overlaps C puts A, B and C in one group even when A and
    C never work the same day. Members without a schedule are left out.
    """
    today = resolve_today(today)
    scheduled = [m for m in members if m.shift_schedule is not None]
    groups: dict[str, list[User]] = {}
    seen: set[str] = set()

    for seed in scheduled:
        if seed.id in seen:
            continue
        seen.add(seed.id)
        group = [seed]
        stack = [seed]
        while stack:
            current = stack.pop()
            for other in scheduled:
                if other.id in seen:
                    continue
                if detect_partial_overlap(
                    current.shift_schedule, other.shift_schedule, window_days, today=today,
                ):
                    seen.add(other.id)
                    group.append(other)
                    stack.append(other)
        groups[seed.id] = group

    return groups


def suggest_subgroup_assignments(
    members: list[User],
    existing_subgroups: list[str],
    window_days: Optional[int] = None,
    *,
    today: Optional[date] = None,
) -> SubgroupSuggestions:
    """Map each overlap group onto the team's subgroups, round-robin."""
    if not existing_subgroups:
        return SubgroupSuggestions()

    overlap_groups = group_members_by_partial_overlap(members, window_days, today=today)
    result = SubgroupSuggestions()

    for index, group in enumerate(overlap_groups.values()):
        suggested = existing_subgroups[index % len(existing_subgroups)]
        for member in group:
            current = subgroup_of(member)
            result.suggestions.append(
                SubgroupSuggestion(
                    member_id=member.id,
                    suggested_subgroup=suggested,
                    overlapping_members=[m.id for m in group if m.id != member.id],
                )
            )
            if current != suggested and current != UNGROUPED:
                result.conflicts.append(
                    SubgroupConflict(
                        member_id=member.id,
                        current_subgroup=current,
                        suggested_subgroup=suggested,
                        reason=f"Has partial overlap with members in {suggested}",
                    )
                )

    return result


# ─────────────────────────────────────────────────────────────────────
# Competitive matching
# ─────────────────────────────────────────────────────────────────────


def working_days_match(
    subject_tag: Optional[str],
    subject_schedule: Optional[ShiftSchedule],
    other_tag: str,
    other_schedule: Optional[ShiftSchedule],
    *,
    today: date,
) -> bool:
    """Exact working-days tag, or failing that a partial overlap."""
    if subject_tag is not None and other_tag == subject_tag:
        return True
    return detect_partial_overlap(subject_schedule, other_schedule, today=today)


def shift_tags_match(a: Optional[ShiftTag], b: Optional[ShiftTag]) -> bool:
    """Untagged only matches untagged."""
    return a == b
