"""Shared test fixtures — snapshot factories and a pinned clock.

Every test passes ``today`` explicitly so results never depend on the date
the suite runs.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

import pytest

from teamleave.common.constants import LeaveStatus, ShiftType, UserRole
from teamleave.leave.schemas import LeaveRequest
from teamleave.members.schemas import ShiftSchedule, User
from teamleave.team.schemas import Team, TeamSettings

# Monday
TODAY = date(2025, 3, 3)

WEEKDAYS = (True, True, True, True, True, False, False)
WEEKENDS = (False, False, False, False, False, True, True)


# ── Model factories ─────────────────────────────────────────────────

def _make_schedule(
    pattern: tuple[bool, ...] = WEEKDAYS,
    *,
    type: ShiftType = ShiftType.fixed,
    start_date: date = date(2024, 1, 1),
) -> ShiftSchedule:
    return ShiftSchedule(type=type, pattern=pattern, start_date=start_date)


def _make_user(
    user_id: str,
    *,
    schedule: Optional[ShiftSchedule] = None,
    no_schedule: bool = False,
    role: UserRole = UserRole.member,
    **fields,
) -> User:
    return User(
        id=user_id,
        username=fields.pop("username", user_id),
        role=role,
        shift_schedule=None if no_schedule else (schedule or _make_schedule()),
        **fields,
    )


def _make_team(
    *,
    concurrent_leave: int = 2,
    max_leave_per_year: int = 20,
    **settings,
) -> Team:
    return Team(
        id="team-1",
        name="Support",
        settings=TeamSettings(
            concurrent_leave=concurrent_leave,
            max_leave_per_year=max_leave_per_year,
            **settings,
        ),
    )


def _make_request(
    user_id: str,
    start: date,
    end: Optional[date] = None,
    *,
    status: LeaveStatus = LeaveStatus.approved,
    reason: str = "vacation",
    **fields,
) -> LeaveRequest:
    return LeaveRequest(
        user_id=user_id,
        start_date=start,
        end_date=end or start,
        status=status,
        reason=reason,
        **fields,
    )


# ── Fixtures ────────────────────────────────────────────────────────

@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def team() -> Team:
    """Concurrency 2, 20 days a year, no notice period, no carryover."""
    return _make_team()


@pytest.fixture
def weekday_trio() -> list[User]:
    """Three Mon-Fri members with identical tags."""
    return [_make_user(uid) for uid in ("alice", "bob", "carol")]
