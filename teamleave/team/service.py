"""Team settings guards and notice-period rules."""

from __future__ import annotations

from datetime import date, timedelta

from teamleave.common.constants import ParentalLeaveType
from teamleave.common.exceptions import TeamConfigurationError
from teamleave.config import settings as engine_settings
from teamleave.members.schemas import User
from teamleave.team.schemas import ParentalLeavePolicy, Team, TeamSettings


def require_settings(team: Team) -> TeamSettings:
    if team is None or team.settings is None:
        raise TeamConfigurationError("Team settings are missing.")
    return team.settings


def require_concurrency_limit(team: Team) -> int:
    """The team's concurrency limit, refusing anything that is not an int >= 1.

    Callers must thread the same ``Team`` instance through a whole calculation
    so every step sees this one value.
    """
    value = require_settings(team).concurrent_leave
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise TeamConfigurationError(
            f"concurrent_leave must be an integer >= 1, got {value!r}.",
            field="concurrent_leave",
        )
    return value


def is_bypass_notice_period_active(team: Team, day: date) -> bool:
    """True while an enabled bypass window covers ``day`` (bounds inclusive)."""
    bypass = require_settings(team).bypass_notice_period
    if bypass is None or not bypass.enabled:
        return False
    if bypass.start_date is None or bypass.end_date is None:
        return False
    return bypass.start_date <= day <= bypass.end_date


def earliest_requestable_date(team: Team, today: date) -> date:
    if is_bypass_notice_period_active(team, today):
        return today
    return today + timedelta(days=require_settings(team).minimum_notice_period)


def parental_policy_for(user: User, team_settings: TeamSettings) -> tuple[ParentalLeaveType, int, ParentalLeavePolicy]:
    """``(kind, max days, policy)`` for the pool ``user`` draws from.

    Users without an assigned type fall back to maternity.
    """
    if user.maternity_paternity_type == ParentalLeaveType.paternity:
        kind = ParentalLeaveType.paternity
        policy = team_settings.paternity_leave
    else:
        kind = ParentalLeaveType.maternity
        policy = team_settings.maternity_leave
    policy = policy or ParentalLeavePolicy()
    max_days = (
        policy.max_days if policy.max_days is not None
        else engine_settings.DEFAULT_PARENTAL_LEAVE_DAYS
    )
    return kind, max_days, policy
