"""Year-end carryover planner.

Run once per team after a year closes. Works out how many days each person
carries into the new year and returns updated person records with the
year-specific manual overrides cleared. Storing them is up to the caller.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional

from teamleave.carryover.schemas import (
    CarryoverError,
    CarryoverUpdate,
    TeamCarryoverPlan,
    UserCarryover,
)
from teamleave.common.dates import month_end
from teamleave.leave.schemas import LeaveRequest
from teamleave.leave.service import BalanceService
from teamleave.members.schemas import User
from teamleave.team.schemas import CarryoverSettings, Team
from teamleave.team.service import require_concurrency_limit

logger = logging.getLogger(__name__)


class CarryoverService:
    """Year-end carryover: per-user calculation and team-wide plan."""

    @staticmethod
    def carryover_expiry(
        carryover_settings: Optional[CarryoverSettings],
        previous_year: int,
    ) -> Optional[date]:
        """Explicit expiry, else the last day of the last limited month next year."""
        if carryover_settings is None:
            return None
        if carryover_settings.expiry_date is not None:
            return carryover_settings.expiry_date
        if carryover_settings.limited_to_months:
            return month_end(previous_year + 1, max(carryover_settings.limited_to_months))
        return None

    @staticmethod
    def calculate_user_carryover(
        user: User,
        team: Team,
        previous_year: int,
        approved_requests: Iterable[LeaveRequest],
    ) -> UserCarryover:
        """Days ``user`` carries out of ``previous_year``.

        Usage is always recomputed from requests; manual overrides belong to
        the year being closed and are not consulted.
        """
        cfg = team.settings
        own = [r for r in approved_requests if r.user_id == user.id]
        used = BalanceService.working_days_used(own, user, previous_year)

        if not cfg.allow_carryover:
            return UserCarryover(previous_year=previous_year, days_used=used, expected_carryover=0)

        expected = max(0, cfg.max_leave_per_year - used)
        cs = cfg.carryover_settings
        if cs is not None and cs.max_carryover_days is not None:
            expected = min(expected, cs.max_carryover_days)

        return UserCarryover(
            previous_year=previous_year,
            days_used=used,
            expected_carryover=expected,
            expiry_date=CarryoverService.carryover_expiry(cs, previous_year) if expected > 0 else None,
        )

    @staticmethod
    def plan_team_carryover(
        team: Team,
        members: Iterable[User],
        all_requests: Iterable[LeaveRequest],
        previous_year: int,
    ) -> TeamCarryoverPlan:
        require_concurrency_limit(team)
        roster = list(members)
        approved = [r for r in all_requests if r.is_approved]
        plan = TeamCarryoverPlan(
            team_name=team.name,
            previous_year=previous_year,
            total_members=len(roster),
        )

        for member in roster:
            try:
                result = CarryoverService.calculate_user_carryover(member, team, previous_year, approved)
            except Exception as exc:
                logger.exception("Carryover failed for %s (%s)", member.id, member.username)
                plan.errors.append(
                    CarryoverError(user_id=member.id, username=member.username, error=str(exc))
                )
                continue

            previous = member.carryover_from_previous_year
            changed = previous != result.expected_carryover
            updated = member.model_copy(
                update={
                    "carryover_from_previous_year": result.expected_carryover,
                    "carryover_expiry_date": result.expiry_date,
                    "manual_leave_balance": None,
                    "manual_year_to_date_used": None,
                    "manual_year_to_date_used_year": None,
                }
            )
            plan.updates.append(
                CarryoverUpdate(
                    user_id=member.id,
                    username=member.username,
                    previous_carryover=previous,
                    carryover=result,
                    changed=changed,
                    user=updated,
                )
            )
            if changed:
                plan.members_updated += 1
            if result.expected_carryover > 0:
                plan.members_with_carryover += 1
                plan.total_carryover_days += result.expected_carryover

        logger.info(
            "Carryover plan for team %s (%s): %s updated, %s with carryover, %s days, %s errors",
            team.name, previous_year, plan.members_updated, plan.members_with_carryover,
            plan.total_carryover_days, len(plan.errors),
        )
        return plan
