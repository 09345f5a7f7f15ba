"""Balance service: remaining balance, surplus, carryover, parental pool.

Business logic:
  - Base balance is the member's manual override when set, else the team maximum
  - Days used come from approved regular (non-parental) requests that overlap
    the target year, counted on the member's working days
  - Manual year-to-date overrides are year-specific and ignored for past years
  - Carryover projection: unused days either carry into next year (capped,
    month-restricted, expiring) or are lost
  - Maternity/paternity leave is a separate pool with its own maximum and
    counting method, and never competes for concurrency slots
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional

from teamleave.common.constants import CountingMethod, ParentalLeaveType
from teamleave.common.dates import clip_to_year, iter_days, month_end, year_end
from teamleave.leave.reasons import is_parental_leave, parental_leave_kind
from teamleave.leave.schemas import CarryoverBalance, CarryoverProjection, LeaveRequest
from teamleave.members.schemas import User
from teamleave.schedule.calendar import ScheduleSource, count_working_days, is_working_day
from teamleave.team.schemas import CarryoverSettings, TeamSettings

logger = logging.getLogger(__name__)


def regular_approved_requests(requests: Iterable[LeaveRequest]) -> list[LeaveRequest]:
    """Approved requests that draw from the ordinary annual balance."""
    return [r for r in requests if r.is_approved and not is_parental_leave(r.reason)]


# ═════════════════════════════════════════════════════════════════════
# BalanceService
# ═════════════════════════════════════════════════════════════════════


class BalanceService:
    """Pure balance arithmetic over one member's snapshot."""

    # ─────────────────────────────────────────────────────────────────
    # Manual overrides
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def effective_manual_leave_balance(user: User, year: int, today: date) -> Optional[int]:
        if year < today.year:
            return None
        return user.manual_leave_balance

    @staticmethod
    def effective_manual_year_to_date_used(user: User, year: int, today: date) -> Optional[int]:
        """The manual days-used override, if it applies to ``year``.

        An override without a year is a legacy value for the current year.
        Past years never use overrides; they are recomputed from requests.
        """
        if user.manual_year_to_date_used is None:
            return None
        if year < today.year:
            logger.debug(
                "Ignoring manual year-to-date override for user %s in historical year %s",
                user.id, year,
            )
            return None
        override_year = user.manual_year_to_date_used_year
        if override_year is None or override_year == year:
            return user.manual_year_to_date_used
        return None

    # ─────────────────────────────────────────────────────────────────
    # Annual balance
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def base_leave_balance(user: User, team_settings: TeamSettings, year: int, today: date) -> int:
        manual = BalanceService.effective_manual_leave_balance(user, year, today)
        return manual if manual is not None else team_settings.max_leave_per_year

    @staticmethod
    def working_days_used(
        requests: Iterable[LeaveRequest],
        schedule: ScheduleSource,
        year: int,
    ) -> int:
        """Working days covered by approved regular requests inside ``year``.

        Future approved dates count too: they are already committed.
        """
        total = 0
        for request in regular_approved_requests(requests):
            window = clip_to_year(request.start_date, request.end_date, year)
            if window is None:
                continue
            total += count_working_days(window[0], window[1], schedule)
        return total

    @staticmethod
    def days_used(
        user: User,
        requests: Iterable[LeaveRequest],
        year: int,
        today: date,
    ) -> int:
        manual = BalanceService.effective_manual_year_to_date_used(user, year, today)
        if manual is not None:
            return manual
        own = [r for r in requests if r.user_id == user.id]
        return BalanceService.working_days_used(own, user, year)

    @staticmethod
    def calculate_leave_balance(
        user: User,
        team_settings: TeamSettings,
        requests: Iterable[LeaveRequest],
        year: int,
        today: date,
    ) -> int:
        """Remaining annual balance; negative when a member has overdrawn."""
        base = BalanceService.base_leave_balance(user, team_settings, year, today)
        return base - BalanceService.days_used(user, requests, year, today)

    @staticmethod
    def calculate_surplus_balance(manual_balance: Optional[int], maximum: int) -> int:
        """Amount by which a manual balance exceeds the team maximum."""
        if manual_balance is None:
            return 0
        return max(0, manual_balance - maximum)

    # ─────────────────────────────────────────────────────────────────
    # Carryover
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def calculate_carryover_days(
        remaining_balance: int,
        realistic_usable_days: int,
        allow_carryover: bool,
        carryover_settings: Optional[CarryoverSettings],
        *,
        year: int,
        today: date,
    ) -> CarryoverProjection:
        """Split the days a member cannot take this year into carried and lost.

        The usability window for carried days lies in ``year + 1``; once its
        last limited month, or an explicit expiry date, is behind ``today``
        nothing carries.
        """
        unused = max(0, remaining_balance - realistic_usable_days)
        if not allow_carryover:
            return CarryoverProjection(will_carryover=0, will_lose=unused)

        cs = carryover_settings or CarryoverSettings()
        projection = CarryoverProjection(
            limited_to_months=list(cs.limited_to_months),
            max_carryover_days=cs.max_carryover_days,
            expiry_date=cs.expiry_date,
        )

        if cs.expiry_date is not None and cs.expiry_date < today:
            projection.will_lose = unused
            return projection

        if cs.limited_to_months:
            window_end = month_end(year + 1, max(cs.limited_to_months))
            if window_end < today:
                projection.will_lose = unused
                return projection

        if cs.max_carryover_days is not None and unused > cs.max_carryover_days:
            projection.will_carryover = cs.max_carryover_days
            projection.will_lose = unused - cs.max_carryover_days
        else:
            projection.will_carryover = unused
        return projection

    @staticmethod
    def realistic_carryover_usable_days(
        will_carryover: int,
        allow_carryover: bool,
        carryover_settings: Optional[CarryoverSettings],
        schedule: ScheduleSource,
        year: int,
    ) -> int:
        """Carried days the member can actually take inside next year's window."""
        if not allow_carryover or will_carryover <= 0:
            return 0
        months = carryover_settings.limited_to_months if carryover_settings else []
        if not months:
            return will_carryover
        next_year = year + 1
        available = sum(
            count_working_days(date(next_year, m + 1, 1), month_end(next_year, m), schedule)
            for m in months
        )
        return min(will_carryover, available)

    @staticmethod
    def calculate_carryover_balance(
        user: User,
        team_settings: TeamSettings,
        requests: Iterable[LeaveRequest],
        year: int,
        today: date,
    ) -> CarryoverBalance:
        """What is left of the days carried in from the previous year.

        Approved regular days taken inside the usability window (limited
        months, up to the expiry date) consume carryover first. Once the
        person's or the team's expiry date has passed the balance is zero.
        """
        carried = user.carryover_from_previous_year or 0
        cs = team_settings.carryover_settings or CarryoverSettings()
        expiry = user.carryover_expiry_date or cs.expiry_date
        if carried <= 0:
            return CarryoverBalance(expiry_date=expiry)

        manual_used = BalanceService.effective_manual_year_to_date_used(user, year, today)
        if manual_used is not None and not cs.limited_to_months and expiry is None:
            eligible = manual_used
        else:
            months = set(cs.limited_to_months)
            eligible = 0
            for request in regular_approved_requests(r for r in requests if r.user_id == user.id):
                window = clip_to_year(request.start_date, request.end_date, year)
                if window is None:
                    continue
                for day in iter_days(window[0], window[1]):
                    if months and day.month - 1 not in months:
                        continue
                    if expiry is not None and day > expiry:
                        continue
                    if is_working_day(day, user):
                        eligible += 1

        used = min(carried, eligible)
        expired = expiry is not None and expiry < today
        return CarryoverBalance(
            carried=carried,
            used=used,
            balance=0 if expired else carried - used,
            expiry_date=expiry,
            expired=expired,
        )

    # ─────────────────────────────────────────────────────────────────
    # Parental pool
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def count_parental_leave_days(
        start: date,
        end: date,
        counting_method: CountingMethod,
        schedule: ScheduleSource,
    ) -> int:
        if start > end:
            return 0
        if counting_method == CountingMethod.calendar:
            return (end - start).days + 1
        return count_working_days(start, end, schedule)

    @staticmethod
    def parental_requests(
        requests: Iterable[LeaveRequest],
        kind: ParentalLeaveType,
    ) -> list[LeaveRequest]:
        return [
            r for r in requests
            if r.is_approved and parental_leave_kind(r.reason) == kind
        ]

    @staticmethod
    def parental_days_taken(
        requests: Iterable[LeaveRequest],
        counting_method: CountingMethod,
        schedule: ScheduleSource,
        year: int,
        until: Optional[date] = None,
    ) -> int:
        """Days of ``requests`` inside ``year``, optionally only up to ``until``."""
        last_day = year_end(year) if until is None else min(until, year_end(year))
        total = 0
        for request in requests:
            window = clip_to_year(request.start_date, request.end_date, year)
            if window is None:
                continue
            start, end = window[0], min(window[1], last_day)
            total += BalanceService.count_parental_leave_days(start, end, counting_method, schedule)
        return total

    @staticmethod
    def calculate_parental_leave_balance(
        maximum: int,
        requests: Iterable[LeaveRequest],
        counting_method: CountingMethod,
        schedule: ScheduleSource,
        year: int,
        manual_balance: Optional[int] = None,
        manual_used: Optional[int] = None,
    ) -> int:
        """Remaining parental balance; counts the whole year, future days included."""
        base = manual_balance if manual_balance is not None else maximum
        if manual_used is not None:
            return base - manual_used
        return base - BalanceService.parental_days_taken(
            requests, counting_method, schedule, year,
        )
