"""Analytics service layer — member, parental, team and grouped analytics.

Business logic:
  - Member analytics: theoretical and usable days, fair share, balances,
    carryover projection and competition metrics for one target year
  - Team and grouped analytics settle every competitive group
    ``(subgroup, shift tag, working-days tag)`` through one shared step, so
    both report the same totals: one pool per group, the sum of members'
    realistic days, one remainder per group
  - A member whose computation fails is logged and reported in ``errors``;
    invalid team settings abort the whole call
  - Leave frequency per month or ISO week
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

from teamleave.analytics.allocation import (
    average_days_per_member,
    calculate_group_remainder_days,
    calculate_members_sharing_same_shift,
    member_remainder_days,
    partial_overlap_competitors,
    realistic_usable_days,
)
from teamleave.analytics.availability import calculate_usable_days
from teamleave.analytics.schemas import (
    GroupAggregate,
    GroupAnalytics,
    GroupedTeamAnalytics,
    LeaveFrequencyPoint,
    MemberAnalytics,
    MemberAnalyticsEntry,
    MemberAnalyticsError,
    ParentalMemberAnalytics,
    TeamAggregate,
    TeamAnalytics,
)
from teamleave.common.constants import FrequencyPeriod
from teamleave.common.dates import iter_days, resolve_today, year_end, year_start
from teamleave.common.exceptions import (
    NotFoundException,
    TeamConfigurationError,
    ValidationException,
)
from teamleave.common.types import normalize_identifier
from teamleave.leave.schemas import LeaveRequest
from teamleave.leave.service import BalanceService, regular_approved_requests
from teamleave.members.schemas import User
from teamleave.schedule.calendar import (
    count_working_days,
    is_working_day,
    remaining_working_days_in_year,
)
from teamleave.schedule.grouping import competitive_group_key
from teamleave.team.schemas import Team, TeamSettings
from teamleave.team.service import (
    parental_policy_for,
    require_concurrency_limit,
    require_settings,
)

logger = logging.getLogger(__name__)

MIN_YEAR = 1970
MAX_YEAR = 9998


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass
class _Evaluated:
    user: User
    analytics: MemberAnalytics

    def entry(self) -> MemberAnalyticsEntry:
        return MemberAnalyticsEntry(
            user_id=self.user.id,
            username=self.user.username,
            full_name=self.user.full_name,
            analytics=self.analytics,
        )


# ═════════════════════════════════════════════════════════════════════
# AnalyticsService
# ═════════════════════════════════════════════════════════════════════


class AnalyticsService:
    """Read-only projections over a ``(Team, User[], LeaveRequest[])`` snapshot."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _resolve_year(year: Optional[int], today: date) -> int:
        if year is None:
            return today.year
        if isinstance(year, bool) or not isinstance(year, int) or not MIN_YEAR <= year <= MAX_YEAR:
            raise ValidationException(
                {"year": [f"Year must be an integer between {MIN_YEAR} and {MAX_YEAR}."]}
            )
        return year

    @staticmethod
    def _remaining_balances(
        members: Iterable[User],
        team_settings: TeamSettings,
        requests: list[LeaveRequest],
        year: int,
        today: date,
    ) -> tuple[dict[str, int], dict[str, Exception]]:
        """Remaining balance per member, plus the members it failed for."""
        balances: dict[str, int] = {}
        failures: dict[str, Exception] = {}
        for member in members:
            if not member.is_member:
                continue
            try:
                balances[member.id] = BalanceService.calculate_leave_balance(
                    member, team_settings, requests, year, today,
                )
            except Exception as exc:
                failures[member.id] = exc
        return balances, failures

    # ─────────────────────────────────────────────────────────────────
    # Member
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def get_member_analytics(
        user: User,
        team: Team,
        approved_requests: Iterable[LeaveRequest],
        all_approved_requests: Iterable[LeaveRequest],
        members: Iterable[User],
        year: Optional[int] = None,
        *,
        today: Optional[date] = None,
        remaining_balances: Optional[dict[str, int]] = None,
    ) -> MemberAnalytics:
        """Analytics for ``user`` in ``year`` (defaults to the current year).

        ``approved_requests`` are the user's own; ``all_approved_requests``
        and ``members`` describe the whole team. Past years cover the full
        year and ignore manual overrides.
        """
        limit = require_concurrency_limit(team)
        cfg = team.settings
        today = resolve_today(today)
        year = AnalyticsService._resolve_year(year, today)

        roster = list(members)
        team_requests = regular_approved_requests(all_approved_requests)
        own_requests = [r for r in approved_requests if r.user_id == user.id]

        # Days
        working_days_in_year = count_working_days(year_start(year), year_end(year), user)
        theoretical = (
            remaining_working_days_in_year(user, today) if year == today.year
            else working_days_in_year
        )
        usable = calculate_usable_days(user, team, team_requests, roster, year=year, today=today)

        # Balances
        base = BalanceService.base_leave_balance(user, cfg, year, today)
        used = BalanceService.days_used(user, own_requests, year, today)
        remaining = base - used
        surplus = BalanceService.calculate_surplus_balance(
            BalanceService.effective_manual_leave_balance(user, year, today),
            cfg.max_leave_per_year,
        )
        carryover = BalanceService.calculate_carryover_balance(user, cfg, own_requests, year, today)

        # Competition
        if remaining_balances is None:
            remaining_balances, failures = AnalyticsService._remaining_balances(
                roster, cfg, team_requests, year, today,
            )
            for member_id, exc in failures.items():
                logger.warning("Balance failed for member %s, excluded from competition: %s", member_id, exc)

        members_only = [m for m in roster if m.is_member and m.id != user.id]
        with_balance = [m for m in members_only if remaining_balances.get(m.id, 0) > 0]
        sharing = calculate_members_sharing_same_shift(
            user, with_balance, cfg.enable_subgrouping, today=today,
        )
        partial = partial_overlap_competitors(user, members_only, cfg.enable_subgrouping, today=today)
        partial_with_balance = [m for m in partial if remaining_balances.get(m.id, 0) > 0]

        realistic = realistic_usable_days(usable, limit, sharing, remaining)
        projection = BalanceService.calculate_carryover_days(
            remaining, realistic, cfg.allow_carryover, cfg.carryover_settings,
            year=year, today=today,
        )

        return MemberAnalytics(
            year=year,
            theoretical_working_days=theoretical,
            working_days_in_year=working_days_in_year,
            usable_days=usable,
            realistic_usable_days=realistic,
            remainder_days=member_remainder_days(usable, limit, sharing),
            base_leave_balance=base,
            remaining_leave_balance=remaining,
            working_days_used=used,
            surplus_balance=surplus,
            carryover_balance=carryover.balance,
            carryover_days_used=carryover.used,
            allow_carryover=cfg.allow_carryover,
            will_carryover=projection.will_carryover,
            will_lose=projection.will_lose,
            carryover_limited_to_months=projection.limited_to_months,
            carryover_max_days=projection.max_carryover_days,
            carryover_expiry_date=carryover.expiry_date or projection.expiry_date,
            realistic_carryover_usable_days=BalanceService.realistic_carryover_usable_days(
                projection.will_carryover, cfg.allow_carryover, cfg.carryover_settings, user, year,
            ),
            members_sharing_same_shift=sharing,
            average_days_per_member=average_days_per_member(usable, sharing),
            has_partial_competition=bool(partial_with_balance),
            partial_overlap_members_count=len(partial),
            partial_overlap_members_with_balance=len(partial_with_balance),
        )

    @staticmethod
    def get_member_analytics_for(
        user_id: str,
        members: Iterable[User],
        team: Team,
        all_requests: Iterable[LeaveRequest],
        year: Optional[int] = None,
        *,
        today: Optional[date] = None,
    ) -> MemberAnalytics:
        """Look ``user_id`` up in the roster and compute their analytics."""
        roster = list(members)
        user_id = normalize_identifier(user_id)
        user = next((m for m in roster if m.id == user_id), None)
        if user is None:
            raise NotFoundException("User", user_id)

        approved = [r for r in all_requests if r.is_approved]
        return AnalyticsService.get_member_analytics(
            user,
            team,
            [r for r in approved if r.user_id == user.id],
            approved,
            roster,
            year,
            today=today,
        )

    @staticmethod
    def get_parental_member_analytics(
        user: User,
        team: Team,
        approved_requests: Iterable[LeaveRequest],
        year: Optional[int] = None,
        *,
        today: Optional[date] = None,
    ) -> ParentalMemberAnalytics:
        """Maternity or paternity pool of ``user``.

        Days used stop at today; the remaining balance already deducts
        approved future days. Past years ignore manual overrides.
        """
        cfg = require_settings(team)
        today = resolve_today(today)
        year = AnalyticsService._resolve_year(year, today)

        kind, maximum, policy = parental_policy_for(user, cfg)
        requests = BalanceService.parental_requests(
            (r for r in approved_requests if r.user_id == user.id), kind,
        )

        historical = year < today.year
        manual_balance = None if historical else user.manual_maternity_leave_balance
        manual_used = None if historical else user.manual_maternity_year_to_date_used

        remaining = BalanceService.calculate_parental_leave_balance(
            maximum, requests, policy.counting_method, user, year, manual_balance, manual_used,
        )
        if manual_used is not None:
            days_used = manual_used
        else:
            days_used = BalanceService.parental_days_taken(
                requests, policy.counting_method, user, year, until=today,
            )

        return ParentalMemberAnalytics(
            leave_type=kind,
            counting_method=policy.counting_method,
            max_days=maximum,
            base_balance=manual_balance if manual_balance is not None else maximum,
            remaining_balance=remaining,
            days_used=days_used,
            surplus_balance=BalanceService.calculate_surplus_balance(manual_balance, maximum),
        )

    # ─────────────────────────────────────────────────────────────────
    # Team: evaluation and settlement
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _evaluate_members(
        members: list[User],
        team: Team,
        all_requests: Iterable[LeaveRequest],
        year: int,
        today: date,
    ) -> tuple[list[_Evaluated], list[MemberAnalyticsError]]:
        approved = [r for r in all_requests if r.is_approved]
        balances, failures = AnalyticsService._remaining_balances(
            members, team.settings, regular_approved_requests(approved), year, today,
        )

        evaluated: list[_Evaluated] = []
        errors: list[MemberAnalyticsError] = []
        for member in members:
            if not member.is_member:
                continue
            try:
                if member.id in failures:
                    raise failures[member.id]
                analytics = AnalyticsService.get_member_analytics(
                    member,
                    team,
                    [r for r in approved if r.user_id == member.id],
                    approved,
                    members,
                    year,
                    today=today,
                    remaining_balances=balances,
                )
            except TeamConfigurationError:
                raise
            except Exception as exc:
                logger.exception("Analytics failed for member %s (%s)", member.id, member.username)
                errors.append(
                    MemberAnalyticsError(user_id=member.id, username=member.username, error=str(exc))
                )
                continue
            evaluated.append(_Evaluated(member, analytics))
        return evaluated, errors

    @staticmethod
    def _group_members(
        evaluated: list[_Evaluated],
        enable_subgrouping: bool,
        today: date,
    ) -> dict[tuple[str, str, str], list[_Evaluated]]:
        groups: dict[tuple[str, str, str], list[_Evaluated]] = {}
        for item in evaluated:
            key = competitive_group_key(item.user, enable_subgrouping, today=today)
            groups.setdefault(key, []).append(item)
        return groups

    @staticmethod
    def _settle_group(
        group: list[_Evaluated],
        limit: int,
        team_settings: TeamSettings,
        year: int,
        today: date,
    ) -> tuple[int, int]:
        """Give a tag bucket one shared pool and re-divide it.

        Members whose schedules differ only in rotation anchor can count
        slightly different usable days; the bucket uses the smallest. Each
        member keeps their own competitor count, which includes partial-overlap
        competitors from other buckets. Returns ``(pool, group remainder)``.
        """
        pool = min(item.analytics.usable_days for item in group)

        for item in group:
            a = item.analytics
            sharing = a.members_sharing_same_shift
            a.usable_days = pool
            a.realistic_usable_days = realistic_usable_days(
                pool, limit, sharing, a.remaining_leave_balance,
            )
            a.remainder_days = member_remainder_days(pool, limit, sharing)
            a.average_days_per_member = average_days_per_member(pool, sharing)
            projection = BalanceService.calculate_carryover_days(
                a.remaining_leave_balance,
                a.realistic_usable_days,
                team_settings.allow_carryover,
                team_settings.carryover_settings,
                year=year,
                today=today,
            )
            a.will_carryover = projection.will_carryover
            a.will_lose = projection.will_lose
            a.realistic_carryover_usable_days = BalanceService.realistic_carryover_usable_days(
                projection.will_carryover,
                team_settings.allow_carryover,
                team_settings.carryover_settings,
                item.user,
                year,
            )

        remainder = calculate_group_remainder_days(
            pool, [item.analytics.remaining_leave_balance for item in group],
        )
        logger.debug("Settled group of %s: pool=%s remainder=%s", len(group), pool, remainder)
        return pool, remainder

    @staticmethod
    def _team_aggregate(
        evaluated: list[_Evaluated],
        total_usable: int,
        total_realistic: int,
        total_remainder: int,
    ) -> TeamAggregate:
        count = len(evaluated)
        total_remaining = sum(e.analytics.remaining_leave_balance for e in evaluated)
        return TeamAggregate(
            members_count=count,
            total_theoretical_working_days=sum(e.analytics.theoretical_working_days for e in evaluated),
            total_usable_days=total_usable,
            total_realistic_usable_days=total_realistic,
            total_remainder_days=total_remainder,
            total_remaining_leave_balance=total_remaining,
            average_remaining_balance=_round_half_up(total_remaining / count) if count else 0,
            total_will_carryover=sum(e.analytics.will_carryover for e in evaluated),
            total_will_lose=sum(e.analytics.will_lose for e in evaluated),
            average_days_per_member_across_team=total_realistic // count if count else 0,
        )

    # ─────────────────────────────────────────────────────────────────
    # Team
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def get_team_analytics(
        members: Iterable[User],
        team: Team,
        all_requests: Iterable[LeaveRequest],
        year: Optional[int] = None,
        *,
        today: Optional[date] = None,
    ) -> TeamAnalytics:
        """Per-member analytics plus team totals, counting each pool once."""
        limit = require_concurrency_limit(team)
        today = resolve_today(today)
        year = AnalyticsService._resolve_year(year, today)
        roster = list(members)

        evaluated, errors = AnalyticsService._evaluate_members(roster, team, all_requests, year, today)

        total_usable = total_remainder = 0
        groups = AnalyticsService._group_members(evaluated, team.settings.enable_subgrouping, today)
        for group in groups.values():
            pool, remainder = AnalyticsService._settle_group(group, limit, team.settings, year, today)
            total_usable += pool
            total_remainder += remainder
        total_realistic = sum(e.analytics.realistic_usable_days for e in evaluated)

        return TeamAnalytics(
            year=year,
            aggregate=AnalyticsService._team_aggregate(
                evaluated, total_usable, total_realistic, total_remainder,
            ),
            members=[e.entry() for e in evaluated],
            errors=errors,
        )

    @staticmethod
    def get_grouped_team_analytics(
        members: Iterable[User],
        team: Team,
        all_requests: Iterable[LeaveRequest],
        year: Optional[int] = None,
        *,
        today: Optional[date] = None,
    ) -> GroupedTeamAnalytics:
        """Analytics per competitive group; totals are sums of group aggregates."""
        limit = require_concurrency_limit(team)
        cfg = team.settings
        today = resolve_today(today)
        year = AnalyticsService._resolve_year(year, today)
        roster = list(members)

        evaluated, errors = AnalyticsService._evaluate_members(roster, team, all_requests, year, today)

        groups: list[GroupAnalytics] = []
        for (subgroup, shift, wd_tag), group in AnalyticsService._group_members(
            evaluated, cfg.enable_subgrouping, today,
        ).items():
            pool, remainder = AnalyticsService._settle_group(group, limit, cfg, year, today)
            size = len(group)
            total_realistic = sum(e.analytics.realistic_usable_days for e in group)
            with_days = [e for e in group if e.analytics.realistic_usable_days > 0]
            total_balance = sum(e.analytics.remaining_leave_balance for e in group)
            total_usable = sum(e.analytics.usable_days for e in group)

            groups.append(
                GroupAnalytics(
                    group_key=f"{subgroup}_{shift}_{wd_tag}",
                    group_name=cfg.working_days_group_names.get(wd_tag),
                    subgroup_tag=subgroup,
                    shift_tag=shift,
                    working_days_tag=wd_tag,
                    aggregate=GroupAggregate(
                        group_total_members=size,
                        group_usable_days=pool,
                        group_total_realistic_usable_days=total_realistic,
                        group_average_realistic_usable_days=(
                            total_realistic // len(with_days) if with_days else 0
                        ),
                        group_total_remainder_days=remainder,
                        group_total_leave_balance=total_balance,
                        group_average_leave_balance=_round_half_up(total_balance / size),
                        group_average_usable_days=round(total_usable / size, 1),
                    ),
                    members=[e.entry() for e in group],
                )
            )

        return GroupedTeamAnalytics(
            year=year,
            aggregate=AnalyticsService._team_aggregate(
                evaluated,
                sum(g.aggregate.group_usable_days for g in groups),
                sum(g.aggregate.group_total_realistic_usable_days for g in groups),
                sum(g.aggregate.group_total_remainder_days for g in groups),
            ),
            groups=groups,
            errors=errors,
        )

    # ─────────────────────────────────────────────────────────────────
    # Leave frequency
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _period_of(day: date, period: FrequencyPeriod) -> tuple[str, str]:
        """``(sort key, label)`` of the month or ISO week containing ``day``."""
        if period == FrequencyPeriod.month:
            return f"{day.year}-{day.month:02d}", day.strftime("%B %Y")
        iso_year, week, weekday = day.isocalendar()
        monday = day - timedelta(days=weekday - 1)
        sunday = monday + timedelta(days=6)
        label = f"Week {week}, {iso_year} ({monday:%b} {monday.day} - {sunday:%b} {sunday.day})"
        return f"{iso_year}-W{week:02d}", label

    @staticmethod
    def calculate_leave_frequency_by_period(
        requests: Iterable[LeaveRequest],
        members: Iterable[User],
        period_type: str = "month",
        year: Optional[int] = None,
    ) -> list[LeaveFrequencyPoint]:
        """Working days taken and requests touching each period, sorted by key."""
        try:
            period = FrequencyPeriod(period_type)
        except ValueError:
            raise ValidationException(
                {"period_type": [f"Unknown period type {period_type!r}; use 'month' or 'week'."]}
            )

        roster = {m.id: m for m in members}
        buckets: dict[str, LeaveFrequencyPoint] = {}

        for request in regular_approved_requests(requests):
            requester = roster.get(request.user_id)
            if requester is None:
                logger.debug("Skipping request %s: requester %s not in roster", request.id, request.user_id)
                continue

            start, end = request.start_date, request.end_date
            if year is not None:
                start, end = max(start, year_start(year)), min(end, year_end(year))

            touched: set[str] = set()
            for day in iter_days(start, end):
                key, label = AnalyticsService._period_of(day, period)
                if year is not None and not key.startswith(f"{year}-"):
                    continue
                point = buckets.get(key)
                if point is None:
                    point = buckets[key] = LeaveFrequencyPoint(period=label, period_key=key)
                if key not in touched:
                    touched.add(key)
                    point.request_count += 1
                if is_working_day(day, requester):
                    point.working_days_used += 1

        return [buckets[key] for key in sorted(buckets)]
