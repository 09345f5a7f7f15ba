"""Analytics pydantic v2 schemas — engine output records.

Naming conventions:
  - *Analytics  → per-member or per-team results
  - *Aggregate  → rolled-up totals
  - *Entry      → a member's result embedded in a team result
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from teamleave.common.constants import CountingMethod, ParentalLeaveType


# ═════════════════════════════════════════════════════════════════════
# Member
# ═════════════════════════════════════════════════════════════════════


class MemberAnalytics(BaseModel):
    """Leave position of one member for one target year."""

    year: int
    theoretical_working_days: int = Field(
        ..., description="Raw working days left in the year (whole year for past/future years)"
    )
    working_days_in_year: int
    usable_days: int = Field(..., description="Pool shared by the member's competitive group")
    realistic_usable_days: int = Field(..., description="Member's fair share of the pool")
    remainder_days: int = 0

    base_leave_balance: int
    remaining_leave_balance: int
    working_days_used: int
    surplus_balance: int = 0

    carryover_balance: int = 0
    carryover_days_used: int = 0
    allow_carryover: bool = False
    will_carryover: int = 0
    will_lose: int = 0
    carryover_limited_to_months: list[int] = Field(default_factory=list)
    carryover_max_days: Optional[int] = None
    carryover_expiry_date: Optional[date] = None
    realistic_carryover_usable_days: int = 0

    members_sharing_same_shift: int = 1
    average_days_per_member: int = 0
    has_partial_competition: bool = False
    partial_overlap_members_count: int = 0
    partial_overlap_members_with_balance: int = 0


class ParentalMemberAnalytics(BaseModel):
    """Separate maternity/paternity pool; never competes for slots."""

    leave_type: ParentalLeaveType
    counting_method: CountingMethod
    max_days: int
    base_balance: int
    remaining_balance: int
    days_used: int = Field(..., description="Days taken up to today")
    surplus_balance: int = 0


class MemberAnalyticsEntry(BaseModel):
    user_id: str
    username: str
    full_name: Optional[str] = None
    analytics: MemberAnalytics


class MemberAnalyticsError(BaseModel):
    """A member whose computation failed; left out of every total."""

    user_id: str
    username: str
    error: str


# ═════════════════════════════════════════════════════════════════════
# Team
# ═════════════════════════════════════════════════════════════════════


class TeamAggregate(BaseModel):
    members_count: int = 0
    total_theoretical_working_days: int = 0
    total_usable_days: int = Field(0, description="One pool per competitive group")
    total_realistic_usable_days: int = 0
    total_remainder_days: int = Field(0, description="One remainder per competitive group")
    total_remaining_leave_balance: int = 0
    average_remaining_balance: int = 0
    total_will_carryover: int = 0
    total_will_lose: int = 0
    average_days_per_member_across_team: int = 0


class TeamAnalytics(BaseModel):
    year: int
    aggregate: TeamAggregate
    members: list[MemberAnalyticsEntry] = Field(default_factory=list)
    errors: list[MemberAnalyticsError] = Field(default_factory=list)


# ═════════════════════════════════════════════════════════════════════
# Grouped
# ═════════════════════════════════════════════════════════════════════


class GroupAggregate(BaseModel):
    group_total_members: int = 0
    group_usable_days: int = 0
    group_total_realistic_usable_days: int = 0
    group_average_realistic_usable_days: int = Field(
        0, description="Floor average over members with realistic days > 0"
    )
    group_total_remainder_days: int = 0
    group_total_leave_balance: int = 0
    group_average_leave_balance: int = 0
    group_average_usable_days: float = 0.0


class GroupAnalytics(BaseModel):
    group_key: str
    group_name: Optional[str] = None
    subgroup_tag: str
    shift_tag: str
    working_days_tag: str
    aggregate: GroupAggregate
    members: list[MemberAnalyticsEntry] = Field(default_factory=list)


class GroupedTeamAnalytics(BaseModel):
    year: int
    aggregate: TeamAggregate
    groups: list[GroupAnalytics] = Field(default_factory=list)
    errors: list[MemberAnalyticsError] = Field(default_factory=list)


# ═════════════════════════════════════════════════════════════════════
# Leave frequency
# ═════════════════════════════════════════════════════════════════════


class LeaveFrequencyPoint(BaseModel):
    period: str = Field(..., description="Display label, e.g. 'January 2025'")
    period_key: str = Field(..., description="Sort key: 'YYYY-MM' or ISO 'YYYY-Www'")
    working_days_used: int = 0
    request_count: int = 0
