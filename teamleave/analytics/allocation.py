"""Fair-share allocation of a competitive group's usable-day pool.

A pool of ``P`` usable days with concurrency limit ``L`` holds ``P * L``
slot-days. When no more than ``L`` members compete, everyone can use the
whole pool; otherwise the slot-days are split evenly and capped by each
member's remaining balance.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from teamleave.members.schemas import User
from teamleave.schedule.grouping import (
    detect_partial_overlap,
    resolve_working_days_tag,
    shift_tags_match,
    subgroup_of,
)


# ─────────────────────────────────────────────────────────────────────
# Per-member share
# ─────────────────────────────────────────────────────────────────────


def base_allocation_per_member(pool: int, concurrency_limit: int, competitors: int) -> int:
    if competitors <= concurrency_limit:
        return pool
    return (pool * concurrency_limit) // competitors


def realistic_usable_days(
    pool: int,
    concurrency_limit: int,
    competitors: int,
    remaining_balance: int,
) -> int:
    """Fair share capped by balance, with at least one day from a non-empty pool.

    Members with no balance left get nothing.
    """
    if remaining_balance <= 0 or pool <= 0:
        return 0
    share = min(base_allocation_per_member(pool, concurrency_limit, max(competitors, 1)), remaining_balance)
    return max(share, 1)


def member_remainder_days(pool: int, concurrency_limit: int, competitors: int) -> int:
    """Slot-days left after an even split; zero when nobody competes for them."""
    if competitors <= concurrency_limit:
        return 0
    return (pool * concurrency_limit) % competitors


def average_days_per_member(pool: int, competitors: int) -> int:
    if competitors <= 0:
        return 0
    return pool // competitors


# ─────────────────────────────────────────────────────────────────────
# Group remainder
# ─────────────────────────────────────────────────────────────────────


def calculate_group_remainder_days(pool: int, balances: Iterable[int]) -> int:
    """Pool days the group cannot split evenly without a manual decision.

    Only members with a positive balance take part, each capped at their
    balance. Rounds hand ``pool // active`` days to every member still below
    their cap and retire members as they fill up, until the days left are
    fewer than the active members or nobody can take more.
    """
    if pool <= 0:
        return 0

    remaining = pool
    active = [b for b in balances if b > 0]
    while active and remaining >= len(active):
        share = remaining // len(active)
        still_active = []
        for balance in active:
            taken = min(share, balance)
            remaining -= taken
            if balance - taken > 0:
                still_active.append(balance - taken)
        active = still_active
    return remaining


# ─────────────────────────────────────────────────────────────────────
# Competition metrics
# ─────────────────────────────────────────────────────────────────────


def _competes_with(
    user: User,
    user_tag: str,
    other: User,
    enable_subgrouping: bool,
    today: date,
) -> bool:
    if not shift_tags_match(user.shift_tag, other.shift_tag):
        return False
    if enable_subgrouping and subgroup_of(user) != subgroup_of(other):
        return False
    if resolve_working_days_tag(other, today=today) == user_tag:
        return True
    return detect_partial_overlap(user.shift_schedule, other.shift_schedule, today=today)


def competing_members(
    user: User,
    competitors: Iterable[User],
    enable_subgrouping: bool,
    *,
    today: date,
) -> list[User]:
    """Other members of ``competitors`` in the same competitive group as ``user``.

    ``competitors`` should already be narrowed to members with a positive
    balance.
    """
    user_tag = resolve_working_days_tag(user, today=today)
    return [
        other
        for other in competitors
        if other.id != user.id
        and other.is_member
        and _competes_with(user, user_tag, other, enable_subgrouping, today)
    ]


def calculate_members_sharing_same_shift(
    user: User,
    competitors: Iterable[User],
    enable_subgrouping: bool,
    *,
    today: date,
) -> int:
    """Competitive group size including ``user``."""
    return len(competing_members(user, competitors, enable_subgrouping, today=today)) + 1


def partial_overlap_competitors(
    user: User,
    competitors: Iterable[User],
    enable_subgrouping: bool,
    *,
    today: date,
) -> list[User]:
    """Competitors matched only by partial overlap, not by an identical tag."""
    user_tag = resolve_working_days_tag(user, today=today)
    return [
        other
        for other in competing_members(user, competitors, enable_subgrouping, today=today)
        if resolve_working_days_tag(other, today=today) != user_tag
    ]
