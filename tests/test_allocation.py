"""Fair-share allocator tests — realistic shares, remainders, competition metrics."""

from __future__ import annotations

import pytest

from teamleave.analytics.allocation import (
    average_days_per_member,
    base_allocation_per_member,
    calculate_group_remainder_days,
    calculate_members_sharing_same_shift,
    member_remainder_days,
    partial_overlap_competitors,
    realistic_usable_days,
)
from teamleave.common.constants import ShiftTag, UserRole
from tests.conftest import TODAY, _make_schedule, _make_user

MONDAY_SATURDAY = (True, False, False, False, False, True, False)
WEEKENDS = (False, False, False, False, False, True, True)


# ═════════════════════════════════════════════════════════════════════
# Per-member share
# ═════════════════════════════════════════════════════════════════════


class TestRealisticUsableDays:
    """Share of the pool, capped by balance, at least one day."""

    def test_three_members_limit_two(self):
        """Pool 20, limit 2, three members with 10 days each."""
        assert base_allocation_per_member(20, 2, 3) == 13
        assert realistic_usable_days(20, 2, 3, 10) == 10
        assert member_remainder_days(20, 2, 3) == 1

    def test_group_within_limit_gets_full_pool(self):
        assert base_allocation_per_member(20, 2, 2) == 20
        assert realistic_usable_days(20, 2, 2, 30) == 20
        assert realistic_usable_days(20, 2, 2, 5) == 5
        assert member_remainder_days(20, 2, 2) == 0

    def test_floor_guarantee(self):
        """floor(1 * 1 / 3) is 0, but a non-empty pool grants one day."""
        assert base_allocation_per_member(1, 1, 3) == 0
        assert realistic_usable_days(1, 1, 3, 5) == 1

    @pytest.mark.parametrize("balance", [0, -3])
    def test_no_balance_no_days(self, balance):
        assert realistic_usable_days(20, 2, 3, balance) == 0

    def test_empty_pool(self):
        assert realistic_usable_days(0, 2, 3, 10) == 0

    def test_never_exceeds_balance(self):
        for pool, limit, competitors, balance in [(20, 2, 3, 4), (50, 3, 2, 7), (9, 1, 4, 1)]:
            assert realistic_usable_days(pool, limit, competitors, balance) <= balance

    def test_average_days_per_member(self):
        assert average_days_per_member(20, 3) == 6
        assert average_days_per_member(20, 0) == 0


# ═════════════════════════════════════════════════════════════════════
# Group remainder
# ═════════════════════════════════════════════════════════════════════


class TestGroupRemainder:
    """Iterative allocation of the pool, capped by each member's balance."""

    def test_capped_members_leave_two(self):
        """6 each, then 2 days for three members still below their cap."""
        assert calculate_group_remainder_days(20, [10, 10, 10]) == 2

    def test_odd_pool_for_two(self):
        assert calculate_group_remainder_days(21, [20, 20]) == 1

    def test_later_rounds_redistribute(self):
        """6, 6, 1 then 3, 3 then one day for two members."""
        assert calculate_group_remainder_days(20, [20, 20, 1]) == 1

    def test_even_split(self):
        assert calculate_group_remainder_days(20, [10, 10]) == 0
        assert calculate_group_remainder_days(20, [20, 20, 20, 20]) == 0

    def test_zero_balances_do_not_compete(self):
        assert calculate_group_remainder_days(20, [0, 0, 30]) == 0
        assert calculate_group_remainder_days(20, [0, -2, 0]) == 0

    def test_days_beyond_every_balance_stay_unallocated(self):
        assert calculate_group_remainder_days(20, [5, 5]) == 10

    def test_empty_pool(self):
        assert calculate_group_remainder_days(0, [5, 5, 5]) == 0

    @pytest.mark.parametrize(
        "pool, limit, balances",
        [
            (20, 2, [10, 10, 10]),
            (20, 2, [20, 20, 1]),
            (37, 3, [12, 40, 3, 9, 25]),
            (15, 1, [2, 2, 30, 30]),
            (8, 2, [8, 8, 8]),
        ],
    )
    def test_shares_fit_in_slot_days(self, pool, limit, balances):
        """Realistic shares never exceed pool * limit; the remainder never exceeds the pool."""
        competitors = sum(1 for b in balances if b > 0)
        allocated = sum(realistic_usable_days(pool, limit, competitors, b) for b in balances)
        assert allocated <= pool * limit
        assert 0 <= calculate_group_remainder_days(pool, balances) <= pool


# ═════════════════════════════════════════════════════════════════════
# Competition metrics
# ═════════════════════════════════════════════════════════════════════


class TestMembersSharingSameShift:
    """Group size counts matching competitors plus the member."""

    def test_identical_members(self):
        alice, bob, carol = (_make_user(uid) for uid in ("alice", "bob", "carol"))
        assert calculate_members_sharing_same_shift(alice, [alice, bob, carol], False, today=TODAY) == 3

    def test_alone(self):
        assert calculate_members_sharing_same_shift(_make_user("solo"), [], False, today=TODAY) == 1

    def test_shift_tag_mismatch_excluded(self):
        alice = _make_user("alice", shift_tag=ShiftTag.day)
        others = [_make_user("bob", shift_tag=ShiftTag.day), _make_user("night", shift_tag=ShiftTag.night)]
        assert calculate_members_sharing_same_shift(alice, others, False, today=TODAY) == 2

    def test_subgroup_mismatch_excluded_when_enabled(self):
        alice = _make_user("alice", subgroup_tag="Red")
        bob = _make_user("bob", subgroup_tag="Blue")
        assert calculate_members_sharing_same_shift(alice, [bob], False, today=TODAY) == 2
        assert calculate_members_sharing_same_shift(alice, [bob], True, today=TODAY) == 1

    def test_leaders_do_not_compete(self):
        alice = _make_user("alice")
        lead = _make_user("lead", role=UserRole.leader)
        assert calculate_members_sharing_same_shift(alice, [lead], False, today=TODAY) == 1

    def test_partial_overlap_competes(self):
        alice = _make_user("alice")
        eve = _make_user("eve", schedule=_make_schedule(MONDAY_SATURDAY))
        weekend = _make_user("weekend", schedule=_make_schedule(WEEKENDS))
        assert calculate_members_sharing_same_shift(alice, [eve, weekend], False, today=TODAY) == 2

    def test_partial_overlap_competitors_excludes_identical_tags(self):
        alice = _make_user("alice")
        members = [_make_user("bob"), _make_user("eve", schedule=_make_schedule(MONDAY_SATURDAY))]
        assert [m.id for m in partial_overlap_competitors(alice, members, False, today=TODAY)] == ["eve"]
