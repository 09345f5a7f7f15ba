"""Roster pydantic v2 schemas — shift schedules and people."""

from __future__ import annotations

from typing import Optional

from pydantic import ConfigDict, Field, model_validator

from teamleave.common.constants import ParentalLeaveType, ShiftTag, ShiftType, UserRole
from teamleave.common.types import CalendarDate, Identifier, SnapshotModel


# ═════════════════════════════════════════════════════════════════════
# Shift schedules
# ═════════════════════════════════════════════════════════════════════


class ShiftSchedule(SnapshotModel):
    """Working-day pattern.

    ``fixed``: seven entries, Monday first. ``rotating``: an N-day cycle whose
    index 0 falls on ``start_date``.
    """

    model_config = ConfigDict(frozen=True)

    type: ShiftType
    pattern: tuple[bool, ...] = Field(..., min_length=1)
    start_date: CalendarDate


class HistoricalShift(ShiftSchedule):
    """A schedule version that was in force during ``[start_date, end_date]``."""

    end_date: CalendarDate

    @model_validator(mode="after")
    def validate_window(self) -> "HistoricalShift":
        if self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date.")
        return self

    def as_schedule(self) -> ShiftSchedule:
        return ShiftSchedule(type=self.type, pattern=self.pattern, start_date=self.start_date)


# ═════════════════════════════════════════════════════════════════════
# User
# ═════════════════════════════════════════════════════════════════════


class User(SnapshotModel):
    """A team member or leader as supplied by the roster."""

    id: Identifier = Field(..., alias="_id")
    username: str
    full_name: Optional[str] = None
    role: UserRole = UserRole.member
    team_id: Optional[Identifier] = None

    shift_schedule: Optional[ShiftSchedule] = None
    shift_history: list[HistoricalShift] = Field(default_factory=list)
    shift_tag: Optional[ShiftTag] = None
    # Cached; only trusted for fixed schedules.
    working_days_tag: Optional[str] = None
    subgroup_tag: Optional[str] = None

    # Year-specific overrides set by a leader
    manual_leave_balance: Optional[int] = None
    manual_year_to_date_used: Optional[int] = None
    manual_year_to_date_used_year: Optional[int] = None
    manual_maternity_leave_balance: Optional[int] = None
    manual_maternity_year_to_date_used: Optional[int] = None
    maternity_paternity_type: Optional[ParentalLeaveType] = None

    # Written by the year-end carryover job
    carryover_from_previous_year: Optional[int] = None
    carryover_expiry_date: Optional[CalendarDate] = None

    @property
    def is_member(self) -> bool:
        return self.role == UserRole.member
