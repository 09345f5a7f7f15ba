"""Leave request and balance pydantic v2 schemas."""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from teamleave.common.constants import LeaveStatus
from teamleave.common.types import CalendarDate, Identifier, SnapshotModel


class LeaveRequest(SnapshotModel):
    """A leave request covering ``[start_date, end_date]`` inclusive."""

    id: Optional[Identifier] = Field(None, alias="_id")
    user_id: Identifier
    team_id: Optional[Identifier] = None
    start_date: CalendarDate
    end_date: CalendarDate
    reason: str = ""
    status: LeaveStatus = LeaveStatus.pending
    requested_by: Optional[Identifier] = Field(
        None, description="Set when a leader filed the request as an emergency"
    )

    @model_validator(mode="after")
    def validate_dates(self) -> "LeaveRequest":
        if self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date.")
        return self

    @property
    def is_approved(self) -> bool:
        return self.status == LeaveStatus.approved

    @property
    def is_emergency(self) -> bool:
        return self.requested_by is not None

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


# ═════════════════════════════════════════════════════════════════════
# Balance results
# ═════════════════════════════════════════════════════════════════════


class CarryoverProjection(BaseModel):
    """Where a member's unused days end up at year end."""

    will_carryover: int = 0
    will_lose: int = 0
    limited_to_months: list[int] = Field(default_factory=list)
    max_carryover_days: Optional[int] = None
    expiry_date: Optional[date] = None


class CarryoverBalance(BaseModel):
    carried: int = 0
    used: int = 0
    balance: int = 0
    expiry_date: Optional[date] = None
    expired: bool = False
