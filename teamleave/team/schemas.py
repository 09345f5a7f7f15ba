"""Team pydantic v2 schemas — team record and its nested settings.

Field names are snake_case; the camelCase keys used by the team documents
(``concurrentLeave``, ``carryoverSettings`` ...) are accepted as aliases.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator

from teamleave.common.constants import CountingMethod
from teamleave.common.types import CalendarDate, Identifier, SnapshotModel


# ═════════════════════════════════════════════════════════════════════
# Nested settings
# ═════════════════════════════════════════════════════════════════════


class CarryoverSettings(SnapshotModel):
    """Limits applied to leave rolled into the following year."""

    limited_to_months: list[int] = Field(
        default_factory=list,
        description="0-based month indices (0 = January) in which carryover may be used",
    )
    max_carryover_days: Optional[int] = Field(None, ge=0)
    expiry_date: Optional[CalendarDate] = None

    @field_validator("limited_to_months")
    @classmethod
    def months_in_range(cls, v: list[int]) -> list[int]:
        for month in v:
            if not 0 <= month <= 11:
                raise ValueError("limited_to_months entries must be between 0 and 11.")
        return sorted(set(v))


class BypassNoticeWindow(SnapshotModel):
    """Window during which the minimum notice period is waived."""

    enabled: bool = False
    start_date: Optional[CalendarDate] = None
    end_date: Optional[CalendarDate] = None


class ParentalLeavePolicy(SnapshotModel):
    """Separate maternity or paternity pool."""

    enabled: bool = False
    max_days: Optional[int] = Field(None, ge=0)
    counting_method: CountingMethod = CountingMethod.working


class TeamSettings(SnapshotModel):
    concurrent_leave: int = Field(
        ..., description="Max people of one competitive group on leave the same day"
    )
    max_leave_per_year: int = Field(..., ge=0)
    minimum_notice_period: int = Field(0, ge=0, description="Days of advance notice")
    allow_carryover: bool = False
    carryover_settings: Optional[CarryoverSettings] = None
    enable_subgrouping: bool = False
    subgroups: list[str] = Field(default_factory=list)
    working_days_group_names: dict[str, str] = Field(
        default_factory=dict,
        description="Display names keyed by working-days tag, e.g. {'MTWTF__': 'Weekday Team'}",
    )
    bypass_notice_period: Optional[BypassNoticeWindow] = None
    maternity_leave: Optional[ParentalLeavePolicy] = None
    paternity_leave: Optional[ParentalLeavePolicy] = None


# ═════════════════════════════════════════════════════════════════════
# Team
# ═════════════════════════════════════════════════════════════════════


class Team(SnapshotModel):
    id: Optional[Identifier] = Field(None, alias="_id")
    name: str = ""
    team_username: Optional[str] = None
    leader_id: Optional[Identifier] = None
    # Left optional so a broken document still loads; the engine refuses it.
    settings: Optional[TeamSettings] = None
