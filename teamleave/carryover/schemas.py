"""Year-end carryover pydantic v2 schemas — per-member results and team plan."""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from teamleave.members.schemas import User


class UserCarryover(BaseModel):
    """Carryover earned in ``previous_year``."""

    previous_year: int
    days_used: int
    expected_carryover: int
    expiry_date: Optional[date] = None


class CarryoverUpdate(BaseModel):
    user_id: str
    username: str
    previous_carryover: Optional[int] = None
    carryover: UserCarryover
    changed: bool
    user: User = Field(..., description="Record to store: carryover set, year overrides cleared")


class CarryoverError(BaseModel):
    user_id: Optional[str] = None
    username: str
    error: str


class TeamCarryoverPlan(BaseModel):
    """Outcome of the year-end job for one team; nothing is persisted."""

    team_name: str
    previous_year: int
    total_members: int = 0
    members_updated: int = 0
    members_with_carryover: int = 0
    total_carryover_days: int = 0
    updates: list[CarryoverUpdate] = Field(default_factory=list)
    errors: list[CarryoverError] = Field(default_factory=list)
