"""Schedule grouping pydantic v2 schemas — subgroup suggestions."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class SubgroupSuggestion(BaseModel):
    member_id: str
    suggested_subgroup: str
    reason: Literal["partial-overlap", "manual-override"] = "partial-overlap"
    overlapping_members: list[str] = Field(default_factory=list)


class SubgroupConflict(BaseModel):
    """Member already placed in a different named subgroup than suggested."""

    member_id: str
    current_subgroup: str
    suggested_subgroup: str
    reason: str


class SubgroupSuggestions(BaseModel):
    suggestions: list[SubgroupSuggestion] = Field(default_factory=list)
    conflicts: list[SubgroupConflict] = Field(default_factory=list)
