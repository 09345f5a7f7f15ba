"""Enums and constants for the leave allocation engine."""

from __future__ import annotations

import enum


# ── Roster ──────────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    leader = "leader"
    member = "member"


class ShiftTag(str, enum.Enum):
    day = "day"
    night = "night"
    mixed = "mixed"


# ── Schedules ───────────────────────────────────────────────────────

class ShiftType(str, enum.Enum):
    fixed = "fixed"
    rotating = "rotating"


# ── Leave ───────────────────────────────────────────────────────────

class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class ParentalLeaveType(str, enum.Enum):
    maternity = "maternity"
    paternity = "paternity"


class CountingMethod(str, enum.Enum):
    calendar = "calendar"
    working = "working"


class FrequencyPeriod(str, enum.Enum):
    month = "month"
    week = "week"


# ── Grouping tags ───────────────────────────────────────────────────

WEEKDAY_LETTERS = ("M", "T", "W", "T", "F", "S", "S")   # Monday first
OFF_DAY_MARK = "_"
NO_SCHEDULE_TAG = "no-schedule"
NO_SHIFT_TAG = "no-tag"
UNGROUPED = "Ungrouped"
ALL_MEMBERS_GROUP = "All"

ROTATING_TAG_DAYS = 10
DAYS_PER_WEEK = 7
