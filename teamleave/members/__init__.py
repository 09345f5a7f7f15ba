"""Members module — roster schemas."""

from teamleave.members.schemas import HistoricalShift, ShiftSchedule, User

__all__ = ["User", "ShiftSchedule", "HistoricalShift"]
