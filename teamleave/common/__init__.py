"""Common module — shared enums, exceptions, types and date helpers."""

from teamleave.common.constants import (
    CountingMethod,
    FrequencyPeriod,
    LeaveStatus,
    ParentalLeaveType,
    ShiftTag,
    ShiftType,
    UserRole,
)
from teamleave.common.exceptions import (
    AppException,
    NotFoundException,
    TeamConfigurationError,
    ValidationException,
)
from teamleave.common.types import CalendarDate, Identifier, SnapshotModel

__all__ = [
    # Constants / Enums
    "CountingMethod",
    "FrequencyPeriod",
    "LeaveStatus",
    "ParentalLeaveType",
    "ShiftTag",
    "ShiftType",
    "UserRole",
    # Exceptions
    "AppException",
    "NotFoundException",
    "TeamConfigurationError",
    "ValidationException",
    # Types
    "CalendarDate",
    "Identifier",
    "SnapshotModel",
]
