"""Leave-reason classification.

Reasons are free text. Maternity/paternity reasons draw from a separate pool
and never take part in concurrency accounting.
"""

from __future__ import annotations

from typing import Optional

from teamleave.common.constants import ParentalLeaveType


def is_parental_leave(reason: Optional[str]) -> bool:
    """True for maternity or paternity reasons (the exempt pool)."""
    if not reason:
        return False
    lowered = reason.lower()
    return "maternity" in lowered or "paternity" in lowered


def parental_leave_kind(reason: Optional[str]) -> Optional[ParentalLeaveType]:
    """Which parental pool a reason belongs to; maternity wins when both appear."""
    if not is_parental_leave(reason):
        return None
    lowered = reason.lower()
    if "paternity" in lowered and "maternity" not in lowered:
        return ParentalLeaveType.paternity
    return ParentalLeaveType.maternity
