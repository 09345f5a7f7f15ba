"""Leave allocation & availability engine for shift-based teams."""

from teamleave.analytics.service import AnalyticsService
from teamleave.carryover.service import CarryoverService
from teamleave.leave.service import BalanceService

__all__ = ["AnalyticsService", "BalanceService", "CarryoverService"]
