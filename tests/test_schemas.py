"""Snapshot schema tests — storage keys, identifiers, dates, validation."""

from __future__ import annotations

from datetime import date, datetime

import pytest
from pydantic import ValidationError

from teamleave.common.constants import LeaveStatus, ShiftType
from teamleave.common.exceptions import NotFoundException, TeamConfigurationError, ValidationException
from teamleave.config import Settings
from teamleave.leave.schemas import LeaveRequest
from teamleave.members.schemas import HistoricalShift, ShiftSchedule, User
from teamleave.team.schemas import CarryoverSettings, Team
from tests.conftest import WEEKDAYS, _make_schedule


class TestIdentifiers:
    """Ids from any store compare equal as stripped strings."""

    def test_object_id_document(self):
        user = User.model_validate({"_id": {"$oid": "65f0c0ffee"}, "username": "alice"})
        assert user.id == "65f0c0ffee"

    def test_integer_and_padded_ids(self):
        request = LeaveRequest(user_id=42, start_date=date(2025, 3, 3), end_date=date(2025, 3, 3))
        assert request.user_id == "42"
        assert User(id="  abc ", username="x").id == "abc"

    def test_from_attributes(self):
        class Row:
            id = 7
            username = "orm"
            shift_schedule = None

        assert User.model_validate(Row()).id == "7"


class TestLeaveRequestSchema:
    def test_timestamps_become_dates(self):
        request = LeaveRequest.model_validate({
            "userId": "alice",
            "startDate": "2025-03-10T00:00:00Z",
            "endDate": datetime(2025, 3, 12, 18, 30),
            "status": "approved",
        })
        assert request.start_date == date(2025, 3, 10)
        assert request.end_date == date(2025, 3, 12)
        assert request.status == LeaveStatus.approved

    def test_start_after_end_rejected(self):
        with pytest.raises(ValidationError):
            LeaveRequest(user_id="a", start_date=date(2025, 3, 12), end_date=date(2025, 3, 10))

    def test_status_defaults_to_pending(self):
        request = LeaveRequest(user_id="a", start_date=date(2025, 3, 3), end_date=date(2025, 3, 3))
        assert request.is_approved is False
        assert request.is_emergency is False

    def test_emergency_request(self):
        request = LeaveRequest(
            user_id="a", start_date=date(2025, 3, 3), end_date=date(2025, 3, 3), requested_by="lead",
        )
        assert request.is_emergency is True


class TestScheduleSchemas:
    def test_empty_pattern_rejected(self):
        with pytest.raises(ValidationError):
            ShiftSchedule(type=ShiftType.fixed, pattern=(), start_date=date(2025, 1, 1))

    def test_schedules_are_frozen_and_hashable(self):
        a, b = _make_schedule(), _make_schedule()
        assert a == b and hash(a) == hash(b)
        with pytest.raises(ValidationError):
            a.pattern = (True,)

    def test_historical_window_validated(self):
        with pytest.raises(ValidationError):
            HistoricalShift(
                type=ShiftType.fixed, pattern=WEEKDAYS,
                start_date=date(2024, 6, 1), end_date=date(2024, 1, 1),
            )

    def test_historical_shift_as_schedule(self):
        shift = HistoricalShift(
            type=ShiftType.fixed, pattern=WEEKDAYS,
            start_date=date(2024, 1, 1), end_date=date(2024, 12, 31),
        )
        assert shift.as_schedule() == _make_schedule(start_date=date(2024, 1, 1))


class TestTeamSchema:
    def test_camel_case_document(self):
        team = Team.model_validate({
            "_id": {"$oid": "t1"},
            "name": "Support",
            "settings": {
                "concurrentLeave": 2,
                "maxLeavePerYear": 20,
                "minimumNoticePeriod": 7,
                "carryoverSettings": {"limitedToMonths": [2, 0, 2], "maxCarryoverDays": 5},
            },
        })
        assert team.id == "t1"
        assert team.settings.concurrent_leave == 2
        assert team.settings.minimum_notice_period == 7
        assert team.settings.carryover_settings.limited_to_months == [0, 2]

    def test_month_out_of_range(self):
        with pytest.raises(ValidationError):
            CarryoverSettings(limited_to_months=[12])

    def test_team_without_settings_loads(self):
        assert Team(id="t").settings is None


class TestExceptions:
    def test_to_dict(self):
        body = TeamConfigurationError("bad limit", field="concurrent_leave").to_dict()
        assert body == {
            "type": "invalid-team-configuration",
            "title": "Invalid Team Configuration",
            "detail": "bad limit",
            "errors": {"concurrent_leave": ["bad limit"]},
        }

    def test_not_found_has_no_errors_key(self):
        body = NotFoundException("User", "ghost").to_dict()
        assert body["detail"] == "User with id 'ghost' does not exist."
        assert "errors" not in body

    def test_validation_errors(self):
        exc = ValidationException({"year": ["out of range"]})
        assert exc.error_type == "validation-error"
        assert exc.errors == {"year": ["out of range"]}


class TestSettings:
    def test_defaults(self):
        cfg = Settings()
        assert cfg.PARTIAL_OVERLAP_WINDOW_DAYS == 30
        assert cfg.DEFAULT_PARENTAL_LEAVE_DAYS == 90

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("TEAMLEAVE_TIMEZONE", "Europe/Berlin")
        monkeypatch.setenv("TEAMLEAVE_DEFAULT_PARENTAL_LEAVE_DAYS", "120")
        cfg = Settings()
        assert cfg.TIMEZONE == "Europe/Berlin"
        assert cfg.DEFAULT_PARENTAL_LEAVE_DAYS == 120
