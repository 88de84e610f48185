"""Tests for manual status transitions."""

import pytest
from datetime import date, datetime, time, timezone

from patrol_app.errors import ForbiddenError, InvalidTransitionError, ValidationError
from patrol_app.state.models import Caller, Patrol, PatrolStatus, Role
from patrol_app.state.transitions import (
    ALLOWED_MANUAL_TARGETS, StatusTransitionHandler, parse_status
)

NOW = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)
OWNER = Caller(caller_id="ranger-001", role=Role.RANGER)


def make_patrol(status: PatrolStatus) -> Patrol:
    return Patrol(
        id="patrol-001",
        ranger_id="ranger-001",
        route="North ridge loop",
        status=status,
        patrol_date=date(2024, 6, 1),
        start_time=time(8, 0),
        estimated_duration=3.0,
    )


class TestParseStatus:
    """Test requested status parsing."""

    def test_known_status(self):
        assert parse_status("cancelled") == PatrolStatus.CANCELLED

    @pytest.mark.parametrize("value", [None, "", "finished", "CANCELLED"])
    def test_invalid_status(self, value):
        """Test missing or unknown values are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            parse_status(value)
        assert exc_info.value.field == "status"


class TestStatusTransitionHandler:
    """Test StatusTransitionHandler class."""

    def setup_method(self):
        self.handler = StatusTransitionHandler()

    @pytest.mark.parametrize("current", [
        PatrolStatus.SCHEDULED, PatrolStatus.IN_PROGRESS, PatrolStatus.CANCELLED
    ])
    @pytest.mark.parametrize("requested", list(PatrolStatus))
    def test_non_completed_accepts_any_target(self, current, requested):
        """Test any status can be requested while the patrol is not completed."""
        changes = self.handler.manual_changes(make_patrol(current), requested, OWNER, NOW)

        assert changes == {"status": requested.value, "updatedAt": NOW.isoformat()}

    def test_completed_to_cancelled_allowed(self):
        """Test a completed patrol can be cancelled."""
        changes = self.handler.manual_changes(
            make_patrol(PatrolStatus.COMPLETED), PatrolStatus.CANCELLED, OWNER, NOW
        )
        assert changes["status"] == "cancelled"
        assert "endTime" not in changes
        assert "actualDuration" not in changes

    @pytest.mark.parametrize("requested", [
        PatrolStatus.SCHEDULED, PatrolStatus.IN_PROGRESS, PatrolStatus.COMPLETED
    ])
    def test_completed_to_anything_else_rejected(self, requested):
        """Test completed patrols only move to cancelled."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            self.handler.manual_changes(make_patrol(PatrolStatus.COMPLETED), requested, OWNER, NOW)

        assert exc_info.value.current_status == "completed"
        assert exc_info.value.requested_status == requested.value

    def test_admin_may_change_any_patrol(self):
        """Test administrators are authorized."""
        admin = Caller(caller_id="admin-001", role=Role.ADMINISTRATOR)

        changes = self.handler.manual_changes(
            make_patrol(PatrolStatus.SCHEDULED), PatrolStatus.CANCELLED, admin, NOW
        )
        assert changes["status"] == "cancelled"

    @pytest.mark.parametrize("role", [Role.RANGER, Role.RESEARCHER, Role.VOLUNTEER])
    def test_other_callers_forbidden(self, role):
        """Test non-owners without the admin role are refused."""
        caller = Caller(caller_id="someone-else", role=role)

        with pytest.raises(ForbiddenError):
            self.handler.manual_changes(
                make_patrol(PatrolStatus.SCHEDULED), PatrolStatus.CANCELLED, caller, NOW
            )

    def test_authorization_checked_before_transition_rule(self):
        """Test a stranger gets Forbidden even for an invalid transition."""
        caller = Caller(caller_id="someone-else", role=Role.RANGER)

        with pytest.raises(ForbiddenError):
            self.handler.manual_changes(
                make_patrol(PatrolStatus.COMPLETED), PatrolStatus.SCHEDULED, caller, NOW
            )

    def test_allowed_targets_table(self):
        """Test completed is the only restricted source."""
        assert ALLOWED_MANUAL_TARGETS[PatrolStatus.COMPLETED] == {PatrolStatus.CANCELLED}
        for status in (PatrolStatus.SCHEDULED, PatrolStatus.IN_PROGRESS, PatrolStatus.CANCELLED):
            assert ALLOWED_MANUAL_TARGETS[status] == set(PatrolStatus)
