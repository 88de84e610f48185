"""Tests for patrol data models."""

import pytest
from datetime import date, datetime, time, timezone

from patrol_app.state.models import (
    Caller, Patrol, PatrolPriority, PatrolStatus, Role, StatusTransition
)


class TestPatrolStatus:
    """Test PatrolStatus enum."""

    def test_terminal_statuses(self):
        assert PatrolStatus.COMPLETED.is_terminal
        assert PatrolStatus.CANCELLED.is_terminal
        assert not PatrolStatus.SCHEDULED.is_terminal
        assert not PatrolStatus.IN_PROGRESS.is_terminal


class TestPatrolRecord:
    """Test conversion between documents and Patrol."""

    def test_from_record(self, patrol_document):
        """Test a stored document is parsed into typed fields."""
        patrol = Patrol.from_record(patrol_document)

        assert patrol.id == "patrol-001"
        assert patrol.ranger_id == "ranger-001"
        assert patrol.status == PatrolStatus.SCHEDULED
        assert patrol.patrol_date == date(2024, 6, 1)
        assert patrol.start_time == time(8, 0)
        assert patrol.estimated_duration == 3.0
        assert patrol.priority == PatrolPriority.HIGH
        assert patrol.objectives == ("Check snares",)
        assert patrol.created_at == datetime(2024, 5, 20, 10, 0, tzinfo=timezone.utc)
        assert patrol.has_valid_date

    def test_round_trip_preserves_document(self, patrol_document):
        """Test to_record gives back the stored shape."""
        record = Patrol.from_record(patrol_document).to_record()

        for key, value in patrol_document.items():
            assert record[key] == value

    def test_invalid_date_flagged_and_preserved(self, patrol_document):
        """Test an unparseable date is flagged but kept verbatim."""
        patrol_document["patrolDate"] = "31/02/2024"

        patrol = Patrol.from_record(patrol_document)

        assert patrol.patrol_date is None
        assert not patrol.has_valid_date
        assert patrol.to_record()["patrolDate"] == "31/02/2024"

    def test_datetime_patrol_date_uses_calendar_day(self, patrol_document):
        """Test ISO datetimes stored as patrol dates keep their date part."""
        patrol_document["patrolDate"] = "2024-06-01T00:00:00.000Z"

        assert Patrol.from_record(patrol_document).patrol_date == date(2024, 6, 1)

    @pytest.mark.parametrize("value", [None, "abc", -1.5, float("nan")])
    def test_estimated_duration_parsing(self, patrol_document, value):
        """Test unusable durations become None, negatives are kept."""
        patrol_document["estimatedDuration"] = value

        patrol = Patrol.from_record(patrol_document)

        if value == -1.5:
            assert patrol.estimated_duration == -1.5
        else:
            assert patrol.estimated_duration is None

    def test_comma_separated_lists(self, patrol_document):
        """Test comma-separated text is split into items."""
        patrol_document["equipment"] = "radio, first aid kit,"

        assert Patrol.from_record(patrol_document).equipment == ("radio", "first aid kit")

    def test_with_completion(self, patrol_document):
        """Test completion sets status, end time and duration together."""
        end = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

        patrol = Patrol.from_record(patrol_document).with_completion(end, 4.0)

        assert patrol.status == PatrolStatus.COMPLETED
        assert patrol.end_time == end
        assert patrol.actual_duration == 4.0
        assert patrol.updated_at == end


class TestCaller:
    """Test Caller authorization helpers."""

    def test_owner_can_manage(self, patrol_document):
        patrol = Patrol.from_record(patrol_document)
        assert Caller("ranger-001").can_manage(patrol)

    def test_admin_can_manage(self, patrol_document):
        patrol = Patrol.from_record(patrol_document)
        assert Caller("admin-001", Role.ADMINISTRATOR).can_manage(patrol)

    def test_stranger_cannot_manage(self, patrol_document):
        patrol = Patrol.from_record(patrol_document)
        assert not Caller("ranger-002", Role.RANGER).can_manage(patrol)


class TestStatusTransition:
    """Test StatusTransition changes."""

    def test_in_progress_changes(self):
        ts = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)
        transition = StatusTransition(PatrolStatus.IN_PROGRESS, ts, "schedule_start")

        assert transition.changes() == {
            "status": "in_progress",
            "updatedAt": ts.isoformat(),
        }

    def test_completed_changes(self):
        ts = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
        transition = StatusTransition(
            PatrolStatus.COMPLETED, ts, "schedule_end", end_time=ts, actual_duration=4.0
        )

        assert transition.changes() == {
            "status": "completed",
            "updatedAt": ts.isoformat(),
            "endTime": ts.isoformat(),
            "actualDuration": 4.0,
        }
