"""Pytest configuration and shared fixtures."""

import pytest
from typing import Dict, Any
from datetime import datetime, timezone

from patrol_app.api import PatrolLifecycleAPI
from patrol_app.persistence.patrol_store import SQLitePatrolStore
from patrol_app.state.models import Caller, Role
from patrol_app.utils.time import FixedClock


@pytest.fixture
def now() -> datetime:
    """Reference instant: 2024-06-01 09:00 UTC."""
    return datetime(2024, 6, 1, 9, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(now) -> FixedClock:
    """Clock frozen at the reference instant."""
    return FixedClock(now)


@pytest.fixture
def store(tmp_path) -> SQLitePatrolStore:
    """Empty SQLite patrol store in a temporary directory."""
    return SQLitePatrolStore(str(tmp_path / "patrols.db"))


@pytest.fixture
def api(store, clock) -> PatrolLifecycleAPI:
    """API over the temporary store and frozen clock."""
    return PatrolLifecycleAPI(store=store, clock=clock)


@pytest.fixture
def ranger() -> Caller:
    return Caller(caller_id="ranger-001", role=Role.RANGER)


@pytest.fixture
def other_ranger() -> Caller:
    return Caller(caller_id="ranger-002", role=Role.RANGER)


@pytest.fixture
def admin() -> Caller:
    return Caller(caller_id="admin-001", role=Role.ADMINISTRATOR)


@pytest.fixture
def sample_patrol_fields() -> Dict[str, Any]:
    """Patrol creation fields matching the ranger patrol form."""
    return {
        "route": "North ridge loop",
        "patrolDate": "2024-06-01",
        "startTime": "08:00",
        "estimatedDuration": 3,
        "priority": "high",
        "objectives": "Check snares, Count elephants",
        "equipment": ["radio", "binoculars"],
        "notes": "Meet at gate 2",
        "status": "scheduled",
    }


@pytest.fixture
def patrol_document() -> Dict[str, Any]:
    """Stored patrol document scheduled 2024-06-01 08:00 for 3 hours."""
    return {
        "id": "patrol-001",
        "rangerId": "ranger-001",
        "route": "North ridge loop",
        "status": "scheduled",
        "patrolDate": "2024-06-01",
        "startTime": "08:00",
        "estimatedDuration": 3.0,
        "priority": "high",
        "objectives": ["Check snares"],
        "equipment": ["radio"],
        "attendees": [],
        "createdAt": "2024-05-20T10:00:00+00:00",
    }
