"""
Patrol lifecycle data models.

This module defines immutable data structures for patrol records, the callers
acting on them, and the lifecycle transitions computed for them.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Optional

from ..utils.time import (
    format_instant,
    format_start_time,
    parse_hours,
    parse_instant,
    parse_patrol_date,
    parse_start_time,
)


class PatrolStatus(str, Enum):
    """Patrol lifecycle states."""
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Terminal for automatic transitions."""
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({PatrolStatus.COMPLETED, PatrolStatus.CANCELLED})
ACTIVE_STATUSES = (PatrolStatus.SCHEDULED, PatrolStatus.IN_PROGRESS)


class PatrolPriority(str, Enum):
    """Patrol priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Role(str, Enum):
    """Portal roles."""
    VOLUNTEER = "volunteer"
    RESEARCHER = "researcher"
    RANGER = "ranger"
    ADMINISTRATOR = "administrator"


@dataclass(frozen=True)
class Caller:
    """Authenticated identity performing an operation."""

    caller_id: str
    role: Role = Role.RANGER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMINISTRATOR

    def can_manage(self, patrol: "Patrol") -> bool:
        """Owner or administrator."""
        return self.is_admin or patrol.ranger_id == self.caller_id


def _as_strings(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(item.strip() for item in value.split(",") if item.strip())
    return tuple(str(item) for item in value)


def _as_status(value: Any) -> PatrolStatus:
    try:
        return PatrolStatus(value)
    except ValueError:
        return PatrolStatus.SCHEDULED


def _as_priority(value: Any) -> Optional[PatrolPriority]:
    if value is None:
        return None
    try:
        return PatrolPriority(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class Patrol:
    """A ranger field patrol tracked from scheduling through completion."""

    id: str
    ranger_id: str
    route: str
    status: PatrolStatus
    patrol_date: Optional[date] = None               # None when missing or unparseable
    start_time: Optional[time] = None                # Local wall-clock start
    estimated_duration: Optional[float] = None       # Hours

    # Lifecycle outputs, written once on completion
    end_time: Optional[datetime] = None
    actual_duration: Optional[float] = None          # Hours, 2 decimals

    priority: Optional[PatrolPriority] = None

    # Descriptive fields
    objectives: tuple[str, ...] = ()
    equipment: tuple[str, ...] = ()
    attendees: tuple[str, ...] = ()
    notes: Optional[str] = None
    findings: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Raw patrolDate value as stored, kept so invalid dates can be reported
    raw_patrol_date: Any = field(default=None, compare=False, repr=False)

    @property
    def has_valid_date(self) -> bool:
        return self.patrol_date is not None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def with_status(self, status: PatrolStatus,
                    updated_at: Optional[datetime] = None) -> "Patrol":
        """Copy with a new status; lifecycle outputs are left untouched."""
        return replace(self, status=status, updated_at=updated_at or self.updated_at)

    def with_completion(self, end_time: datetime, actual_duration: Optional[float],
                        updated_at: Optional[datetime] = None) -> "Patrol":
        """Copy marked completed with its end time and measured duration."""
        return replace(
            self,
            status=PatrolStatus.COMPLETED,
            end_time=end_time,
            actual_duration=actual_duration,
            updated_at=updated_at or end_time,
        )

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Patrol":
        """Build a patrol from a stored document."""
        raw_date = record.get("patrolDate")
        return cls(
            id=str(record.get("id")),
            ranger_id=str(record.get("rangerId")),
            route=record.get("route") or "",
            status=_as_status(record.get("status")),
            patrol_date=parse_patrol_date(raw_date),
            start_time=parse_start_time(record.get("startTime")),
            estimated_duration=parse_hours(record.get("estimatedDuration")),
            end_time=parse_instant(record.get("endTime")),
            actual_duration=parse_hours(record.get("actualDuration")),
            priority=_as_priority(record.get("priority")),
            objectives=_as_strings(record.get("objectives")),
            equipment=_as_strings(record.get("equipment")),
            attendees=_as_strings(record.get("attendees")),
            notes=record.get("notes"),
            findings=record.get("findings"),
            created_at=parse_instant(record.get("createdAt")),
            updated_at=parse_instant(record.get("updatedAt")),
            raw_patrol_date=raw_date,
        )

    def to_record(self) -> dict[str, Any]:
        """Serialize to the document shape shared by the store and the API."""
        if self.patrol_date is not None:
            patrol_date = self.patrol_date.isoformat()
        else:
            patrol_date = self.raw_patrol_date

        return {
            "id": self.id,
            "rangerId": self.ranger_id,
            "route": self.route,
            "status": self.status.value,
            "patrolDate": patrol_date,
            "startTime": format_start_time(self.start_time),
            "estimatedDuration": self.estimated_duration,
            "endTime": format_instant(self.end_time),
            "actualDuration": self.actual_duration,
            "priority": self.priority.value if self.priority else None,
            "objectives": list(self.objectives),
            "equipment": list(self.equipment),
            "attendees": list(self.attendees),
            "notes": self.notes,
            "findings": self.findings,
            "createdAt": format_instant(self.created_at),
            "updatedAt": format_instant(self.updated_at),
        }


@dataclass(frozen=True)
class StatusTransition:
    """Represents one automatic lifecycle step."""

    new_status: PatrolStatus
    timestamp: datetime
    trigger: str                                     # "schedule_start" or "schedule_end"

    # Only set when new_status is COMPLETED
    end_time: Optional[datetime] = None
    actual_duration: Optional[float] = None

    def changes(self) -> dict[str, Any]:
        """Document fields to persist for this step."""
        fields: dict[str, Any] = {
            "status": self.new_status.value,
            "updatedAt": format_instant(self.timestamp),
        }
        if self.new_status == PatrolStatus.COMPLETED:
            fields["endTime"] = format_instant(self.end_time)
            fields["actualDuration"] = self.actual_duration
        return fields
