"""
Input validation for patrol creation and edits.

Turns caller-supplied fields into normalized patrol document fields, raising
ValidationError for anything malformed.
"""

from typing import Any

from ..errors import ValidationError
from ..state.models import PatrolPriority, PatrolStatus
from ..utils.time import format_start_time, parse_hours, parse_patrol_date, parse_start_time

# Statuses a new patrol may start in
INITIAL_STATUSES = (PatrolStatus.SCHEDULED, PatrolStatus.IN_PROGRESS)

# Fields a caller may set on create or edit
EDITABLE_FIELDS = frozenset({
    "route", "patrolDate", "startTime", "estimatedDuration", "priority",
    "objectives", "equipment", "attendees", "notes", "findings",
})

# Fields owned by the lifecycle or the store
PROTECTED_FIELDS = frozenset({
    "id", "rangerId", "status", "endTime", "actualDuration", "createdAt", "updatedAt",
})

LIST_FIELDS = ("objectives", "equipment", "attendees")
TEXT_FIELDS = ("notes", "findings")


class PatrolValidator:
    """Validates patrol fields supplied by callers."""

    def validate_new_patrol(self, fields: dict[str, Any]) -> dict[str, Any]:
        """
        Validate fields for a new patrol.

        Args:
            fields: Caller-supplied fields, including the initial status

        Returns:
            Normalized document fields (without id, rangerId or timestamps)

        Raises:
            ValidationError: If a field is missing or malformed
        """
        if not isinstance(fields, dict):
            raise ValidationError("Patrol fields must be a mapping")

        unknown = set(fields) - EDITABLE_FIELDS - {"status"}
        if unknown:
            raise ValidationError(
                f"Unknown patrol fields: {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0]
            )

        document = self._normalize(fields, required=("route", "patrolDate"))
        document["status"] = self._validate_initial_status(fields.get("status"))
        return document

    def validate_patrol_edit(self, fields: dict[str, Any]) -> dict[str, Any]:
        """
        Validate an edit to an existing patrol.

        Status and lifecycle fields cannot be edited here.

        Raises:
            ValidationError: If the edit is empty, touches protected fields or is malformed
        """
        if not isinstance(fields, dict) or not fields:
            raise ValidationError("No patrol fields to update")

        protected = set(fields) & PROTECTED_FIELDS
        if protected:
            raise ValidationError(
                f"Fields cannot be edited: {', '.join(sorted(protected))}",
                field=sorted(protected)[0]
            )

        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Unknown patrol fields: {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0]
            )

        return self._normalize(fields, required=())

    def validate_findings(self, text: Any) -> str:
        """Findings must be non-empty text."""
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Findings are required", field="findings", value=text)
        return text.strip()

    def _normalize(self, fields: dict[str, Any], required: tuple) -> dict[str, Any]:
        for name in required:
            if fields.get(name) in (None, ""):
                raise ValidationError(f"Missing required field: {name}", field=name)

        document: dict[str, Any] = {}

        if "route" in fields:
            route = fields["route"]
            if not isinstance(route, str) or not route.strip():
                raise ValidationError("Route must be non-empty text", field="route", value=route)
            document["route"] = route.strip()

        if "patrolDate" in fields:
            patrol_date = parse_patrol_date(fields["patrolDate"])
            if patrol_date is None:
                raise ValidationError(
                    f"Invalid patrol date: {fields['patrolDate']}. Expected YYYY-MM-DD",
                    field="patrolDate",
                    value=fields["patrolDate"]
                )
            document["patrolDate"] = patrol_date.isoformat()

        if "startTime" in fields:
            document["startTime"] = self._validate_start_time(fields["startTime"])

        if "estimatedDuration" in fields:
            document["estimatedDuration"] = self._validate_duration(fields["estimatedDuration"])

        if "priority" in fields:
            document["priority"] = self._validate_priority(fields["priority"])

        for name in LIST_FIELDS:
            if name in fields:
                document[name] = self._validate_string_list(name, fields[name])

        for name in TEXT_FIELDS:
            if name in fields:
                value = fields[name]
                if value is not None and not isinstance(value, str):
                    raise ValidationError(f"{name} must be text", field=name, value=value)
                document[name] = value

        return document

    def _validate_initial_status(self, value: Any) -> str:
        if value in (None, ""):
            return PatrolStatus.SCHEDULED.value
        if value not in {s.value for s in INITIAL_STATUSES}:
            raise ValidationError(
                f"Invalid initial status: {value}. Must be scheduled or in_progress",
                field="status",
                value=value
            )
        return value

    def _validate_start_time(self, value: Any):
        if value in (None, ""):
            return None
        start_time = parse_start_time(value)
        if start_time is None:
            raise ValidationError(
                f"Invalid start time: {value}. Expected HH:MM",
                field="startTime",
                value=value
            )
        return format_start_time(start_time)

    def _validate_duration(self, value: Any):
        if value in (None, ""):
            return None
        hours = parse_hours(value)
        if hours is None or hours < 0:
            raise ValidationError(
                f"Invalid estimated duration: {value}. Must be a non-negative number of hours",
                field="estimatedDuration",
                value=value
            )
        return hours

    def _validate_priority(self, value: Any):
        if value in (None, ""):
            return None
        try:
            return PatrolPriority(value).value
        except ValueError:
            raise ValidationError(
                f"Invalid priority: {value}. Must be low, medium or high",
                field="priority",
                value=value
            )

    def _validate_string_list(self, name: str, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
            raise ValidationError(f"{name} must be a list of text items", field=name, value=value)
        return [v.strip() for v in value if v.strip()]
