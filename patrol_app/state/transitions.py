"""
Manual status transitions for patrols.

Owners and administrators can set a patrol's status directly. This channel is
independent of the schedule-driven state machine: the requested status is
written verbatim, subject only to the completed-patrol rule.
"""

from datetime import datetime
from typing import Any

import structlog

from ..errors import ForbiddenError, InvalidTransitionError, ValidationError
from ..logging.config import get_state_logger, log_state_transition
from ..utils.time import format_instant
from .models import Caller, Patrol, PatrolStatus

logger = structlog.get_logger(__name__)
state_logger = get_state_logger(__name__)

# Targets reachable by manual override from each status
ALLOWED_MANUAL_TARGETS: dict[PatrolStatus, frozenset] = {
    PatrolStatus.SCHEDULED: frozenset(PatrolStatus),
    PatrolStatus.IN_PROGRESS: frozenset(PatrolStatus),
    PatrolStatus.CANCELLED: frozenset(PatrolStatus),
    PatrolStatus.COMPLETED: frozenset({PatrolStatus.CANCELLED}),
}


def parse_status(value: Any) -> PatrolStatus:
    """
    Parse a requested status value.

    Raises:
        ValidationError: If the value is missing or not a known status
    """
    if value is None or value == "":
        raise ValidationError("Status is required", field="status", value=value)
    try:
        return PatrolStatus(value)
    except ValueError:
        raise ValidationError(
            f"Invalid status: {value}. Must be one of "
            f"{', '.join(s.value for s in PatrolStatus)}",
            field="status",
            value=value
        )


class StatusTransitionHandler:
    """Validates and applies manual status overrides."""

    def __init__(self):
        self.logger = logger

    def authorize(self, patrol: Patrol, caller: Caller) -> None:
        """
        Ensure the caller may modify the patrol.

        Raises:
            ForbiddenError: If the caller is neither the owner nor an administrator
        """
        if not caller.can_manage(patrol):
            self.logger.warning(
                "Patrol modification refused",
                patrol_id=patrol.id,
                caller_id=caller.caller_id,
                role=caller.role.value,
                owner_id=patrol.ranger_id
            )
            raise ForbiddenError(
                "Not authorized to update this patrol",
                patrol_id=patrol.id,
                caller_id=caller.caller_id
            )

    def validate_manual_transition(self, patrol: Patrol, requested: PatrolStatus) -> None:
        """
        Check the completed-patrol rule.

        Raises:
            InvalidTransitionError: If the target is not reachable from the current status
        """
        if requested not in ALLOWED_MANUAL_TARGETS[patrol.status]:
            raise InvalidTransitionError(
                f"Invalid status transition from {patrol.status.value} to {requested.value}",
                current_status=patrol.status.value,
                requested_status=requested.value,
                context={"patrol_id": patrol.id}
            )

    def manual_changes(
        self,
        patrol: Patrol,
        requested: PatrolStatus,
        caller: Caller,
        now: datetime
    ) -> dict[str, Any]:
        """
        Validate a manual override and return the document fields to persist.

        end_time and actual_duration are never part of the changes.
        """
        self.authorize(patrol, caller)
        self.validate_manual_transition(patrol, requested)

        log_state_transition(
            state_logger,
            patrol_id=patrol.id,
            from_state=patrol.status.value,
            to_state=requested.value,
            trigger="manual",
            context={"caller_id": caller.caller_id, "role": caller.role.value}
        )

        return {
            "status": requested.value,
            "updatedAt": format_instant(now),
        }


transition_handler = StatusTransitionHandler()
