"""
Core patrol lifecycle state machine.

Decides, from a patrol and the current instant alone, whether the patrol's
status should advance. At most one step is taken per evaluation:
SCHEDULED → IN_PROGRESS when the schedule window opens, and
SCHEDULED/IN_PROGRESS → COMPLETED once it has closed.
"""

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional

from ..logging.config import get_state_logger, log_state_transition
from ..utils.time import hours_between, round_half_up
from .models import Patrol, PatrolStatus, StatusTransition

state_logger = get_state_logger(__name__)


def effective_duration_hours(patrol: Patrol) -> float:
    """Estimated duration, with absent or non-positive values counting as zero."""
    hours = patrol.estimated_duration
    if hours is None or hours <= 0:
        return 0.0
    return hours


def compute_schedule_window(
    patrol: Patrol,
    tz: Optional[tzinfo] = None
) -> Optional[tuple[datetime, datetime]]:
    """
    Compute the scheduled start and end instants of a patrol.

    Start is the patrol date at midnight, moved to start_time when one is set,
    both read as wall-clock time in `tz`. End is start plus the estimated
    duration in elapsed hours, so a window spanning a DST change keeps its
    real length. A zero duration gives an empty window (end == start).

    Args:
        patrol: Patrol record
        tz: Timezone the date and start time are expressed in

    Returns:
        (start, end) as UTC instants, or None when the patrol date is missing or invalid
    """
    if patrol.patrol_date is None:
        return None

    start = datetime(
        patrol.patrol_date.year,
        patrol.patrol_date.month,
        patrol.patrol_date.day,
        tzinfo=tz,
    )
    if patrol.start_time is not None:
        start = start.replace(hour=patrol.start_time.hour, minute=patrol.start_time.minute)

    start = start.astimezone(timezone.utc)
    end = start + timedelta(hours=effective_duration_hours(patrol))
    return start, end


def eval_patrol_status(patrol: Patrol, now: datetime) -> Optional[StatusTransition]:
    """
    Evaluate a patrol against the current instant.

    The timezone of `now` is the local timezone the schedule is read in.

    Args:
        patrol: Patrol record
        now: Current instant

    Returns:
        StatusTransition if the status should advance, None otherwise
    """
    if patrol.is_terminal:
        return None

    window = compute_schedule_window(patrol, now.tzinfo)
    if window is None:
        state_logger.debug(
            "Skipping patrol with invalid date",
            patrol_id=patrol.id,
            raw_patrol_date=patrol.raw_patrol_date,
        )
        return None

    start, end = window
    instant = now.astimezone(timezone.utc)

    if instant >= end:
        # endTime and actualDuration are written once; a reopened patrol keeps them
        if patrol.end_time is not None:
            end_time = patrol.end_time
            actual_duration = patrol.actual_duration
        else:
            end_time = now
            actual_duration = round_half_up(hours_between(start, instant), 2)
        log_state_transition(
            state_logger,
            patrol_id=patrol.id,
            from_state=patrol.status.value,
            to_state=PatrolStatus.COMPLETED.value,
            trigger="schedule_end",
            context={
                "scheduled_start": start.isoformat(),
                "scheduled_end": end.isoformat(),
                "actual_duration": actual_duration,
                "skipped_in_progress": patrol.status == PatrolStatus.SCHEDULED,
            }
        )
        return StatusTransition(
            new_status=PatrolStatus.COMPLETED,
            timestamp=now,
            trigger="schedule_end",
            end_time=end_time,
            actual_duration=actual_duration,
        )

    if patrol.status == PatrolStatus.SCHEDULED and start <= instant:
        log_state_transition(
            state_logger,
            patrol_id=patrol.id,
            from_state=patrol.status.value,
            to_state=PatrolStatus.IN_PROGRESS.value,
            trigger="schedule_start",
            context={
                "scheduled_start": start.isoformat(),
                "scheduled_end": end.isoformat(),
            }
        )
        return StatusTransition(
            new_status=PatrolStatus.IN_PROGRESS,
            timestamp=now,
            trigger="schedule_start",
        )

    return None


def apply_status_transition(patrol: Patrol, transition: StatusTransition) -> Patrol:
    """Return the patrol as it looks after an automatic transition."""
    if transition.new_status == PatrolStatus.COMPLETED:
        return patrol.with_completion(
            transition.end_time, transition.actual_duration, updated_at=transition.timestamp
        )
    return patrol.with_status(transition.new_status, updated_at=transition.timestamp)


def advance_patrol(patrol: Patrol, now: datetime) -> tuple[Patrol, bool]:
    """
    Apply at most one lifecycle step.

    Returns:
        (patrol after evaluation, whether it changed)
    """
    transition = eval_patrol_status(patrol, now)
    if transition is None:
        return patrol, False
    return apply_status_transition(patrol, transition), True
