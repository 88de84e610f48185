"""
Patrol statistics and analytics.

Summary counters and grouped breakdowns over a ranger's patrols. Callers are
expected to synchronize the same scope first so counts reflect current status.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

import structlog

from ..persistence.patrol_store import PatrolStore
from ..state.models import Patrol, PatrolPriority, PatrolStatus
from ..utils.time import parse_patrol_date, round_half_up

logger = structlog.get_logger(__name__)

MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
                "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

UNSPECIFIED_PRIORITY = "unspecified"


@dataclass
class PatrolStats:
    """Dashboard counters for one ranger"""
    total_patrols: int = 0
    active_patrols: int = 0
    scheduled_patrols: int = 0
    patrols_completed: int = 0
    completed_today: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "totalPatrols": self.total_patrols,
            "activePatrols": self.active_patrols,
            "scheduledPatrols": self.scheduled_patrols,
            "patrolsCompleted": self.patrols_completed,
            "completedToday": self.completed_today,
        }


@dataclass
class MonthlyCount:
    """Patrols in one calendar month"""
    year: int
    month: int
    count: int

    @property
    def label(self) -> str:
        return f"{MONTH_LABELS[self.month - 1]} {self.year}"

    def to_dict(self) -> dict[str, Any]:
        return {"month": self.label, "year": self.year, "count": self.count}


@dataclass
class PatrolAnalytics:
    """Grouped breakdowns plus the dashboard counters"""
    stats: PatrolStats
    status_distribution: dict[str, int] = field(default_factory=dict)
    monthly_patrols: list[MonthlyCount] = field(default_factory=list)
    priority_distribution: dict[str, int] = field(default_factory=dict)
    average_duration: int = 0
    invalid_date_patrols: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "statusDistribution": dict(self.status_distribution),
            "monthlyPatrols": [m.to_dict() for m in self.monthly_patrols],
            "priorityDistribution": dict(self.priority_distribution),
            "averageDuration": self.average_duration,
            "invalidDatePatrols": self.invalid_date_patrols,
            **self.stats.to_dict(),
        }


def average_estimated_duration(patrols: list[Patrol]) -> int:
    """Mean estimated duration over patrols that define one, rounded to an integer."""
    durations = [p.estimated_duration for p in patrols if p.estimated_duration is not None]
    if not durations:
        return 0
    return int(round_half_up(sum(durations) / len(durations)))


def group_by_month(patrols: list[Patrol]) -> list[MonthlyCount]:
    """Count patrols per (year, month) of patrol date, oldest month first."""
    counts = Counter(
        (p.patrol_date.year, p.patrol_date.month)
        for p in patrols
        if p.patrol_date is not None
    )
    return [
        MonthlyCount(year=year, month=month, count=count)
        for (year, month), count in sorted(counts.items())
    ]


class StatsAggregator:
    """Computes patrol statistics from the store."""

    def __init__(self, store: PatrolStore):
        self.logger = logger
        self.store = store

    def _scope(self, ranger_id: Optional[str]) -> dict[str, Any]:
        return {"rangerId": ranger_id} if ranger_id is not None else {}

    def compute_stats(self, ranger_id: Optional[str], now: datetime) -> PatrolStats:
        """
        Compute dashboard counters.

        Args:
            ranger_id: Ranger whose patrols are counted; None for all patrols
            now: Current instant; its calendar date is "today"

        Returns:
            PatrolStats
        """
        scope = self._scope(ranger_id)
        by_status = self.store.count_by("status", scope)

        completed_filter = {**scope, "status": PatrolStatus.COMPLETED.value}
        completed_by_date = self.store.count_by("patrolDate", completed_filter)
        today = now.date()
        completed_today = sum(
            count for raw_date, count in completed_by_date.items()
            if parse_patrol_date(raw_date) == today
        )

        stats = PatrolStats(
            total_patrols=sum(by_status.values()),
            active_patrols=by_status.get(PatrolStatus.IN_PROGRESS.value, 0),
            scheduled_patrols=by_status.get(PatrolStatus.SCHEDULED.value, 0),
            patrols_completed=by_status.get(PatrolStatus.COMPLETED.value, 0),
            completed_today=completed_today,
        )

        self.logger.debug("Computed patrol stats", ranger_id=ranger_id, **stats.to_dict())
        return stats

    def compute_analytics(self, ranger_id: Optional[str], now: datetime) -> PatrolAnalytics:
        """
        Compute grouped breakdowns.

        Patrols with an invalid or missing date are left out of the monthly
        grouping but still counted everywhere else.

        Args:
            ranger_id: Ranger whose patrols are analysed; None for all patrols
            now: Current instant; its calendar date is "today"

        Returns:
            PatrolAnalytics
        """
        patrols = [Patrol.from_record(doc) for doc in self.store.find(self._scope(ranger_id))]

        status_counts = Counter(p.status.value for p in patrols)
        status_distribution = {s.value: status_counts.get(s.value, 0) for s in PatrolStatus}

        priority_counts = Counter(
            p.priority.value if p.priority else UNSPECIFIED_PRIORITY for p in patrols
        )
        priority_distribution = {p.value: priority_counts.get(p.value, 0) for p in PatrolPriority}
        priority_distribution[UNSPECIFIED_PRIORITY] = priority_counts.get(UNSPECIFIED_PRIORITY, 0)

        today = now.date()
        stats = PatrolStats(
            total_patrols=len(patrols),
            active_patrols=status_distribution[PatrolStatus.IN_PROGRESS.value],
            scheduled_patrols=status_distribution[PatrolStatus.SCHEDULED.value],
            patrols_completed=status_distribution[PatrolStatus.COMPLETED.value],
            completed_today=sum(
                1 for p in patrols
                if p.status == PatrolStatus.COMPLETED and p.patrol_date == today
            ),
        )

        invalid_dates = sum(1 for p in patrols if not p.has_valid_date)
        if invalid_dates:
            self.logger.warning(
                "Patrols with invalid dates excluded from monthly grouping",
                ranger_id=ranger_id,
                count=invalid_dates
            )

        return PatrolAnalytics(
            stats=stats,
            status_distribution=status_distribution,
            monthly_patrols=group_by_month(patrols),
            priority_distribution=priority_distribution,
            average_duration=average_estimated_duration(patrols),
            invalid_date_patrols=invalid_dates,
        )
