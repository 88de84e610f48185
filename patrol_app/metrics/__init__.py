"""
Patrol statistics module.

Provides dashboard counters and analytics breakdowns:
- Status, priority and monthly distributions
- Average estimated duration
- Completed-today counts in the local calendar day
"""

from .stats import PatrolAnalytics, PatrolStats, StatsAggregator

__all__ = [
    "PatrolAnalytics",
    "PatrolStats",
    "StatsAggregator",
]
