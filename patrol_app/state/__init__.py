"""
Patrol lifecycle state module.

Computes automatic status transitions (SCHEDULED → IN_PROGRESS → COMPLETED),
validates manual overrides, and synchronizes stored patrols with the clock.
"""
