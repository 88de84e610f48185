"""
Patrol App - Ranger Patrol Lifecycle Engine

Lifecycle management for ranger field patrols in the conservation portal.
Advances patrol status from wall-clock time at read time and derives the
statistics and analytics views the dashboards consume.
"""

__version__ = "0.1.0"
__author__ = "Patrol App Team"
