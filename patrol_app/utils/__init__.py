"""
Utility functions module.

Time Semantics:
- The clock is the only source of "now"; lifecycle code never calls datetime.now()
- "Local" means the timezone of the instant the clock returns
- Lifecycle decisions work at whole-second granularity
- Patrol dates are calendar dates, start times are wall-clock HH:MM in that timezone
"""
