#!/usr/bin/env python3
"""
Basic Usage Example - Patrol Lifecycle API

This script walks one patrol through its lifecycle using a frozen clock:
booking, automatic start and completion on read, findings and the
dashboard counters.

Run: python examples/basic_usage.py
"""

import json
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from patrol_app.api import PatrolLifecycleAPI
from patrol_app.logging.config import configure_logging
from patrol_app.persistence.patrol_store import SQLitePatrolStore
from patrol_app.state.models import Caller
from patrol_app.utils.time import FixedClock


def main():
    configure_logging(level="INFO")

    with tempfile.TemporaryDirectory() as tmp:
        store = SQLitePatrolStore(str(Path(tmp) / "patrols.db"))
        clock = FixedClock(datetime(2024, 6, 1, 7, 30, tzinfo=timezone.utc))
        api = PatrolLifecycleAPI(store=store, clock=clock)
        ranger = Caller("ranger-001")

        patrol = api.create_patrol(ranger.caller_id, {
            "route": "North ridge loop",
            "patrolDate": "2024-06-01",
            "startTime": "08:00",
            "estimatedDuration": 3,
            "priority": "high",
            "objectives": "Check snares, Count elephants",
        })
        print(f"📅 Booked {patrol['id']} with status {patrol['status']}")

        clock.advance(hours=1)
        print(f"🚶 09:00 status: {api.get_patrol(patrol['id'], ranger)['status']}")

        clock.advance(hours=3, minutes=15)
        completed = api.get_patrol(patrol['id'], ranger)
        print(f"🏁 12:15 status: {completed['status']}, "
              f"actual duration {completed['actualDuration']}h")

        api.add_findings(patrol['id'], "Two snares removed near the river crossing", ranger)

        print("📊 Stats:")
        print(json.dumps(api.get_stats(ranger.caller_id), indent=2))


if __name__ == "__main__":
    main()
