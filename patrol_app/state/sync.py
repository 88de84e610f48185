"""
Lifecycle synchronization for stored patrols.

Brings stored patrol statuses up to date with the clock before a read is
served. There is no background scheduler: statuses are correct as of the
last synchronization pass.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import structlog

from ..errors import StoreError
from ..persistence.patrol_store import PatrolStore
from ..utils.time import Clock, SystemClock, truncate_to_second
from .machine import eval_patrol_status
from .models import ACTIVE_STATUSES, Patrol, StatusTransition

logger = structlog.get_logger(__name__)


@dataclass
class SyncReport:
    """Outcome of one synchronization pass."""
    now: datetime
    ranger_id: Optional[str] = None
    examined: int = 0
    transitioned: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)      # Changed by another writer mid-pass

    @property
    def ok(self) -> bool:
        return not self.failed


class LifecycleSynchronizer:
    """Applies the lifecycle state machine across a scope of stored patrols."""

    def __init__(self, store: PatrolStore, clock: Optional[Clock] = None):
        self.logger = logger
        self.store = store
        self.clock = clock or SystemClock()

    def current_time(self) -> datetime:
        """Clock reading at whole-second precision."""
        return truncate_to_second(self.clock.now())

    def synchronize(self, ranger_id: Optional[str] = None,
                    now: Optional[datetime] = None) -> SyncReport:
        """
        Run a synchronization pass.

        Args:
            ranger_id: Limit the pass to one ranger's patrols; None for all patrols
            now: Instant to evaluate against, defaults to the clock

        Returns:
            SyncReport once every persistence attempt has finished

        Raises:
            StoreError: If the patrols in scope cannot be fetched
        """
        now = truncate_to_second(now) if now else self.current_time()
        report = SyncReport(now=now, ranger_id=ranger_id)

        filters: dict = {"status": [s.value for s in ACTIVE_STATUSES]}
        if ranger_id is not None:
            filters["rangerId"] = ranger_id

        for document in self.store.find(filters):
            self._sync_document(document, now, report)

        if report.transitioned or report.failed:
            self.logger.info(
                "Synchronization pass finished",
                ranger_id=ranger_id,
                examined=report.examined,
                transitioned=len(report.transitioned),
                failed=len(report.failed),
                now=now.isoformat()
            )
        return report

    def synchronize_patrol(self, patrol_id: str,
                           now: Optional[datetime] = None) -> SyncReport:
        """Run a synchronization pass over a single patrol, if it exists."""
        now = truncate_to_second(now) if now else self.current_time()
        report = SyncReport(now=now)

        document = self.store.get(patrol_id)
        if document is not None:
            self._sync_document(document, now, report)
        return report

    def _sync_document(self, document: dict, now: datetime, report: SyncReport) -> None:
        patrol = Patrol.from_record(document)
        report.examined += 1

        transition = eval_patrol_status(patrol, now)
        if transition is None:
            return

        try:
            written = self._persist(patrol, transition, document.get("status"))
        except StoreError:
            report.failed.append(patrol.id)
            return

        if written:
            report.transitioned.append(patrol.id)
        else:
            report.skipped.append(patrol.id)

    def _persist(self, patrol: Patrol, transition: StatusTransition,
                 read_status: Optional[str]) -> bool:
        """
        Write one transition if the stored status is still the one evaluated.

        Returns False when another writer changed the status first.
        """
        try:
            written = self.store.update(
                patrol.id, transition.changes(), expected={"status": read_status}
            )
        except StoreError as e:
            self.logger.warning(
                "Failed to persist patrol transition",
                patrol_id=patrol.id,
                from_state=patrol.status.value,
                to_state=transition.new_status.value,
                error=str(e),
                error_type=type(e).__name__
            )
            raise

        if not written:
            self.logger.debug(
                "Patrol changed since it was read, transition dropped",
                patrol_id=patrol.id,
                read_status=read_status,
                to_state=transition.new_status.value
            )
        return written
