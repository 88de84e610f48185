"""
Patrol lifecycle API.

The operations the transport layer calls. Arguments arrive authenticated and
parsed; results are plain dicts and lists in the patrol document shape.
Request errors (ValidationError, NotFoundError, ForbiddenError,
InvalidTransitionError) propagate to the caller, as do store failures on
direct mutations.
"""

from datetime import date, time
from pathlib import Path
from typing import Any, Optional

import structlog

from .config.defaults import AppConfig, get_default_config
from .config.loader import ConfigLoader
from .data.export import render_export, validate_export_format
from .data.validators import PatrolValidator
from .errors import InvalidTransitionError, NotFoundError, ValidationError
from .logging.config import configure_logging
from .metrics.stats import StatsAggregator
from .persistence.patrol_store import PatrolStore, SQLitePatrolStore
from .state.models import Caller, Patrol
from .state.sync import LifecycleSynchronizer
from .state.transitions import parse_status, transition_handler
from .utils.time import Clock, SystemClock, format_instant

logger = structlog.get_logger(__name__)

MANUAL_WRITE_ATTEMPTS = 3


def sort_patrols(patrols: list[Patrol]) -> list[Patrol]:
    """Order by patrol date, newest first, then start time, latest first. Missing values go last."""
    by_time = sorted(
        patrols,
        key=lambda p: (p.start_time is not None, p.start_time or time.min),
        reverse=True
    )
    return sorted(
        by_time,
        key=lambda p: (p.patrol_date is not None, p.patrol_date or date.min),
        reverse=True
    )


class PatrolLifecycleAPI:
    """
    Entry point for patrol lifecycle operations.

    Reads over a ranger's own patrols synchronize that ranger's scope first,
    so statuses reflect the clock rather than the last write.
    """

    def __init__(
        self,
        store: PatrolStore,
        clock: Optional[Clock] = None,
        config: Optional[AppConfig] = None
    ) -> None:
        self.logger = logger
        self.config = config or get_default_config()
        self.store = store
        self.clock = clock or SystemClock(self.config.time.timezone)

        self.synchronizer = LifecycleSynchronizer(store, self.clock)
        self.aggregator = StatsAggregator(store)
        self.validator = PatrolValidator()
        self.transitions = transition_handler

    @classmethod
    def from_config(cls, config: AppConfig, clock: Optional[Clock] = None) -> "PatrolLifecycleAPI":
        """Build the API with a SQLite store and system clock from configuration."""
        store = SQLitePatrolStore(config.store.db_path)
        return cls(store=store, clock=clock or SystemClock(config.time.timezone), config=config)

    def _sync_scope(self, ranger_id: Optional[str]) -> None:
        if self.config.sync.sync_on_read:
            self.synchronizer.synchronize(ranger_id)

    def _load(self, patrol_id: str) -> Patrol:
        document = self.store.get(patrol_id)
        if document is None:
            raise NotFoundError("Patrol not found", patrol_id=patrol_id)
        return Patrol.from_record(document)

    def _reload_record(self, patrol_id: str) -> dict[str, Any]:
        document = self.store.get(patrol_id)
        if document is None:
            raise NotFoundError("Patrol not found", patrol_id=patrol_id)
        return Patrol.from_record(document).to_record()

    def _records(self, filters: Optional[dict[str, Any]]) -> list[dict[str, Any]]:
        patrols = [Patrol.from_record(doc) for doc in self.store.find(filters)]
        return [p.to_record() for p in sort_patrols(patrols)]

    def list_patrols(self, ranger_id: str) -> list[dict[str, Any]]:
        """A ranger's patrols, synchronized and sorted."""
        self._sync_scope(ranger_id)
        return self._records({"rangerId": ranger_id})

    def list_all_patrols(self) -> list[dict[str, Any]]:
        """
        Every ranger's patrols, sorted.

        Not synchronized unless sync.sync_all_patrols is enabled, so other
        rangers' statuses may lag until they read their own patrols.
        """
        if self.config.sync.sync_all_patrols:
            self.synchronizer.synchronize(None)
        return self._records(None)

    def get_patrol(self, patrol_id: str, caller: Caller) -> dict[str, Any]:
        """
        A single patrol visible to the caller.

        Raises:
            NotFoundError: If the patrol is absent or the caller is neither owner nor administrator
        """
        patrol = self._load(patrol_id)
        if not caller.can_manage(patrol):
            raise NotFoundError("Patrol not found", patrol_id=patrol_id)

        if self.config.sync.sync_on_read and patrol.ranger_id == caller.caller_id:
            self.synchronizer.synchronize_patrol(patrol_id)
        return self._reload_record(patrol_id)

    def get_stats(self, ranger_id: str) -> dict[str, int]:
        """Dashboard counters for a ranger."""
        self._sync_scope(ranger_id)
        return self.aggregator.compute_stats(ranger_id, self.clock.now()).to_dict()

    def get_analytics(self, ranger_id: str) -> dict[str, Any]:
        """Analytics breakdowns for a ranger."""
        self._sync_scope(ranger_id)
        return self.aggregator.compute_analytics(ranger_id, self.clock.now()).to_dict()

    def create_patrol(self, ranger_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        """
        Create a patrol for a ranger.

        Args:
            ranger_id: Owning ranger
            fields: Patrol fields; "status" picks the initial status
                (scheduled, the default, or in_progress)

        Returns:
            The stored patrol

        Raises:
            ValidationError: If the fields are malformed
            StoreError: If the patrol could not be stored
        """
        if not ranger_id:
            raise ValidationError("Ranger id is required", field="rangerId")

        document = self.validator.validate_new_patrol(fields)
        now = format_instant(self.clock.now())
        document.update({
            "rangerId": ranger_id,
            "createdAt": now,
            "updatedAt": now,
        })

        patrol_id = self.store.insert(document)
        self.logger.info(
            "Patrol created",
            patrol_id=patrol_id,
            ranger_id=ranger_id,
            status=document["status"],
            patrol_date=document["patrolDate"]
        )
        return self._reload_record(patrol_id)

    def update_patrol(self, patrol_id: str, fields: dict[str, Any], caller: Caller) -> dict[str, Any]:
        """
        Edit descriptive and scheduling fields of a patrol.

        Raises:
            ValidationError: If the edit is malformed or touches status or lifecycle fields
            NotFoundError: If the patrol does not exist
            ForbiddenError: If the caller is neither owner nor administrator
        """
        changes = self.validator.validate_patrol_edit(fields)
        patrol = self._load(patrol_id)
        self.transitions.authorize(patrol, caller)

        changes["updatedAt"] = format_instant(self.clock.now())
        if not self.store.update(patrol_id, changes):
            raise NotFoundError("Patrol not found", patrol_id=patrol_id)

        self.logger.info(
            "Patrol updated",
            patrol_id=patrol_id,
            caller_id=caller.caller_id,
            fields=sorted(k for k in changes if k != "updatedAt")
        )
        return self._reload_record(patrol_id)

    def manual_update_status(self, patrol_id: str, requested_status: Any,
                             caller: Caller) -> dict[str, Any]:
        """
        Set a patrol's status directly, bypassing the schedule.

        Raises:
            ValidationError: If the requested status is missing or unknown
            NotFoundError: If the patrol does not exist
            ForbiddenError: If the caller is neither owner nor administrator
            InvalidTransitionError: If the patrol is completed and the target is not cancelled
            StoreError: If the change could not be stored
        """
        requested = parse_status(requested_status)

        for _ in range(MANUAL_WRITE_ATTEMPTS):
            document = self.store.get(patrol_id)
            if document is None:
                raise NotFoundError("Patrol not found", patrol_id=patrol_id)
            patrol = Patrol.from_record(document)
            changes = self.transitions.manual_changes(patrol, requested, caller, self.clock.now())

            # Only write over the status the rules were checked against
            if self.store.update(patrol_id, changes, expected={"status": document.get("status")}):
                return self._reload_record(patrol_id)

            self.logger.info(
                "Patrol status changed during manual update, re-checking",
                patrol_id=patrol_id,
                read_status=patrol.status.value,
                requested_status=requested.value
            )

        raise InvalidTransitionError(
            "Patrol status changed concurrently, try again",
            requested_status=requested.value,
            context={"patrol_id": patrol_id}
        )

    def add_findings(self, patrol_id: str, text: Any, caller: Caller) -> dict[str, Any]:
        """
        Record findings on a patrol. Does not touch the lifecycle.

        Raises:
            ValidationError: If the text is empty
            NotFoundError: If the patrol does not exist
            ForbiddenError: If the caller is neither owner nor administrator
        """
        findings = self.validator.validate_findings(text)
        patrol = self._load(patrol_id)
        self.transitions.authorize(patrol, caller)

        changes = {"findings": findings, "updatedAt": format_instant(self.clock.now())}
        if not self.store.update(patrol_id, changes):
            raise NotFoundError("Patrol not found", patrol_id=patrol_id)

        self.logger.info("Findings added", patrol_id=patrol_id, caller_id=caller.caller_id)
        return self._reload_record(patrol_id)

    def delete_patrol(self, patrol_id: str, caller: Caller) -> None:
        """
        Delete a patrol.

        Raises:
            NotFoundError: If the patrol does not exist
            ForbiddenError: If the caller is neither owner nor administrator
        """
        patrol = self._load(patrol_id)
        self.transitions.authorize(patrol, caller)

        if not self.store.delete(patrol_id):
            raise NotFoundError("Patrol not found", patrol_id=patrol_id)

    def export_patrols(self, ranger_id: str, fmt: Optional[str] = None):
        """
        A ranger's full patrol set for bulk download.

        Args:
            ranger_id: Ranger whose patrols are exported
            fmt: "json" for a dict envelope, "csv" for CSV text; defaults to configuration

        Raises:
            ValidationError: If the format is not supported
        """
        fmt = validate_export_format(fmt or self.config.export.default_format)
        self._sync_scope(ranger_id)
        records = self._records({"rangerId": ranger_id})

        self.logger.info("Patrols exported", ranger_id=ranger_id, count=len(records), format=fmt)
        return render_export(records, fmt, ranger_id, self.clock.now())


def create_api(
    config_dir: Optional[Path] = None,
    overrides: Optional[dict[str, Any]] = None,
    clock: Optional[Clock] = None
) -> PatrolLifecycleAPI:
    """Load configuration, configure logging and build the API."""
    config = ConfigLoader.create(config_dir).load_app_config(overrides)
    configure_logging(level=config.logging.level, format_json=config.logging.format_json)
    return PatrolLifecycleAPI.from_config(config, clock=clock)
