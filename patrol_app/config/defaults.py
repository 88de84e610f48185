"""Default configuration parameters for the patrol lifecycle engine."""

from dataclasses import dataclass


@dataclass(frozen=True)
class StoreParams:
    """Patrol store parameters."""
    db_path: str = "patrols.db"


@dataclass(frozen=True)
class TimeParams:
    """Time-based parameters."""
    timezone: str = "UTC"                # Zone patrol dates and start times are read in


@dataclass(frozen=True)
class SyncParams:
    """Synchronization parameters."""
    sync_on_read: bool = True            # Synchronize a ranger's patrols before serving reads
    sync_all_patrols: bool = False       # Also synchronize before the system-wide listing


@dataclass(frozen=True)
class ExportParams:
    """Export parameters."""
    default_format: str = "json"


@dataclass(frozen=True)
class LoggingParams:
    """Logging parameters."""
    level: str = "INFO"
    format_json: bool = False


@dataclass(frozen=True)
class AppConfig:
    """Complete configuration."""
    store: StoreParams
    time: TimeParams
    sync: SyncParams
    export: ExportParams
    logging: LoggingParams


def get_default_config() -> AppConfig:
    """Get the default configuration instance."""
    return AppConfig(
        store=StoreParams(),
        time=TimeParams(),
        sync=SyncParams(),
        export=ExportParams(),
        logging=LoggingParams(),
    )
