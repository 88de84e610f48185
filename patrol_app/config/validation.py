"""Configuration validation utilities."""

from dataclasses import dataclass, fields
from typing import Any

from ..data.export import EXPORT_FORMATS
from ..utils.time import resolve_timezone
from .defaults import ExportParams, LoggingParams, StoreParams, SyncParams, TimeParams

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

SECTIONS = {
    "store": StoreParams,
    "time": TimeParams,
    "sync": SyncParams,
    "export": ExportParams,
    "logging": LoggingParams,
}


@dataclass(frozen=True)
class ConfigIssue:
    """Represents a configuration validation problem."""
    field: str
    message: str
    value: Any


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_structure(config: dict[str, Any]) -> list[ConfigIssue]:
        """Validate section names and keys."""
        issues = []

        for section, value in config.items():
            if section not in SECTIONS:
                issues.append(ConfigIssue(
                    field=section,
                    message=f"Unknown section. Expected one of {', '.join(SECTIONS)}",
                    value=value
                ))
                continue

            if not isinstance(value, dict):
                issues.append(ConfigIssue(
                    field=section,
                    message="Must be a mapping",
                    value=value
                ))
                continue

            known = {f.name for f in fields(SECTIONS[section])}
            for key in value:
                if key not in known:
                    issues.append(ConfigIssue(
                        field=f"{section}.{key}",
                        message="Unknown setting",
                        value=value[key]
                    ))

        return issues

    @staticmethod
    def validate_store_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate store parameters."""
        issues = []

        if "db_path" in params:
            value = params["db_path"]
            if not isinstance(value, str) or not value.strip():
                issues.append(ConfigIssue(
                    field="store.db_path",
                    message="Must be a non-empty path",
                    value=value
                ))

        return issues

    @staticmethod
    def validate_time_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate time parameters."""
        issues = []

        if "timezone" in params:
            value = params["timezone"]
            if not isinstance(value, str):
                issues.append(ConfigIssue(
                    field="time.timezone",
                    message="Must be an IANA timezone name",
                    value=value
                ))
            else:
                try:
                    resolve_timezone(value)
                except ValueError:
                    issues.append(ConfigIssue(
                        field="time.timezone",
                        message="Unknown timezone",
                        value=value
                    ))

        return issues

    @staticmethod
    def validate_sync_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate synchronization parameters."""
        issues = []

        for key in ("sync_on_read", "sync_all_patrols"):
            if key in params and not isinstance(params[key], bool):
                issues.append(ConfigIssue(
                    field=f"sync.{key}",
                    message="Must be a boolean",
                    value=params[key]
                ))

        return issues

    @staticmethod
    def validate_export_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate export parameters."""
        issues = []

        if "default_format" in params:
            value = params["default_format"]
            if value not in EXPORT_FORMATS:
                issues.append(ConfigIssue(
                    field="export.default_format",
                    message=f"Must be one of {', '.join(EXPORT_FORMATS)}",
                    value=value
                ))

        return issues

    @staticmethod
    def validate_logging_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate logging parameters."""
        issues = []

        if "level" in params:
            value = params["level"]
            if not isinstance(value, str) or value.upper() not in LOG_LEVELS:
                issues.append(ConfigIssue(
                    field="logging.level",
                    message=f"Must be one of {', '.join(LOG_LEVELS)}",
                    value=value
                ))

        if "format_json" in params and not isinstance(params["format_json"], bool):
            issues.append(ConfigIssue(
                field="logging.format_json",
                message="Must be a boolean",
                value=params["format_json"]
            ))

        return issues

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ConfigIssue]:
        """Validate complete configuration."""
        issues = ConfigValidator.validate_structure(config)
        if issues:
            return issues

        if "store" in config:
            issues.extend(ConfigValidator.validate_store_params(config["store"]))

        if "time" in config:
            issues.extend(ConfigValidator.validate_time_params(config["time"]))

        if "sync" in config:
            issues.extend(ConfigValidator.validate_sync_params(config["sync"]))

        if "export" in config:
            issues.extend(ConfigValidator.validate_export_params(config["export"]))

        if "logging" in config:
            issues.extend(ConfigValidator.validate_logging_params(config["logging"]))

        return issues
