"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from ..errors import ConfigurationError
from .defaults import (
    AppConfig,
    ExportParams,
    LoggingParams,
    StoreParams,
    SyncParams,
    TimeParams,
    get_default_config,
)
from .validation import ConfigIssue, ConfigValidator

CONFIG_FILENAME = "patrols.yaml"


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_dir: Path
    defaults: AppConfig

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
        )

    def load_file_config(self) -> dict[str, Any]:
        """
        Load overrides from the YAML settings file, if present.

        Raises:
            ConfigurationError: If the file does not hold a mapping
        """
        settings_file = self.config_dir / CONFIG_FILENAME

        if not settings_file.exists():
            return {}

        with open(settings_file) as f:
            file_config = yaml.safe_load(f)

        if file_config is None:
            return {}
        if not isinstance(file_config, dict):
            raise ConfigurationError(
                f"Settings file {settings_file} must contain a mapping of sections",
                issues=[ConfigIssue(
                    field=CONFIG_FILENAME,
                    message="Must be a mapping",
                    value=file_config
                )]
            )

        return file_config

    def merge_config(self, overrides: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Explicit overrides (highest priority)
        2. Settings file
        3. Global defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)

        config = self._deep_merge(config, self.load_file_config())

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def load_app_config(self, overrides: Optional[dict[str, Any]] = None) -> AppConfig:
        """
        Load, validate and build the typed configuration.

        Raises:
            ConfigurationError: If the merged configuration is invalid
        """
        config = self.merge_config(overrides)

        issues = ConfigValidator.validate_config(config)
        if issues:
            raise ConfigurationError(
                "Invalid configuration: " + "; ".join(f"{i.field}: {i.message}" for i in issues),
                issues=issues
            )

        return AppConfig(
            store=StoreParams(**config["store"]),
            time=TimeParams(**config["time"]),
            sync=SyncParams(**config["sync"]),
            export=ExportParams(**config["export"]),
            logging=LoggingParams(**config["logging"]),
        )

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name, _field in obj.__dataclass_fields__.items():
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = self._dataclass_to_dict(value)
                else:
                    result[field_name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
