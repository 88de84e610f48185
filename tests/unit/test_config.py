"""Unit tests for configuration management."""

import pytest
from pathlib import Path

from patrol_app.config.defaults import get_default_config
from patrol_app.config.loader import CONFIG_FILENAME, ConfigLoader
from patrol_app.config.validation import ConfigValidator
from patrol_app.errors import ConfigurationError


class TestDefaultConfig:
    """Test suite for default configuration."""

    def test_default_config_creation(self) -> None:
        """Test that default configuration can be created."""
        config = get_default_config()
        assert config.store.db_path == "patrols.db"
        assert config.time.timezone == "UTC"
        assert config.sync.sync_on_read is True
        assert config.sync.sync_all_patrols is False
        assert config.export.default_format == "json"
        assert config.logging.level == "INFO"


class TestConfigLoader:
    """Test suite for configuration loader."""

    def test_config_loader_creation(self) -> None:
        """Test that ConfigLoader points at the bundled config directory."""
        loader = ConfigLoader.create()
        assert isinstance(loader.config_dir, Path)
        assert (loader.config_dir / CONFIG_FILENAME).exists()

    def test_bundled_settings_are_valid(self) -> None:
        config = ConfigLoader.create().load_app_config()
        assert config.time.timezone == "UTC"

    def test_merge_config_defaults_only(self, tmp_path) -> None:
        """Test a missing settings file leaves the defaults."""
        loader = ConfigLoader.create(tmp_path)
        config = loader.merge_config()

        assert config["sync"] == {"sync_on_read": True, "sync_all_patrols": False}
        assert config["store"]["db_path"] == "patrols.db"

    def test_settings_file_overrides_defaults(self, tmp_path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text(
            "sync:\n  sync_all_patrols: true\nexport:\n  default_format: csv\n"
        )

        config = ConfigLoader.create(tmp_path).merge_config()

        assert config["sync"]["sync_all_patrols"] is True
        assert config["sync"]["sync_on_read"] is True
        assert config["export"]["default_format"] == "csv"

    def test_explicit_overrides_win(self, tmp_path) -> None:
        """Test overrides > settings file > defaults."""
        (tmp_path / CONFIG_FILENAME).write_text("time:\n  timezone: Africa/Nairobi\n")
        loader = ConfigLoader.create(tmp_path)

        config = loader.load_app_config({"time": {"timezone": "Europe/Berlin"}})

        assert config.time.timezone == "Europe/Berlin"
        assert config.logging.format_json is False

    def test_empty_settings_file(self, tmp_path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        assert ConfigLoader.create(tmp_path).load_file_config() == {}

    @pytest.mark.parametrize("content", ["- store\n- time\n", "just text\n"])
    def test_settings_file_must_be_mapping(self, tmp_path, content) -> None:
        """Test a settings file without sections raises ConfigurationError."""
        (tmp_path / CONFIG_FILENAME).write_text(content)
        loader = ConfigLoader.create(tmp_path)

        with pytest.raises(ConfigurationError) as exc_info:
            loader.load_app_config()

        assert exc_info.value.issues[0].field == CONFIG_FILENAME

    def test_invalid_configuration_raises(self, tmp_path) -> None:
        """Test invalid merged settings raise ConfigurationError with issues."""
        loader = ConfigLoader.create(tmp_path)

        with pytest.raises(ConfigurationError) as exc_info:
            loader.load_app_config({"time": {"timezone": "Mars/Olympus"}})

        assert [i.field for i in exc_info.value.issues] == ["time.timezone"]


class TestConfigValidator:
    """Test suite for configuration validation."""

    def test_valid_config(self) -> None:
        config = ConfigLoader.create().merge_config()
        assert ConfigValidator.validate_config(config) == []

    def test_unknown_section_and_key(self) -> None:
        """Test structural problems are reported."""
        issues = ConfigValidator.validate_structure({
            "alerts": {},
            "sync": {"sync_everything": True},
        })

        assert [i.field for i in issues] == ["alerts", "sync.sync_everything"]

    def test_section_must_be_mapping(self) -> None:
        issues = ConfigValidator.validate_structure({"store": "patrols.db"})
        assert issues[0].message == "Must be a mapping"

    def test_invalid_timezone(self) -> None:
        issues = ConfigValidator.validate_time_params({"timezone": "Nowhere/Special"})
        assert len(issues) == 1
        assert issues[0].message == "Unknown timezone"

    @pytest.mark.parametrize("key", ["sync_on_read", "sync_all_patrols"])
    def test_sync_flags_must_be_bool(self, key) -> None:
        issues = ConfigValidator.validate_sync_params({key: "yes"})
        assert issues[0].field == f"sync.{key}"

    def test_invalid_export_format(self) -> None:
        issues = ConfigValidator.validate_export_params({"default_format": "xml"})
        assert issues[0].field == "export.default_format"

    def test_logging_params(self) -> None:
        """Test level names are case-insensitive and format_json is a bool."""
        assert ConfigValidator.validate_logging_params({"level": "debug"}) == []

        issues = ConfigValidator.validate_logging_params({"level": "LOUD", "format_json": 1})

        assert [i.field for i in issues] == ["logging.level", "logging.format_json"]

    def test_empty_db_path(self) -> None:
        issues = ConfigValidator.validate_store_params({"db_path": "  "})
        assert issues[0].field == "store.db_path"
