#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path
from typing import Optional

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from patrol_app.config.loader import CONFIG_FILENAME, ConfigLoader
from patrol_app.config.validation import ConfigIssue, ConfigValidator


def validate_settings(config_dir: Optional[Path] = None) -> list[ConfigIssue]:
    """Validate the merged configuration for a settings directory."""
    loader = ConfigLoader.create(config_dir)
    config = loader.merge_config()
    return ConfigValidator.validate_config(config)


def main():
    """Main validation function."""
    config_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    loader = ConfigLoader.create(config_dir)
    settings_file = loader.config_dir / CONFIG_FILENAME

    print(f"🔍 Validating patrol settings in {settings_file}...")
    if not settings_file.exists():
        print("ℹ️  No settings file found, checking built-in defaults")

    try:
        issues = validate_settings(loader.config_dir)
    except Exception as e:
        print(f"❌ Error reading settings: {e}")
        sys.exit(1)

    if issues:
        print(f"❌ Found {len(issues)} validation issues:")
        for issue in issues:
            print(f"  • {issue.field}: {issue.message} (value: {issue.value})")
        sys.exit(1)

    config = loader.load_app_config()
    print(f"✅ Configuration is valid")
    print(f"  • store.db_path: {config.store.db_path}")
    print(f"  • time.timezone: {config.time.timezone}")
    print(f"  • sync.sync_on_read: {config.sync.sync_on_read}")
    print(f"  • sync.sync_all_patrols: {config.sync.sync_all_patrols}")
    sys.exit(0)


if __name__ == "__main__":
    main()
