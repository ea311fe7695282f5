#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path
from typing import List, Optional

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tpbot_app.config.loader import TIMING_FILE, ConfigLoader
from tpbot_app.config.validation import ConfigValidator, ValidationError
from tpbot_app.errors import PersistenceError
from tpbot_app.persistence.config_store import JsonConfigStore


def validate_timing_file(loader: ConfigLoader) -> List[ValidationError]:
    """Validate timing.yaml overrides."""
    overrides = loader.load_yaml(TIMING_FILE).get("timing", {})
    return ConfigValidator.validate_timing_params(overrides)


def validate_stored_record(store_path: str) -> List[ValidationError]:
    """Validate the persisted run record; a running record must also be startable."""
    config = JsonConfigStore(store_path).load()
    record = config.to_record()
    if config.running:
        return ConfigValidator.validate_start_request(record)
    return ConfigValidator.validate_bot_config(record)


def report(title: str, errors: List[ValidationError]) -> bool:
    if errors:
        print(f"❌ {title}: {len(errors)} validation errors")
        for error in errors:
            print(f"  • {error.field}: {error.message} (value: {error.value})")
        return False
    print(f"✅ {title} is valid")
    return True


def main(store_path: str = "storage.json", config_dir: Optional[str] = None):
    """Main validation function."""
    print("🔍 Validating TPBot configuration...")

    loader = ConfigLoader.create(Path(config_dir) if config_dir else None)
    all_valid = True

    print(f"\n⏱️  Timing overrides in {loader.config_dir}...")
    try:
        all_valid &= report("Timing overrides", validate_timing_file(loader))
        loader.load_selector_catalog()
        print("✅ Selector catalog loads")
    except Exception as e:
        print(f"❌ Error loading overrides: {e}")
        all_valid = False

    print(f"\n💾 Stored record in {store_path}...")
    try:
        all_valid &= report("Stored record", validate_stored_record(store_path))
    except PersistenceError as e:
        print(f"❌ Cannot read stored record: {e}")
        all_valid = False

    if all_valid:
        print("\n🎉 All configuration validation passed!")
        sys.exit(0)
    else:
        print("\n❌ Configuration validation failed!")
        sys.exit(1)


if __name__ == "__main__":
    main(*sys.argv[1:3])
