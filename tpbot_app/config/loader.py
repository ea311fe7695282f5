"""Configuration loader: built-in defaults overlaid with optional YAML files."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from ..dom.selectors import DEFAULT_CATALOG, SelectorCatalog
from .defaults import DefaultConfig, TimingParams, get_default_config

TIMING_FILE = "timing.yaml"
SELECTORS_FILE = "selectors.yaml"


@dataclass(frozen=True)
class ConfigLoader:
    """Loads timing and selector overrides on top of the defaults."""

    config_dir: Path
    defaults: DefaultConfig

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
        )

    def load_yaml(self, filename: str) -> dict[str, Any]:
        """Load a YAML override file; a missing or empty file yields {}."""
        path = self.config_dir / filename

        if not path.exists():
            return {}

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)

        return data or {}

    def load_timing(self, overrides: Optional[dict[str, Any]] = None) -> TimingParams:
        """
        Merge timing parameters.

        Priority order:
        1. Explicit overrides (highest priority)
        2. timing.yaml
        3. Built-in defaults (lowest priority)
        """
        timing = self._dataclass_to_dict(self.defaults.timing)
        timing = self._deep_merge(timing, self.load_yaml(TIMING_FILE).get("timing", {}))

        if overrides:
            timing = self._deep_merge(timing, overrides)

        return TimingParams(**timing)

    def load_selector_catalog(self) -> SelectorCatalog:
        """Default selector catalog overlaid with selectors.yaml."""
        overrides = self.load_yaml(SELECTORS_FILE).get("selectors", {})
        if not overrides:
            return DEFAULT_CATALOG

        merged = self._deep_merge(DEFAULT_CATALOG.to_dict(), overrides)
        return SelectorCatalog.from_dict(merged)

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name in obj.__dataclass_fields__:
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
