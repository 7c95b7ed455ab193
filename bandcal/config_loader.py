"""bandcal.config_loader

Settings for the calendar engine.

- Reads YAML (JSON is a subset and loads the same way).
- Environment overrides come from ``core.config_manager.ConfigManager``.
- Exposes a typed dataclass ``CalendarSettings`` and ``load_settings()``.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

import yaml

from .core.config_manager import ConfigManager, parse_bool
from .core.exceptions import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class CalendarSettings:
    """Typed settings for grid, agenda and expansion.

    Fields:
        max_visible_per_day: badges shown per day cell before overflow (1..20)
        consolidate_unavailability: collapse unavailability into one day badge
        agenda_months_ahead: months after the current one covered by the agenda
        max_occurrences_per_rule: cap on occurrences from one expansion call
        log_level: logging level name
    """

    max_visible_per_day: int = 3
    consolidate_unavailability: bool = False
    agenda_months_ahead: int = 2
    max_occurrences_per_rule: int = 5000
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> CalendarSettings:
        """Create settings from a plain mapping, applying defaults and bounds.

        Numeric-like values are coerced to int; out-of-range values are clamped
        with a warning.
        """
        if data is None:
            data = {}

        def _coerce_int(key: str, default: int, low: int, high: int) -> int:
            raw = data.get(key, default)
            try:
                value = int(raw)
            except (TypeError, ValueError):
                logger.warning("Config %s=%r is not an int; using default %d", key, raw, default)
                return default
            if value < low:
                logger.warning("%s %d below minimum; coercing to %d", key, value, low)
                return low
            if value > high:
                logger.warning("%s %d above maximum; coercing to %d", key, value, high)
                return high
            return value

        log_level = data.get("log_level", "INFO")
        log_level = str(log_level).upper() if log_level is not None else "INFO"

        return cls(
            max_visible_per_day=_coerce_int("max_visible_per_day", 3, 1, 20),
            consolidate_unavailability=parse_bool(data.get("consolidate_unavailability", False)),
            agenda_months_ahead=_coerce_int("agenda_months_ahead", 2, 0, 24),
            max_occurrences_per_rule=_coerce_int("max_occurrences_per_rule", 5000, 1, 100_000),
            log_level=log_level,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def load_config_file(path: Path) -> dict[str, Any]:
    """Load a settings mapping from a YAML or JSON file.

    Raises:
        ConfigError: If the file cannot be read or parsed, or its top level
            is not a mapping
    """
    try:
        loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Unable to read config file {path}: {e}") from e
    # safe_load returns None for empty files
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        logger.warning("Config file %s parsed but top-level is not a mapping: %r", path, loaded)
        raise ConfigError(f"Config file {path} must contain a mapping at top level")
    return loaded


def load_settings(path: str | None = None, env_file: Path | None = None) -> CalendarSettings:
    """Load settings from an optional file, then apply BANDCAL_* overrides.

    Args:
        path: Optional YAML/JSON settings file; missing files fall back to defaults
        env_file: Optional .env file consulted for environment defaults

    Returns:
        CalendarSettings instance
    """
    raw: dict[str, Any] = {}
    if path:
        p = Path(path)
        if p.exists():
            raw = load_config_file(p)
            logger.info("Loaded configuration from %s", p)
        else:
            logger.info("Config file %s not found; using defaults", p)

    overrides = ConfigManager(env_file).load_full_config()
    if overrides:
        logger.debug("Environment overrides: %s", overrides)
    raw.update(overrides)

    settings = CalendarSettings.from_dict(raw)
    logger.debug("Calendar settings in use: %s", settings)
    return settings
