"""Environment-driven configuration for bandcal."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

ENV_PREFIX = "BANDCAL_"


def parse_env_file(path: Path) -> dict[str, str]:
    """Parse a .env file and return key-value pairs.

    Args:
        path: Path to .env file

    Returns:
        Dictionary of key-value pairs. Empty dict if the file doesn't exist
        or cannot be read.

    Note:
        - Skips empty lines and comments (lines starting with #)
        - Strips single and double quotes from values
    """
    if not path.exists():
        return {}

    result: dict[str, str] = {}

    try:
        content = path.read_text(encoding="utf-8")
    except OSError:
        logger.debug("Failed to read .env file (continuing): %s", str(path), exc_info=True)
        return {}

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, val = line.split("=", 1)
        key = key.strip()
        if key:
            result[key] = val.strip().strip('"').strip("'")

    return result


def parse_bool(raw: Any) -> bool:
    """Coerce a flag from env text, YAML or JSON ("false" and "0" are False)."""
    if isinstance(raw, str):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    return bool(raw)


class ConfigManager:
    """Builds calendar settings overrides from environment variables and .env files."""

    # env var suffix -> (settings key, converter)
    ENV_KEYS: dict[str, tuple[str, Any]] = {
        "MAX_VISIBLE_PER_DAY": ("max_visible_per_day", int),
        "CONSOLIDATE_UNAVAILABILITY": ("consolidate_unavailability", parse_bool),
        "AGENDA_MONTHS_AHEAD": ("agenda_months_ahead", int),
        "MAX_OCCURRENCES_PER_RULE": ("max_occurrences_per_rule", int),
        "LOG_LEVEL": ("log_level", str),
    }

    def __init__(self, env_file_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Load .env defaults into the environment.

        Variables already present in the environment are left untouched.

        Returns:
            Keys that were set from the .env file
        """
        set_keys = []
        for key, val in parse_env_file(self.env_file_path).items():
            if key not in os.environ:
                os.environ[key] = val
                set_keys.append(key)

        if set_keys:
            logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))
        return set_keys

    def build_config_from_env(self) -> dict[str, Any]:
        """Build a settings override mapping from BANDCAL_* variables.

        Recognizes:
        - BANDCAL_MAX_VISIBLE_PER_DAY -> 'max_visible_per_day' (int)
        - BANDCAL_CONSOLIDATE_UNAVAILABILITY -> 'consolidate_unavailability' (bool)
        - BANDCAL_AGENDA_MONTHS_AHEAD -> 'agenda_months_ahead' (int)
        - BANDCAL_MAX_OCCURRENCES_PER_RULE -> 'max_occurrences_per_rule' (int)
        - BANDCAL_LOG_LEVEL -> 'log_level'

        Invalid values are logged and ignored.
        """
        cfg: dict[str, Any] = {}
        for suffix, (key, convert) in self.ENV_KEYS.items():
            env_name = ENV_PREFIX + suffix
            raw = os.environ.get(env_name)
            if not raw:
                continue
            try:
                cfg[key] = convert(raw)
            except ValueError:
                logger.warning("Invalid %s=%r; ignoring", env_name, raw)
        return cfg

    def load_full_config(self) -> dict[str, Any]:
        """Load the .env file, then build overrides from the environment."""
        self.load_env_file()
        return self.build_config_from_env()


def get_config_value(config: Any, key: str, default: Any = None) -> Any:
    """Get a configuration value from either a dict or an attribute object."""
    if isinstance(config, dict):
        return config.get(key, default)
    return getattr(config, key, default)
