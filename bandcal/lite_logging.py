"""
Central logging configuration for bandcal.

Sets up a colorized console handler and per-module levels so expansion and
grid-building diagnostics can be switched on without touching code.
"""

import logging
import os
import sys
from typing import Optional

from colorlog import ColoredFormatter

LOG_FORMAT = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

BANDCAL_MODULES = [
    "bandcal",
    "bandcal.calendar.recurrence_expander",
    "bandcal.calendar.event_loader",
    "bandcal.domain.visibility",
    "bandcal.domain.month_grid",
    "bandcal.domain.agenda",
]


def configure_lite_logging(
    debug_mode: bool = False,
    force_debug: Optional[bool] = None,
    log_level: Optional[str] = None,
) -> None:
    """
    Configure logging for bandcal.

    Args:
        debug_mode: Whether to enable debug logging for bandcal modules
        force_debug: Override debug mode setting (None to use env var detection)
        log_level: Configured level name (DEBUG, INFO, WARNING, ERROR);
            BANDCAL_LOG_LEVEL takes precedence, debug mode overrides both

    Environment Variables:
        BANDCAL_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        BANDCAL_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("BANDCAL_DEBUG", "").lower() in ("1", "true", "yes")
    level_name = (os.getenv("BANDCAL_LOG_LEVEL", "") or log_level or "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    if not final_debug and level_name in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, level_name)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    # Only add a handler if none exist, so host applications keep their own setup
    if not root_logger.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setLevel(root_level)
        handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt="%H:%M:%S", log_colors=LOG_COLORS))
        root_logger.addHandler(handler)

    # A quieter configured level also silences bandcal's own INFO output
    module_level = logging.DEBUG if final_debug else max(logging.INFO, root_level)
    for module in BANDCAL_MODULES:
        logging.getLogger(module).setLevel(module_level)

    if final_debug:
        root_logger.info("Debug logging enabled for bandcal modules.")


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in BANDCAL_MODULES:
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
