"""Core infrastructure: exceptions and configuration."""

from .exceptions import (
    BandCalError,
    ConfigError,
    EventDataError,
    InvalidRangeError,
    InvalidRuleError,
)

__all__ = [
    "BandCalError",
    "ConfigError",
    "EventDataError",
    "InvalidRangeError",
    "InvalidRuleError",
]
