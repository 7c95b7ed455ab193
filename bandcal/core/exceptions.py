"""Exception hierarchy for the calendar engine.

Every error raised by bandcal is a deterministic consequence of bad input, so
none of these are retried. Callers catch ``BandCalError`` to handle them all.
"""

from typing import Optional


class BandCalError(Exception):
    """Base exception for all calendar engine errors."""

    def __init__(self, message: str, event_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.event_id = event_id


class InvalidRuleError(BandCalError):
    """A stored recurrence rule cannot be expanded.

    Raised when:
    - interval is lower than 1
    - termination is after_count but count is missing or not positive
    - termination is until_date but until is missing
    - until is earlier than the anchor date

    This is a data-integrity problem with the stored event.
    """


class InvalidRangeError(BandCalError):
    """A query window ends before it starts."""


class EventDataError(BandCalError):
    """An event payload from the data-fetch layer is missing required fields."""


class ConfigError(BandCalError):
    """A settings file is unreadable, malformed or not a mapping."""
