"""bandcal - recurring-event expansion and calendar-layout engine.

Public entry points are re-exported here; submodules can be imported directly
when only one piece is needed.
"""

__version__ = "0.1.0"

from .calendar.models import (
    CalendarEvent,
    DayCell,
    EventCategory,
    EventPlacement,
    MonthGrid,
    Occurrence,
    RecurrenceKind,
    RecurrenceRule,
    SpanLayout,
    Termination,
    VisibilityContext,
)
from .calendar.multi_day import layout_span
from .calendar.recurrence_expander import RecurrenceExpander, describe_rule, expand
from .core.exceptions import (
    BandCalError,
    ConfigError,
    EventDataError,
    InvalidRangeError,
    InvalidRuleError,
)
from .domain.agenda import build_agenda, next_upcoming
from .domain.month_grid import MonthGridBuilder, build_month_grid
from .domain.visibility import filter_events, is_visible

__all__ = [
    "BandCalError",
    "CalendarEvent",
    "ConfigError",
    "DayCell",
    "EventCategory",
    "EventDataError",
    "EventPlacement",
    "InvalidRangeError",
    "InvalidRuleError",
    "MonthGrid",
    "MonthGridBuilder",
    "Occurrence",
    "RecurrenceExpander",
    "RecurrenceKind",
    "RecurrenceRule",
    "SpanLayout",
    "Termination",
    "VisibilityContext",
    "build_agenda",
    "build_month_grid",
    "describe_rule",
    "expand",
    "filter_events",
    "is_visible",
    "layout_span",
    "next_upcoming",
]
