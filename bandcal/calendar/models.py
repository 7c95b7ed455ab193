"""Data models for the calendar engine."""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class EventCategory(str, Enum):
    """Kinds of calendar entries a member can create."""

    GIG = "gig"
    REHEARSAL = "rehearsal"
    UNAVAILABILITY = "unavailability"
    OTHER = "other"


class RecurrenceKind(str, Enum):
    """Repeat unit of a recurrence rule."""

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Termination(str, Enum):
    """How a recurring series ends."""

    FOREVER = "forever"
    AFTER_COUNT = "after_count"
    UNTIL_DATE = "until_date"


class RecurrenceRule(BaseModel):
    """Compact recurrence rule attached to an event.

    Field values are not range-checked here: a stored rule with a bad interval
    still loads, and the expander reports it with InvalidRuleError.
    """

    kind: RecurrenceKind = Field(default=RecurrenceKind.NONE, description="Repeat unit")
    interval: int = Field(default=1, description="Repeat every N units")
    termination: Termination = Field(default=Termination.FOREVER, description="End condition")
    count: Optional[int] = Field(default=None, description="Total occurrences for after_count")
    until: Optional[date] = Field(default=None, description="Last allowed date for until_date")

    @property
    def is_active(self) -> bool:
        """False when the rule is inert (kind = none)."""
        return self.kind != RecurrenceKind.NONE


class CalendarEvent(BaseModel):
    """A gig, rehearsal, unavailability entry or other event.

    Ownership is unified into ``owner_user_id`` at the data-fetch boundary (see
    ``event_loader``); nothing downstream looks at legacy membership fields.
    """

    # Core properties
    id: str = Field(..., description="Event ID")
    title: Optional[str] = Field(default=None, description="Event title")
    category: EventCategory = Field(default=EventCategory.OTHER, description="Event category")

    # Date span
    start_date: date = Field(..., description="First day of the event (anchor date)")
    end_date: Optional[date] = Field(default=None, description="Last day for multi-day events")

    # Display-only time information
    start_time: Optional[str] = Field(default=None, description="Start time, e.g. 19:00")
    end_time: Optional[str] = Field(default=None, description="End time, e.g. 22:30")
    is_all_day: bool = Field(default=False, description="All-day event flag")

    # Ownership
    owner_user_id: Optional[str] = Field(default=None, description="User the event belongs to")
    artist_id: Optional[str] = Field(default=None, description="Artist; absent for personal events")
    cross_artist: bool = Field(
        default=False,
        description="Unavailability surfaced from a different artist context",
    )

    # Presentation hints
    venue: Optional[str] = Field(default=None, description="Venue name")
    artist_name: Optional[str] = Field(default=None, description="Artist name for cross-artist events")
    display_name: Optional[str] = Field(default=None, description="Backend-enriched display name")

    # Recurrence
    recurrence: Optional[RecurrenceRule] = Field(default=None, description="Recurrence rule")
    excluded_dates: set[date] = Field(
        default_factory=set, description="Occurrences deleted from the series"
    )

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not None and self.recurrence.is_active

    @property
    def is_unavailability(self) -> bool:
        return self.category == EventCategory.UNAVAILABILITY

    @property
    def has_consistent_span(self) -> bool:
        """False when end_date precedes start_date."""
        return self.end_date is None or self.end_date >= self.start_date

    @property
    def effective_end_date(self) -> date:
        """End date, normalized to start_date when absent or inconsistent."""
        if self.end_date is None or self.end_date < self.start_date:
            return self.start_date
        return self.end_date

    @property
    def span_days(self) -> int:
        """Inclusive number of days the event covers."""
        return (self.effective_end_date - self.start_date).days + 1

    @field_serializer("excluded_dates")
    def serialize_excluded_dates(self, values: set[date]) -> list[str]:
        """Serialize excluded dates as a sorted ISO list."""
        return sorted(d.isoformat() for d in values)


class Occurrence(BaseModel):
    """One concrete dated instance of an event. Never persisted."""

    source_event_id: str = Field(..., description="ID of the event this occurrence came from")
    start_date: date = Field(..., description="Occurrence start")
    end_date: date = Field(..., description="Occurrence end (start + source span)")
    is_recurring_instance: bool = Field(default=False, description="Generated from a rule")
    event: CalendarEvent = Field(..., description="Source event")

    @property
    def category(self) -> EventCategory:
        return self.event.category

    @property
    def artist_id(self) -> Optional[str]:
        return self.event.artist_id

    @property
    def owner_user_id(self) -> Optional[str]:
        return self.event.owner_user_id

    @property
    def cross_artist(self) -> bool:
        return self.event.cross_artist

    @property
    def start_time(self) -> Optional[str]:
        return self.event.start_time

    @property
    def is_unavailability(self) -> bool:
        return self.event.is_unavailability

    @property
    def effective_end_date(self) -> date:
        return self.end_date

    @property
    def span_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def sort_key(self) -> tuple[date, str, str]:
        """Chronological ordering: date, then start time, then event id."""
        return (self.start_date, self.event.start_time or "", self.source_event_id)


class VisibilityContext(BaseModel):
    """Viewer identity and calendar toggle state."""

    viewer_user_id: Optional[str] = Field(default=None, description="Current user")
    effective_artist_id: Optional[str] = Field(
        default=None, description="Current artist context; None for the personal calendar"
    )
    show_artist_events: bool = Field(default=True, description="'Artist events' toggle")
    show_my_events: bool = Field(default=True, description="'My events' toggle")
    show_all_artists: bool = Field(default=False, description="'All artists' toggle")

    model_config = ConfigDict(frozen=True)


class SpanLayout(BaseModel):
    """How many grid cells a span bar covers from one cell."""

    cells_to_render: int
    is_start_segment: bool

    model_config = ConfigDict(frozen=True)


class PlacementRole(str, Enum):
    """Whether an occurrence starts on a day or only runs through it."""

    STARTING = "starting"
    CONTINUING = "continuing"


class EventPlacement(BaseModel):
    """An occurrence attached to a day cell."""

    occurrence: Occurrence
    role: PlacementRole
    layout: SpanLayout
    renders_bar: bool = Field(
        default=False,
        description="True on the cell where a bar segment is drawn (start or row start)",
    )


class DayCell(BaseModel):
    """One cell of a month grid."""

    day: date
    index: int = Field(..., description="Position in the grid, 0-based")
    day_index_in_week: int = Field(..., description="Monday=0 .. Sunday=6")
    is_current_month: bool
    is_today: bool
    starting: list[EventPlacement] = Field(default_factory=list)
    continuing: list[EventPlacement] = Field(default_factory=list)
    visible: list[EventPlacement] = Field(default_factory=list)
    overflow_count: int = 0
    unavailability: list[Occurrence] = Field(
        default_factory=list,
        description="Unavailability occurrences, when consolidated into one badge",
    )

    @property
    def has_overflow(self) -> bool:
        return self.overflow_count > 0

    @property
    def has_unavailability(self) -> bool:
        return bool(self.unavailability)

    @property
    def iso_date(self) -> str:
        return self.day.isoformat()


class MonthGrid(BaseModel):
    """Monday-start month grid padded to whole weeks."""

    month: date = Field(..., description="First day of the target month")
    grid_start: date
    grid_end: date
    cells: list[DayCell] = Field(default_factory=list)

    @property
    def weeks(self) -> list[list[DayCell]]:
        """Cells chunked into Monday-Sunday rows."""
        return [self.cells[i : i + 7] for i in range(0, len(self.cells), 7)]

    def cell_for(self, day: date) -> Optional[DayCell]:
        """Return the cell for a day, or None when outside the grid."""
        if day < self.grid_start or day > self.grid_end:
            return None
        return self.cells[(day - self.grid_start).days]
