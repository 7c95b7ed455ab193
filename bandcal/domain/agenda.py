"""Agenda view: upcoming occurrences grouped by month."""

import logging
from collections.abc import Iterable
from typing import Optional

from ..calendar.date_utils import DateLike, add_months, end_of_month, month_key, to_calendar_date
from ..calendar.models import CalendarEvent, Occurrence
from ..calendar.recurrence_expander import RecurrenceExpander, get_expander

logger = logging.getLogger(__name__)

DEFAULT_MONTHS_AHEAD = 2


def agenda_occurrences(
    events: Iterable[CalendarEvent],
    today: DateLike,
    months_ahead: int = DEFAULT_MONTHS_AHEAD,
    expander: Optional[RecurrenceExpander] = None,
) -> list[Occurrence]:
    """Occurrences starting from today to the end of the month ``months_ahead`` later.

    Unavailability entries are left out of the agenda. Results are in
    chronological order (date, start time, event id).
    """
    start = to_calendar_date(today)
    end = end_of_month(add_months(start, months_ahead))
    expander = expander or get_expander()

    occurrences = []
    for event in events:
        if event.is_unavailability:
            continue
        for occurrence in expander.expand_occurrences(event, start, end):
            # Agenda lists by start day; spans already in progress are not repeated
            if occurrence.start_date >= start:
                occurrences.append(occurrence)

    occurrences.sort(key=Occurrence.sort_key)
    logger.debug(
        "Agenda %s..%s: %d occurrence(s)", start.isoformat(), end.isoformat(), len(occurrences)
    )
    return occurrences


def build_agenda(
    events: Iterable[CalendarEvent],
    today: DateLike,
    months_ahead: int = DEFAULT_MONTHS_AHEAD,
    expander: Optional[RecurrenceExpander] = None,
) -> dict[str, list[Occurrence]]:
    """Group agenda occurrences by ``yyyy-MM`` month key, in month order."""
    grouped: dict[str, list[Occurrence]] = {}
    for occurrence in agenda_occurrences(events, today, months_ahead, expander):
        grouped.setdefault(month_key(occurrence.start_date), []).append(occurrence)
    return grouped


def next_upcoming(
    events: Iterable[CalendarEvent],
    today: DateLike,
    months_ahead: int = DEFAULT_MONTHS_AHEAD,
    expander: Optional[RecurrenceExpander] = None,
) -> Optional[Occurrence]:
    """The first agenda occurrence, used for the "Next" banner."""
    occurrences = agenda_occurrences(events, today, months_ahead, expander)
    return occurrences[0] if occurrences else None


def format_event_time(event: CalendarEvent) -> str:
    """Short time label: "All Day", "19:00" or "19:00 - 22:00"."""
    if event.is_all_day:
        return "All Day"
    if event.start_time:
        if event.end_time and event.end_time != event.start_time:
            return f"{event.start_time} - {event.end_time}"
        return event.start_time
    return ""
