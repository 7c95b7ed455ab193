"""Multi-day span layout for a Monday-start week grid.

A span bar never crosses the end of its week-row. The part of the span that
does not fit is drawn as a continuation segment starting at the first cell of
the next row.
"""

from datetime import date
from typing import Optional, Union

from .date_utils import DAYS_IN_WEEK, DateLike, day_index_in_week, to_calendar_date
from .models import CalendarEvent, Occurrence, SpanLayout

Spannable = Union[CalendarEvent, Occurrence]


def normalized_end_date(item: Spannable) -> date:
    """End of the span; a missing or inverted end collapses to the start day."""
    return item.effective_end_date


def is_multi_day(item: Spannable) -> bool:
    return normalized_end_date(item) > item.start_date


def span_days(item: Spannable) -> int:
    """Inclusive number of days covered (single day => 1)."""
    return (normalized_end_date(item) - item.start_date).days + 1


def remaining_days_in_week(day_index: int) -> int:
    """Cells left in the week-row from a position, including that cell.

    Accepts either a 0..6 week position or a 0-based grid index.
    """
    return DAYS_IN_WEEK - (day_index % DAYS_IN_WEEK)


def is_date_in_span(day: DateLike, item: Spannable) -> bool:
    target = to_calendar_date(day)
    return item.start_date <= target <= normalized_end_date(item)


def day_offset_in_span(day: DateLike, item: Spannable) -> int:
    """0 for the start day, 1 for the second day, and so on (never negative)."""
    return max(0, (to_calendar_date(day) - item.start_date).days)


def is_continuation(day: DateLike, item: Spannable) -> bool:
    """True on every covered day except the first."""
    target = to_calendar_date(day)
    return target > item.start_date and is_date_in_span(target, item)


def layout_span(
    item: Spannable,
    cell_date: DateLike,
    day_index: Optional[int] = None,
) -> SpanLayout:
    """Compute how many cells the span bar covers from a given cell.

    Args:
        item: Event or occurrence providing the span
        cell_date: Date of the grid cell being laid out
        day_index: Position of the cell in its week-row (Monday=0); derived
            from cell_date when omitted

    Returns:
        SpanLayout with the clipped cell count and whether this is the start
        segment

    Raises:
        ValueError: If the cell is outside the span or day_index is not 0..6
    """
    cell = to_calendar_date(cell_date)
    if day_index is None:
        day_index = day_index_in_week(cell)
    if not 0 <= day_index < DAYS_IN_WEEK:
        raise ValueError(f"day_index must be in 0..6, got {day_index}")
    if not is_date_in_span(cell, item):
        raise ValueError(
            f"{cell.isoformat()} is outside span "
            f"{item.start_date.isoformat()}..{normalized_end_date(item).isoformat()}"
        )

    remaining_in_week = DAYS_IN_WEEK - day_index
    days_left_in_span = (normalized_end_date(item) - cell).days + 1
    return SpanLayout(
        cells_to_render=min(days_left_in_span, remaining_in_week),
        is_start_segment=cell == item.start_date,
    )


def bar_width_percent(cells: int) -> float:
    """Width of a bar as a percentage of its week-row, capped at 100."""
    return min(cells / DAYS_IN_WEEK * 100, 100.0)
