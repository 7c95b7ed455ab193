"""Month grid assembly.

Builds the Monday-start month grid (35 or 42 cells, padded with days of the
adjacent months) and attaches to each day the occurrences that start there
and the ones that only run through it.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from datetime import date
from typing import Any, TypeVar

from ..calendar.date_utils import (
    DAYS_IN_WEEK,
    DateLike,
    add_days,
    end_of_month,
    end_of_week,
    ensure_range,
    iter_days,
    ranges_overlap,
    start_of_month,
    start_of_week,
    to_calendar_date,
)
from ..calendar.models import (
    CalendarEvent,
    DayCell,
    EventPlacement,
    MonthGrid,
    Occurrence,
    PlacementRole,
)
from ..calendar.multi_day import layout_span
from ..calendar.recurrence_expander import RecurrenceExpander, get_expander
from ..config_loader import CalendarSettings

logger = logging.getLogger(__name__)

DEFAULT_MAX_VISIBLE_PER_DAY = 3
MIN_GRID_CELLS = 35

T = TypeVar("T", CalendarEvent, Occurrence)


def month_grid_range(month_anchor: DateLike) -> tuple[date, date]:
    """Return (Monday on/before the 1st, Sunday closing the last grid row).

    A month that exactly fills four weeks (a non-leap February starting on a
    Monday) gets one trailing padding week, so a grid is always 35 or 42 cells.
    """
    anchor = to_calendar_date(month_anchor)
    grid_start = start_of_week(start_of_month(anchor))
    grid_end = end_of_week(end_of_month(anchor))
    if (grid_end - grid_start).days + 1 < MIN_GRID_CELLS:
        grid_end = add_days(grid_end, DAYS_IN_WEEK)
    return grid_start, grid_end


def normalize_event(event: CalendarEvent) -> CalendarEvent:
    """Collapse an event whose end precedes its start to a single day."""
    if event.has_consistent_span:
        return event
    logger.warning(
        "Event %s ends (%s) before it starts (%s); showing it as a single-day event",
        event.id,
        event.end_date.isoformat() if event.end_date else None,
        event.start_date.isoformat(),
    )
    return event.model_copy(update={"end_date": event.start_date})


class MonthGridBuilder:
    """Builds month grids from visible events.

    The builder never reads the clock; "today" is always passed in.
    """

    def __init__(
        self,
        settings: CalendarSettings | None = None,
        expander: RecurrenceExpander | None = None,
    ):
        """Initialize builder.

        Args:
            settings: Grid settings (visible cap, unavailability consolidation)
            expander: Recurrence expander; defaults to one configured from settings
        """
        self.settings = settings or CalendarSettings()
        self.expander = expander or get_expander(settings)
        self.max_visible = self.settings.max_visible_per_day
        self.consolidate_unavailability = self.settings.consolidate_unavailability

    def build(
        self,
        month_anchor: DateLike,
        visible_events: Iterable[CalendarEvent],
        today: DateLike,
    ) -> MonthGrid:
        """Build the grid for the month containing month_anchor.

        Args:
            month_anchor: Any day of the target month
            visible_events: Events already pruned by the visibility filter
            today: Current date for "today" highlighting

        Returns:
            MonthGrid with 35 or 42 cells

        Raises:
            InvalidRuleError: If an event carries a malformed recurrence rule
        """
        anchor = to_calendar_date(month_anchor)
        today_date = to_calendar_date(today)
        month = start_of_month(anchor)
        grid_start, grid_end = month_grid_range(anchor)

        events = [normalize_event(e) for e in visible_events]
        occurrences = self.expander.expand_events(events, grid_start, grid_end)
        by_day = self._index_by_day(occurrences, grid_start, grid_end)

        cells = [
            self._build_cell(index, day, month, today_date, by_day.get(day, []))
            for index, day in enumerate(iter_days(grid_start, grid_end))
        ]

        logger.debug(
            "Built month grid %s: %d cells, %d occurrence(s) from %d event(s)",
            month.isoformat()[:7],
            len(cells),
            len(occurrences),
            len(events),
        )
        return MonthGrid(month=month, grid_start=grid_start, grid_end=grid_end, cells=cells)

    @staticmethod
    def _index_by_day(
        occurrences: list[Occurrence], grid_start: date, grid_end: date
    ) -> dict[date, list[Occurrence]]:
        """Map each grid day to the occurrences covering it, in sorted order."""
        by_day: dict[date, list[Occurrence]] = defaultdict(list)
        for occurrence in occurrences:
            first = max(occurrence.start_date, grid_start)
            last = min(occurrence.end_date, grid_end)
            if last < first:
                continue
            for day in iter_days(first, last):
                by_day[day].append(occurrence)
        return by_day

    def _build_cell(
        self,
        index: int,
        day: date,
        month: date,
        today: date,
        covering: list[Occurrence],
    ) -> DayCell:
        day_index = index % DAYS_IN_WEEK
        starting: list[EventPlacement] = []
        continuing: list[EventPlacement] = []
        unavailability: list[Occurrence] = []

        for occurrence in covering:
            if self.consolidate_unavailability and occurrence.is_unavailability:
                unavailability.append(occurrence)
                continue
            layout = layout_span(occurrence, day, day_index)
            placement = EventPlacement(
                occurrence=occurrence,
                role=PlacementRole.STARTING if layout.is_start_segment else PlacementRole.CONTINUING,
                layout=layout,
                renders_bar=layout.is_start_segment or day_index == 0,
            )
            if layout.is_start_segment:
                starting.append(placement)
            else:
                continuing.append(placement)

        badges = starting + continuing
        # A consolidated unavailability badge takes one of the visible slots
        slots = self.max_visible - (1 if unavailability else 0)
        visible = badges[: max(0, slots)]

        return DayCell(
            day=day,
            index=index,
            day_index_in_week=day_index,
            is_current_month=day.year == month.year and day.month == month.month,
            is_today=day == today,
            starting=starting,
            continuing=continuing,
            visible=visible,
            overflow_count=len(badges) - len(visible),
            unavailability=unavailability,
        )


def build_month_grid(
    month_anchor: DateLike,
    visible_events: Iterable[CalendarEvent],
    today: DateLike,
    settings: CalendarSettings | None = None,
) -> MonthGrid:
    """Build a month grid with a default-configured builder."""
    return MonthGridBuilder(settings).build(month_anchor, visible_events, today)


def filter_to_date_range(items: Iterable[T], range_start: DateLike, range_end: DateLike) -> list[T]:
    """Keep events or occurrences whose span overlaps the inclusive range."""
    start = to_calendar_date(range_start)
    end = to_calendar_date(range_end)
    ensure_range(start, end)
    return [i for i in items if ranges_overlap(i.start_date, i.effective_end_date, start, end)]


def events_for_date(items: Iterable[T], day: DateLike) -> list[T]:
    """Events or occurrences covering the day, multi-day spans included."""
    target = to_calendar_date(day)
    return [i for i in items if i.start_date <= target <= i.effective_end_date]


def events_starting_on(items: Iterable[T], day: DateLike) -> list[T]:
    target = to_calendar_date(day)
    return [i for i in items if i.start_date == target]


def events_extending_to(items: Iterable[T], day: DateLike) -> list[T]:
    """Multi-day events or occurrences that run through the day without starting on it."""
    target = to_calendar_date(day)
    return [i for i in items if i.start_date < target <= i.effective_end_date]


def grid_summary(grid: MonthGrid) -> dict[str, Any]:
    """Compact JSON-friendly description of a grid for the presentation layer."""
    return {
        "month": grid.month.isoformat()[:7],
        "grid_start": grid.grid_start.isoformat(),
        "grid_end": grid.grid_end.isoformat(),
        "weeks": [
            [
                {
                    "date": cell.iso_date,
                    "current_month": cell.is_current_month,
                    "today": cell.is_today,
                    "events": [
                        {
                            "id": p.occurrence.source_event_id,
                            "role": p.role.value,
                            "cells": p.layout.cells_to_render,
                            "bar": p.renders_bar,
                        }
                        for p in cell.visible
                    ],
                    "unavailable": [o.source_event_id for o in cell.unavailability],
                    "overflow": cell.overflow_count,
                }
                for cell in week
            ]
            for week in grid.weeks
        ],
    }
