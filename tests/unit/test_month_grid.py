"""Unit tests for bandcal.domain.month_grid."""

import logging
from datetime import date

import pytest

from bandcal.calendar.models import EventCategory, PlacementRole, RecurrenceKind, RecurrenceRule
from bandcal.config_loader import CalendarSettings
from bandcal.core.exceptions import InvalidRangeError, InvalidRuleError
from bandcal.domain.month_grid import (
    MonthGridBuilder,
    build_month_grid,
    events_extending_to,
    events_for_date,
    events_starting_on,
    filter_to_date_range,
    grid_summary,
    month_grid_range,
)

pytestmark = pytest.mark.unit

TODAY = date(2025, 1, 15)


class TestGridShape:
    @pytest.mark.smoke
    def test_january_2025_has_five_weeks(self):
        grid = build_month_grid("2025-01-01", [], TODAY)

        assert len(grid.cells) == 35
        assert grid.grid_start == date(2024, 12, 30)
        assert grid.grid_end == date(2025, 2, 2)
        assert len(grid.weeks) == 5
        assert all(len(week) == 7 for week in grid.weeks)

    def test_march_2025_has_six_weeks(self):
        grid = build_month_grid("2025-03-20", [], TODAY)

        assert len(grid.cells) == 42
        assert grid.grid_start == date(2025, 2, 24)
        assert grid.grid_end == date(2025, 4, 6)

    def test_month_that_fills_four_whole_weeks_gets_padding_week(self):
        # February 2021 runs exactly Monday 1st to Sunday 28th
        assert month_grid_range("2021-02-10") == (date(2021, 2, 1), date(2021, 3, 7))

        grid = build_month_grid("2021-02-01", [], TODAY)
        assert len(grid.cells) == 35
        assert [c.is_current_month for c in grid.weeks[-1]] == [False] * 7

    @pytest.mark.parametrize("year", range(2020, 2031))
    def test_every_month_is_35_or_42_cells(self, year):
        for month in range(1, 13):
            start, end = month_grid_range(date(year, month, 1))
            assert (end - start).days + 1 in (35, 42)
            assert start.weekday() == 0
            assert end.weekday() == 6

    def test_cells_are_consecutive_and_start_on_monday(self):
        grid = build_month_grid("2025-01-01", [], TODAY)

        for i, cell in enumerate(grid.cells):
            assert cell.index == i
            assert cell.day_index_in_week == i % 7
            assert cell.day.weekday() == i % 7
        assert grid.cells[0].day.weekday() == 0

    def test_current_month_flags(self):
        grid = build_month_grid("2025-01-01", [], TODAY)

        outside = [c.iso_date for c in grid.cells if not c.is_current_month]
        assert outside == ["2024-12-30", "2024-12-31", "2025-02-01", "2025-02-02"]

    def test_today_flag(self):
        grid = build_month_grid("2025-01-01", [], TODAY)

        today_cells = [c for c in grid.cells if c.is_today]
        assert len(today_cells) == 1
        assert today_cells[0].day == TODAY

    def test_today_outside_grid(self):
        grid = build_month_grid("2025-06-01", [], TODAY)
        assert not any(c.is_today for c in grid.cells)

    def test_cell_for(self):
        grid = build_month_grid("2025-01-01", [], TODAY)
        assert grid.cell_for(date(2025, 1, 1)).index == 2
        assert grid.cell_for(date(2025, 3, 1)) is None


class TestPlacements:
    def test_multi_day_event_across_rows(self, make_event):
        event = make_event("span", start_date="2025-01-09", end_date="2025-01-13")
        grid = build_month_grid("2025-01-01", [event], TODAY)

        thursday = grid.cell_for(date(2025, 1, 9))
        friday = grid.cell_for(date(2025, 1, 10))
        monday = grid.cell_for(date(2025, 1, 13))

        assert [p.role for p in thursday.starting] == [PlacementRole.STARTING]
        assert thursday.starting[0].layout.cells_to_render == 4
        assert thursday.starting[0].renders_bar

        assert friday.starting == []
        assert friday.continuing[0].layout.cells_to_render == 3
        assert not friday.continuing[0].renders_bar

        assert monday.continuing[0].layout.cells_to_render == 1
        assert not monday.continuing[0].layout.is_start_segment
        assert monday.continuing[0].renders_bar

        assert grid.cell_for(date(2025, 1, 14)).continuing == []

    def test_span_entering_from_previous_month(self, make_event):
        event = make_event(start_date="2024-12-28", end_date="2025-01-02")
        grid = build_month_grid("2025-01-01", [event], TODAY)

        first = grid.cells[0]
        assert first.starting == []
        assert first.continuing[0].layout.cells_to_render == 4
        assert first.continuing[0].renders_bar

    def test_recurring_event_on_each_occurrence(self, make_event):
        event = make_event(
            start_date="2025-01-06", recurrence=RecurrenceRule(kind=RecurrenceKind.WEEKLY)
        )
        grid = build_month_grid("2025-01-01", [event], TODAY)

        days = [c.day.day for c in grid.cells if c.starting]
        assert days == [6, 13, 20, 27]
        assert all(p.occurrence.is_recurring_instance for c in grid.cells for p in c.starting)

    def test_inverted_event_shown_as_single_day(self, make_event, caplog):
        event = make_event("bad-end", start_date="2025-01-10", end_date="2025-01-05")

        with caplog.at_level(logging.WARNING, logger="bandcal.domain.month_grid"):
            grid = build_month_grid("2025-01-01", [event], TODAY)

        covered = [c.iso_date for c in grid.cells if c.starting or c.continuing]
        assert covered == ["2025-01-10"]
        assert "bad-end" in caplog.text

    def test_invalid_rule_propagates(self, make_event):
        event = make_event(
            start_date="2025-01-06", recurrence=RecurrenceRule(kind=RecurrenceKind.DAILY, interval=0)
        )
        with pytest.raises(InvalidRuleError):
            build_month_grid("2025-01-01", [event], TODAY)


class TestOverflow:
    def test_visible_cap_and_overflow(self, make_event):
        events = [make_event("long", start_date="2025-01-14", end_date="2025-01-15")]
        events += [make_event(f"e{i}", start_date="2025-01-15") for i in range(4)]

        cell = build_month_grid("2025-01-01", events, TODAY).cell_for(TODAY)

        assert [p.occurrence.source_event_id for p in cell.visible] == ["e0", "e1", "e2"]
        assert cell.overflow_count == 2
        assert cell.has_overflow
        assert [p.occurrence.source_event_id for p in cell.continuing] == ["long"]

    def test_no_overflow_under_cap(self, make_event):
        events = [make_event(f"e{i}", start_date="2025-01-15") for i in range(3)]
        cell = build_month_grid("2025-01-01", events, TODAY).cell_for(TODAY)

        assert len(cell.visible) == 3
        assert cell.overflow_count == 0

    def test_custom_cap(self, make_event):
        events = [make_event(f"e{i}", start_date="2025-01-15") for i in range(3)]
        settings = CalendarSettings(max_visible_per_day=1)

        cell = build_month_grid("2025-01-01", events, TODAY, settings).cell_for(TODAY)

        assert len(cell.visible) == 1
        assert cell.overflow_count == 2


class TestUnavailabilityConsolidation:
    @pytest.fixture
    def day_events(self, make_event):
        return [
            make_event("off", start_date="2025-01-15", category=EventCategory.UNAVAILABILITY),
            make_event("g1", start_date="2025-01-15"),
            make_event("g2", start_date="2025-01-15"),
            make_event("g3", start_date="2025-01-15"),
        ]

    def test_disabled_by_default(self, day_events):
        cell = build_month_grid("2025-01-01", day_events, TODAY).cell_for(TODAY)

        assert not cell.has_unavailability
        assert len(cell.visible) == 3
        assert cell.overflow_count == 1

    def test_consolidated_badge_takes_a_slot(self, day_events):
        builder = MonthGridBuilder(CalendarSettings(consolidate_unavailability=True))
        cell = builder.build("2025-01-01", day_events, TODAY).cell_for(TODAY)

        assert [o.source_event_id for o in cell.unavailability] == ["off"]
        assert [p.occurrence.source_event_id for p in cell.visible] == ["g1", "g2"]
        assert cell.overflow_count == 1


class TestQueries:
    @pytest.fixture
    def events(self, make_event):
        return [
            make_event("single", start_date="2025-01-10"),
            make_event("span", start_date="2025-01-08", end_date="2025-01-11"),
            make_event("later", start_date="2025-02-10"),
        ]

    def test_filter_to_date_range(self, events):
        result = filter_to_date_range(events, "2025-01-11", "2025-01-31")
        assert [e.id for e in result] == ["span"]

    def test_filter_to_date_range_rejects_inverted(self, events):
        with pytest.raises(InvalidRangeError):
            filter_to_date_range(events, "2025-01-31", "2025-01-01")

    def test_events_for_date(self, events):
        assert [e.id for e in events_for_date(events, "2025-01-10")] == ["single", "span"]

    def test_events_starting_on(self, events):
        assert [e.id for e in events_starting_on(events, "2025-01-08")] == ["span"]

    def test_events_extending_to(self, events):
        assert [e.id for e in events_extending_to(events, "2025-01-10")] == ["span"]
        assert events_extending_to(events, "2025-01-08") == []


class TestGridSummary:
    def test_summary_shape(self, make_event):
        event = make_event("span", start_date="2025-01-09", end_date="2025-01-13")
        summary = grid_summary(build_month_grid("2025-01-01", [event], TODAY))

        assert summary["month"] == "2025-01"
        assert summary["grid_start"] == "2024-12-30"
        assert summary["grid_end"] == "2025-02-02"
        assert len(summary["weeks"]) == 5

        thursday = summary["weeks"][1][3]
        assert thursday["date"] == "2025-01-09"
        assert thursday["events"] == [{"id": "span", "role": "starting", "cells": 4, "bar": True}]
        assert thursday["overflow"] == 0
        assert thursday["unavailable"] == []
