"""Unit tests for bandcal.calendar.multi_day span layout."""

from datetime import date

import pytest

from bandcal.calendar.models import SpanLayout
from bandcal.calendar.multi_day import (
    bar_width_percent,
    day_offset_in_span,
    is_continuation,
    is_date_in_span,
    is_multi_day,
    layout_span,
    remaining_days_in_week,
    span_days,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def thu_to_mon(make_event):
    """Thursday 2025-01-09 to Monday 2025-01-13."""
    return make_event(start_date="2025-01-09", end_date="2025-01-13")


class TestSpanBasics:
    def test_single_day_event(self, make_event):
        event = make_event(start_date="2025-01-09")
        assert not is_multi_day(event)
        assert span_days(event) == 1

    def test_inverted_end_collapses_to_start(self, make_event):
        event = make_event(start_date="2025-01-09", end_date="2025-01-05")
        assert not is_multi_day(event)
        assert span_days(event) == 1
        assert not is_date_in_span("2025-01-05", event)

    def test_span_membership(self, thu_to_mon):
        assert span_days(thu_to_mon) == 5
        assert is_date_in_span("2025-01-11", thu_to_mon)
        assert not is_date_in_span("2025-01-14", thu_to_mon)
        assert day_offset_in_span("2025-01-13", thu_to_mon) == 4
        assert day_offset_in_span("2025-01-01", thu_to_mon) == 0

    def test_is_continuation(self, thu_to_mon):
        assert not is_continuation("2025-01-09", thu_to_mon)
        assert is_continuation("2025-01-10", thu_to_mon)
        assert not is_continuation("2025-01-14", thu_to_mon)

    @pytest.mark.parametrize("index,expected", [(0, 7), (3, 4), (6, 1), (10, 4)])
    def test_remaining_days_in_week(self, index, expected):
        assert remaining_days_in_week(index) == expected


class TestLayoutSpan:
    @pytest.mark.smoke
    def test_start_segment_clipped_at_row_end(self, thu_to_mon):
        assert layout_span(thu_to_mon, "2025-01-09") == SpanLayout(
            cells_to_render=4, is_start_segment=True
        )

    def test_continuation_segment_on_next_row(self, thu_to_mon):
        assert layout_span(thu_to_mon, "2025-01-13") == SpanLayout(
            cells_to_render=1, is_start_segment=False
        )

    def test_mid_row_continuation(self, thu_to_mon):
        layout = layout_span(thu_to_mon, "2025-01-11")
        assert layout.cells_to_render == 2
        assert not layout.is_start_segment

    def test_long_span_never_exceeds_row(self, make_event):
        event = make_event(start_date="2025-01-06", end_date="2025-01-31")
        for day in range(6, 32):
            layout = layout_span(event, date(2025, 1, day))
            assert 1 <= layout.cells_to_render <= 7 - date(2025, 1, day).weekday()

    def test_explicit_day_index(self, thu_to_mon):
        layout = layout_span(thu_to_mon, "2025-01-09", day_index=5)
        assert layout.cells_to_render == 2

    def test_cell_outside_span_raises(self, thu_to_mon):
        with pytest.raises(ValueError):
            layout_span(thu_to_mon, "2025-01-14")

    @pytest.mark.parametrize("day_index", [-1, 7])
    def test_bad_day_index_raises(self, thu_to_mon, day_index):
        with pytest.raises(ValueError):
            layout_span(thu_to_mon, "2025-01-09", day_index=day_index)

    def test_bar_width_percent(self):
        assert bar_width_percent(7) == 100.0
        assert bar_width_percent(9) == 100.0
        assert bar_width_percent(1) == pytest.approx(100 / 7)
