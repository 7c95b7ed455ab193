"""Shared fixtures for bandcal tests."""

from collections.abc import Generator
from datetime import date
from typing import Any, Callable, Optional

import pytest

from bandcal.calendar.models import (
    CalendarEvent,
    EventCategory,
    RecurrenceKind,
    RecurrenceRule,
    Termination,
    VisibilityContext,
)

BANDCAL_ENV_VARS = [
    "BANDCAL_DEBUG",
    "BANDCAL_LOG_LEVEL",
    "BANDCAL_MAX_VISIBLE_PER_DAY",
    "BANDCAL_CONSOLIDATE_UNAVAILABILITY",
    "BANDCAL_AGENDA_MONTHS_AHEAD",
    "BANDCAL_MAX_OCCURRENCES_PER_RULE",
]


def pytest_configure(config: Any) -> None:
    """Register test markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "smoke: Basic smoke tests")


@pytest.fixture(autouse=True)
def reset_default_expander() -> Generator[None, Any, None]:
    """Reset the shared expander so settings from one test don't leak into another."""
    yield
    import bandcal.calendar.recurrence_expander

    bandcal.calendar.recurrence_expander._default_expander = None


@pytest.fixture(autouse=True)
def clean_bandcal_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear BANDCAL_* variables so the host environment can't change results."""
    for key in BANDCAL_ENV_VARS:
        # setenv first so teardown also removes keys a test writes directly
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)


@pytest.fixture
def make_event() -> Callable[..., CalendarEvent]:
    """Factory for CalendarEvent with sensible defaults.

    Usage: make_event("e1", "2025-01-06", end_date="2025-01-08", category="gig")
    """

    def _make(
        event_id: str = "evt-1",
        start_date: Any = "2025-01-06",
        **fields: Any,
    ) -> CalendarEvent:
        fields.setdefault("category", EventCategory.GIG)
        fields.setdefault("artist_id", "A")
        return CalendarEvent(id=event_id, start_date=start_date, **fields)

    return _make


@pytest.fixture
def make_rule() -> Callable[..., RecurrenceRule]:
    """Factory for RecurrenceRule."""

    def _make(
        kind: RecurrenceKind = RecurrenceKind.WEEKLY,
        interval: int = 1,
        termination: Termination = Termination.FOREVER,
        count: Optional[int] = None,
        until: Optional[date] = None,
    ) -> RecurrenceRule:
        return RecurrenceRule(
            kind=kind, interval=interval, termination=termination, count=count, until=until
        )

    return _make


@pytest.fixture
def artist_context() -> VisibilityContext:
    """Viewer u1 inside artist A with default toggles."""
    return VisibilityContext(
        viewer_user_id="u1",
        effective_artist_id="A",
        show_artist_events=True,
        show_my_events=True,
        show_all_artists=False,
    )
