"""Recurrence expansion for bandcal events.

Turns a compact recurrence rule plus an anchor date into concrete occurrence
dates inside a query window. Expansion is a read-time projection: it never
mutates the source event and keeps no state between calls.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from ..core.config_manager import get_config_value
from ..core.exceptions import InvalidRuleError
from .date_utils import (
    DateLike,
    add_days,
    add_months,
    add_years,
    ensure_range,
    months_between,
    ranges_overlap,
    to_calendar_date,
)
from .models import CalendarEvent, Occurrence, RecurrenceKind, RecurrenceRule, Termination

logger = logging.getLogger(__name__)


@dataclass
class RecurrenceExpanderConfig:
    """Configuration for recurrence expansion."""

    # Upper bound on occurrences returned by a single expansion call
    max_occurrences_per_rule: int = 5000

    @classmethod
    def from_settings(cls, settings: Any) -> "RecurrenceExpanderConfig":
        """Extract expansion configuration from a settings object.

        Args:
            settings: Mapping or object with expansion attributes, or None for defaults

        Returns:
            RecurrenceExpanderConfig with values from settings or defaults
        """
        return cls(
            max_occurrences_per_rule=get_config_value(settings, "max_occurrences_per_rule", 5000),
        )


def validate_rule(rule: RecurrenceRule, anchor: date, event_id: Optional[str] = None) -> None:
    """Check a rule can be expanded from the given anchor.

    Raises:
        InvalidRuleError: If the rule is malformed
    """
    if rule.interval < 1:
        raise InvalidRuleError(f"Recurrence interval must be >= 1, got {rule.interval}", event_id)
    if rule.termination == Termination.AFTER_COUNT:
        if rule.count is None or rule.count < 1:
            raise InvalidRuleError(
                f"after_count termination requires a positive count, got {rule.count!r}",
                event_id,
            )
    elif rule.termination == Termination.UNTIL_DATE:
        if rule.until is None:
            raise InvalidRuleError("until_date termination requires an until date", event_id)
        if rule.until < anchor:
            raise InvalidRuleError(
                f"until {rule.until.isoformat()} is earlier than anchor {anchor.isoformat()}",
                event_id,
            )


def nth_candidate(anchor: date, rule: RecurrenceRule, index: int) -> date:
    """Return the index-th candidate date of a rule (index 0 is the anchor).

    Month and year steps are computed from the anchor rather than from the
    previous candidate, so a 31st anchor comes back to the 31st after a
    clamped short month.
    """
    steps = index * rule.interval
    if rule.kind == RecurrenceKind.DAILY:
        return add_days(anchor, steps)
    if rule.kind == RecurrenceKind.WEEKLY:
        return add_days(anchor, steps * 7)
    if rule.kind == RecurrenceKind.MONTHLY:
        return add_months(anchor, steps)
    if rule.kind == RecurrenceKind.YEARLY:
        return add_years(anchor, steps)
    return anchor


def _first_index_not_after(anchor: date, rule: RecurrenceRule, target: date) -> int:
    """Largest-known index whose candidate is on or before target.

    Lets expansion start near the window instead of stepping from an anchor
    that may be years in the past.
    """
    if target <= anchor:
        return 0
    if rule.kind in (RecurrenceKind.DAILY, RecurrenceKind.WEEKLY):
        unit = 7 if rule.kind == RecurrenceKind.WEEKLY else 1
        return (target - anchor).days // (unit * rule.interval)
    if rule.kind == RecurrenceKind.MONTHLY:
        return max(0, months_between(anchor, target) // rule.interval - 1)
    if rule.kind == RecurrenceKind.YEARLY:
        return max(0, (target.year - anchor.year) // rule.interval - 1)
    return 0


def candidate_index(anchor: date, rule: RecurrenceRule, day: date) -> Optional[int]:
    """Index of the rule candidate falling on ``day``, or None if no candidate does.

    Termination is not applied; callers compare the index against their limit.
    """
    if day < anchor or not rule.is_active or rule.interval < 1:
        return None
    if rule.kind in (RecurrenceKind.DAILY, RecurrenceKind.WEEKLY):
        step = (7 if rule.kind == RecurrenceKind.WEEKLY else 1) * rule.interval
        offset = (day - anchor).days
        return None if offset % step else offset // step
    if rule.kind == RecurrenceKind.MONTHLY:
        units = months_between(anchor, day)
    else:
        units = day.year - anchor.year
    if units % rule.interval:
        return None
    index = units // rule.interval
    return index if nth_candidate(anchor, rule, index) == day else None


def _candidate_count_until(anchor: date, rule: RecurrenceRule, until: date) -> int:
    """Number of candidates on or before ``until``."""
    index = _first_index_not_after(anchor, rule, until)
    while nth_candidate(anchor, rule, index + 1) <= until:
        index += 1
    return index + 1


class RecurrenceExpander:
    """Expands recurring events into occurrence dates.

    The expander is stateless apart from its configuration and may be shared
    freely between callers.
    """

    def __init__(self, settings: Any = None):
        """Initialize expander.

        Args:
            settings: Optional object carrying ``max_occurrences_per_rule``
        """
        config = RecurrenceExpanderConfig.from_settings(settings)
        self.max_occurrences = config.max_occurrences_per_rule

    def iter_candidates(
        self,
        event: CalendarEvent,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> Iterator[date]:
        """Yield rule candidates in order, honoring termination.

        Candidates before ``from_date`` may be skipped arithmetically but still
        count towards an after_count limit, since the index is anchor-relative.
        Without ``to_date`` the iterator only ends on rule termination, so
        callers of a forever rule must stop consuming on their own.
        """
        rule = event.recurrence
        anchor = event.start_date
        if rule is None or not rule.is_active:
            if to_date is None or anchor <= to_date:
                yield anchor
            return

        validate_rule(rule, anchor, event.id)

        index = _first_index_not_after(anchor, rule, from_date) if from_date else 0
        while True:
            if rule.termination == Termination.AFTER_COUNT and rule.count is not None:
                if index >= rule.count:
                    return
            candidate = nth_candidate(anchor, rule, index)
            if rule.termination == Termination.UNTIL_DATE and rule.until is not None:
                if candidate > rule.until:
                    return
            if to_date is not None and candidate > to_date:
                return
            yield candidate
            index += 1

    def expand(self, event: CalendarEvent, window_start: DateLike, window_end: DateLike) -> list[date]:
        """Return the occurrence start dates of an event inside a window.

        Args:
            event: Event, recurring or not
            window_start: First day of the query window (inclusive)
            window_end: Last day of the query window (inclusive)

        Returns:
            Sorted list of occurrence start dates

        Raises:
            InvalidRangeError: If window_end precedes window_start
            InvalidRuleError: If the event's rule is malformed
        """
        start = to_calendar_date(window_start)
        end = to_calendar_date(window_end)
        ensure_range(start, end)

        dates: list[date] = []
        for candidate in self.iter_candidates(event, start, end):
            if candidate < start or candidate in event.excluded_dates:
                continue
            if len(dates) >= self.max_occurrences:
                logger.warning(
                    "Occurrence cap %d reached expanding event %s over %s..%s; truncating",
                    self.max_occurrences,
                    event.id,
                    start.isoformat(),
                    end.isoformat(),
                )
                break
            dates.append(candidate)

        logger.debug(
            "Expanded event %s over %s..%s: %d occurrence(s)",
            event.id,
            start.isoformat(),
            end.isoformat(),
            len(dates),
        )
        return dates

    def expand_occurrences(
        self, event: CalendarEvent, window_start: DateLike, window_end: DateLike
    ) -> list[Occurrence]:
        """Return occurrences whose span overlaps the window.

        Unlike ``expand``, this also returns multi-day occurrences that start
        before the window but run into it. Each occurrence keeps the source
        event's span.
        """
        start = to_calendar_date(window_start)
        end = to_calendar_date(window_end)
        ensure_range(start, end)

        extra_days = event.span_days - 1
        search_start = add_days(start, -extra_days)
        occurrences = []
        for occurrence_start in self.expand(event, search_start, end):
            occurrence_end = add_days(occurrence_start, extra_days)
            if not ranges_overlap(occurrence_start, occurrence_end, start, end):
                continue
            occurrences.append(
                Occurrence(
                    source_event_id=event.id,
                    start_date=occurrence_start,
                    end_date=occurrence_end,
                    is_recurring_instance=event.is_recurring,
                    event=event,
                )
            )
        return occurrences

    def expand_events(
        self, events: Iterable[CalendarEvent], window_start: DateLike, window_end: DateLike
    ) -> list[Occurrence]:
        """Expand several events into one chronologically sorted occurrence list."""
        occurrences: list[Occurrence] = []
        for event in events:
            occurrences.extend(self.expand_occurrences(event, window_start, window_end))
        occurrences.sort(key=Occurrence.sort_key)
        return occurrences

    def next_occurrence(self, event: CalendarEvent, after: DateLike) -> Optional[date]:
        """First occurrence strictly after a date, or None when the series has ended."""
        after_date = to_calendar_date(after)
        for candidate in self.iter_candidates(event, after_date):
            if candidate > after_date and candidate not in event.excluded_dates:
                return candidate
        return None

    def is_occurrence_date(self, event: CalendarEvent, day: DateLike) -> bool:
        """True when the event has an occurrence starting on the given day."""
        target = to_calendar_date(day)
        return bool(self.expand(event, target, target))

    def total_occurrences(self, event: CalendarEvent) -> Optional[int]:
        """Number of occurrences in the whole series, or None for forever rules.

        Counted arithmetically, so the result is not bounded by the
        per-call occurrence cap.
        """
        rule = event.recurrence
        anchor = event.start_date
        if rule is None or not rule.is_active:
            return 0 if anchor in event.excluded_dates else 1

        validate_rule(rule, anchor, event.id)
        if rule.termination == Termination.FOREVER:
            return None
        if rule.termination == Termination.AFTER_COUNT:
            total = rule.count
        else:
            total = _candidate_count_until(anchor, rule, rule.until)

        excluded = 0
        for day in event.excluded_dates:
            index = candidate_index(anchor, rule, day)
            if index is not None and index < total:
                excluded += 1
        return total - excluded


_UNIT_NAMES = {
    RecurrenceKind.DAILY: ("Daily", "day"),
    RecurrenceKind.WEEKLY: ("Weekly", "week"),
    RecurrenceKind.MONTHLY: ("Monthly", "month"),
    RecurrenceKind.YEARLY: ("Yearly", "year"),
}


def describe_rule(rule: Optional[RecurrenceRule]) -> str:
    """Human-readable summary of a rule.

    Examples:
        "Daily", "Every 2 weeks", "Weekly for 10 occurrences",
        "Every 3 months until 31 Jan 2026"
    """
    if rule is None or not rule.is_active:
        return "Does not repeat"

    single, unit = _UNIT_NAMES[rule.kind]
    frequency = single if rule.interval == 1 else f"Every {rule.interval} {unit}s"

    if rule.termination == Termination.AFTER_COUNT and rule.count:
        plural = "s" if rule.count > 1 else ""
        return f"{frequency} for {rule.count} occurrence{plural}"
    if rule.termination == Termination.UNTIL_DATE and rule.until:
        until = rule.until
        return f"{frequency} until {until.day} {until.strftime('%b')} {until.year}"
    return frequency


_default_expander: Optional[RecurrenceExpander] = None


def get_expander(settings: Any = None) -> RecurrenceExpander:
    """Return a shared expander, or a fresh one when settings are supplied."""
    global _default_expander
    if settings is not None:
        return RecurrenceExpander(settings)
    if _default_expander is None:
        _default_expander = RecurrenceExpander()
    return _default_expander


def expand(event: CalendarEvent, window_start: DateLike, window_end: DateLike) -> list[date]:
    """Module-level shortcut for ``RecurrenceExpander.expand``."""
    return get_expander().expand(event, window_start, window_end)
