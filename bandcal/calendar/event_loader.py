"""Data-fetch boundary: API payloads to CalendarEvent models.

The calendar API has grown several shapes for the same event over time
(``date`` vs ``startDate``, ``membershipId`` / ``memberId`` vs ``ownerUserId``,
``day``/``week`` rule units, ``count``/``until`` durations). They are resolved
here once so the rest of the engine only sees ``CalendarEvent``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from ..core.config_manager import parse_bool
from ..core.exceptions import EventDataError
from .date_utils import to_calendar_date
from .models import CalendarEvent, EventCategory, RecurrenceKind, RecurrenceRule, Termination

logger = logging.getLogger(__name__)

CATEGORY_ALIASES = {
    "gig": EventCategory.GIG,
    "public_gig": EventCategory.GIG,
    "rehearsal": EventCategory.REHEARSAL,
    "unavailable": EventCategory.UNAVAILABILITY,
    "unavailability": EventCategory.UNAVAILABILITY,
    "other": EventCategory.OTHER,
}

KIND_ALIASES = {
    "none": RecurrenceKind.NONE,
    "day": RecurrenceKind.DAILY,
    "daily": RecurrenceKind.DAILY,
    "week": RecurrenceKind.WEEKLY,
    "weekly": RecurrenceKind.WEEKLY,
    "month": RecurrenceKind.MONTHLY,
    "monthly": RecurrenceKind.MONTHLY,
    "year": RecurrenceKind.YEARLY,
    "yearly": RecurrenceKind.YEARLY,
}

TERMINATION_ALIASES = {
    "forever": Termination.FOREVER,
    "count": Termination.AFTER_COUNT,
    "after_count": Termination.AFTER_COUNT,
    "afterCount": Termination.AFTER_COUNT,
    "until": Termination.UNTIL_DATE,
    "until_date": Termination.UNTIL_DATE,
    "untilDate": Termination.UNTIL_DATE,
}

# Ownership fields in order of preference; the last two are legacy names
OWNER_FIELDS = ("ownerUserId", "owner_user_id", "memberId", "membershipId")


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = payload.get(key)
        if value not in (None, ""):
            return value
    return None


class ApiEventParser:
    """Parses calendar API event payloads into CalendarEvent models."""

    def parse_category(self, raw: Any) -> EventCategory:
        if raw is None:
            return EventCategory.OTHER
        category = CATEGORY_ALIASES.get(str(raw).strip())
        if category is None:
            logger.debug("Unknown event type %r; treating as 'other'", raw)
            return EventCategory.OTHER
        return category

    def parse_recurrence(self, raw: Any, event_id: str) -> Optional[RecurrenceRule]:
        """Map a ``recurring`` payload to a RecurrenceRule.

        Field values are passed through unvalidated; the expander reports a bad
        interval or count when the event is expanded.

        Raises:
            EventDataError: If the rule has an unknown unit or duration
        """
        if not raw:
            return None
        if not isinstance(raw, Mapping):
            raise EventDataError(f"Recurrence must be a mapping, got {type(raw).__name__}", event_id)

        kind_raw = _first(raw, "type", "kind") or "none"
        kind = KIND_ALIASES.get(str(kind_raw))
        if kind is None:
            raise EventDataError(f"Unknown recurrence unit {kind_raw!r}", event_id)

        termination_raw = _first(raw, "duration", "termination") or "forever"
        termination = TERMINATION_ALIASES.get(str(termination_raw))
        if termination is None:
            raise EventDataError(f"Unknown recurrence duration {termination_raw!r}", event_id)

        try:
            until_raw = raw.get("until")
            return RecurrenceRule(
                kind=kind,
                interval=int(raw.get("interval", 1)),
                termination=termination,
                count=int(raw["count"]) if raw.get("count") is not None else None,
                until=to_calendar_date(until_raw) if until_raw else None,
            )
        except (TypeError, ValueError) as e:
            raise EventDataError(f"Malformed recurrence rule: {e}", event_id) from e

    def parse_event(self, payload: Mapping[str, Any]) -> CalendarEvent:
        """Parse one event payload.

        Raises:
            EventDataError: If the id or start date is missing or malformed
        """
        event_id = _first(payload, "id", "eventId")
        if event_id is None:
            raise EventDataError("Event payload has no id")
        event_id = str(event_id)

        start_raw = _first(payload, "date", "startDate", "start_date")
        if start_raw is None:
            raise EventDataError("Event payload has no start date", event_id)

        end_raw = _first(payload, "endDate", "end_date")
        excluded_raw = _first(payload, "excludedDates", "excluded_dates") or []

        try:
            return CalendarEvent(
                id=event_id,
                title=_first(payload, "title"),
                category=self.parse_category(_first(payload, "type", "category", "eventType")),
                start_date=to_calendar_date(start_raw),
                end_date=to_calendar_date(end_raw) if end_raw else None,
                start_time=_first(payload, "startTime", "start_time"),
                end_time=_first(payload, "endTime", "end_time"),
                is_all_day=parse_bool(_first(payload, "isAllDay", "is_all_day")),
                owner_user_id=_optional_str(_first(payload, *OWNER_FIELDS)),
                artist_id=_optional_str(_first(payload, "artistId", "artist_id")),
                cross_artist=parse_bool(_first(payload, "crossArtistEvent", "cross_artist")),
                venue=_first(payload, "venue", "location"),
                artist_name=_first(payload, "artistName", "artist_name"),
                display_name=_first(payload, "displayName", "display_name"),
                recurrence=self.parse_recurrence(
                    _first(payload, "recurring", "recurrence"), event_id
                ),
                excluded_dates={to_calendar_date(d) for d in excluded_raw},
            )
        except (TypeError, ValueError, ValidationError) as e:
            raise EventDataError(f"Malformed event payload: {e}", event_id) from e

    def parse_events(
        self, payloads: Iterable[Mapping[str, Any]], strict: bool = False
    ) -> list[CalendarEvent]:
        """Parse many payloads.

        Args:
            payloads: Raw event mappings
            strict: Raise on the first bad payload instead of skipping it

        Returns:
            Parsed events in input order
        """
        events = []
        for payload in payloads:
            try:
                events.append(self.parse_event(payload))
            except EventDataError as e:
                if strict:
                    raise
                logger.warning("Skipping event %s: %s", e.event_id or "<no-id>", e.message)
        return events


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def merge_calendar_response(response: Any) -> list[dict[str, Any]]:
    """Flatten a calendar API response into a single payload list.

    A plain list (personal calendar) passes through. The bucketed artist
    calendar response is concatenated, with other-artist titles suffixed by
    the artist name.
    """
    if response is None:
        return []
    if isinstance(response, list):
        return list(response)
    if not isinstance(response, Mapping):
        raise EventDataError(f"Unsupported calendar response type {type(response).__name__}")

    merged: list[dict[str, Any]] = []
    merged.extend(response.get("artistEvents") or [])
    merged.extend(response.get("userEvents") or [])
    for payload in response.get("otherArtistEvents") or []:
        item = dict(payload)
        artist_name = item.get("artistName")
        if artist_name:
            label = item.get("title") or item.get("eventType") or item.get("type")
            item["title"] = f"{label} ({artist_name})"
        merged.append(item)
    return merged


_parser = ApiEventParser()


def parse_api_event(payload: Mapping[str, Any]) -> CalendarEvent:
    """Parse one payload with the shared parser."""
    return _parser.parse_event(payload)


def load_calendar_response(response: Any, strict: bool = False) -> list[CalendarEvent]:
    """Merge and parse a calendar API response."""
    return _parser.parse_events(merge_calendar_response(response), strict=strict)


def load_events_file(path: str | Path, strict: bool = False) -> list[CalendarEvent]:
    """Load events from a YAML or JSON file holding a list or bucketed response.

    Raises:
        EventDataError: If the file cannot be parsed
    """
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
        data = json.loads(text) if p.suffix == ".json" else yaml.safe_load(text)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise EventDataError(f"Unable to read events file {p}: {e}") from e

    events = load_calendar_response(data, strict=strict)
    logger.info("Loaded %d event(s) from %s", len(events), p)
    return events
