"""Per-viewer event visibility.

Visibility is a display preference layer on top of data the viewer is already
authorized to receive; it is not a security boundary.
"""

import logging
from collections.abc import Iterable
from typing import Optional, TypeVar, Union

from ..calendar.models import CalendarEvent, EventCategory, Occurrence, VisibilityContext

logger = logging.getLogger(__name__)

Filterable = Union[CalendarEvent, Occurrence]
T = TypeVar("T", CalendarEvent, Occurrence)


def is_visible(event: Filterable, ctx: VisibilityContext) -> bool:
    """Decide whether an event is shown under the viewer's toggles.

    Rules are evaluated top to bottom and the first match wins:

    1. Cross-artist unavailability -> "artist events"
    2. The viewer's own unavailability -> "my events"
    3. Another member's unavailability -> "artist events"
    4. Personal event (no artist) -> "my events"
    5. Event of the current artist -> "artist events"
    6. No current artist context -> "artist events"
    7. Event of a different artist -> "all artists" AND "artist events"
    """
    if event.category == EventCategory.UNAVAILABILITY:
        if event.cross_artist:
            return ctx.show_artist_events
        if event.owner_user_id is not None and event.owner_user_id == ctx.viewer_user_id:
            return ctx.show_my_events
        return ctx.show_artist_events

    if not event.artist_id:
        return ctx.show_my_events

    if ctx.effective_artist_id and event.artist_id == ctx.effective_artist_id:
        return ctx.show_artist_events

    if not ctx.effective_artist_id:
        return ctx.show_artist_events

    return ctx.show_all_artists and ctx.show_artist_events


def filter_events(events: Iterable[T], ctx: VisibilityContext) -> list[T]:
    """Keep visible events, preserving input order."""
    items = list(events)
    visible = [e for e in items if is_visible(e, ctx)]
    logger.debug(
        "Visibility filter kept %d of %d events (artist=%s, mine=%s, all=%s)",
        len(visible),
        len(items),
        ctx.show_artist_events,
        ctx.show_my_events,
        ctx.show_all_artists,
    )
    return visible


def is_cross_artist_event(event: Filterable, current_artist_id: Optional[str]) -> bool:
    """True when the event belongs to an artist other than the current one."""
    if not current_artist_id or not event.artist_id:
        return False
    return event.artist_id != current_artist_id


def should_show_privacy_protection(
    event: Filterable,
    viewer_user_id: Optional[str],
    current_artist_id: Optional[str],
) -> bool:
    """Whether an unavailability entry should hide its details from the viewer.

    Only someone else's unavailability coming from a different artist is
    masked; the viewer always sees their own entries.
    """
    if event.category != EventCategory.UNAVAILABILITY:
        return False
    if event.owner_user_id is not None and event.owner_user_id == viewer_user_id:
        return False
    return is_cross_artist_event(event, current_artist_id)
