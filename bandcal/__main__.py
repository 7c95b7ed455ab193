"""Command-line entry for bandcal.

Loads events from a JSON/YAML file, applies the viewer's visibility toggles
and prints the month grid or agenda as JSON.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from typing import Any, Optional

from .calendar.date_utils import to_calendar_date
from .calendar.event_loader import load_events_file
from .calendar.models import VisibilityContext
from .config_loader import load_settings
from .core.exceptions import BandCalError
from .domain.agenda import build_agenda
from .domain.month_grid import MonthGridBuilder, grid_summary
from .domain.visibility import filter_events
from .lite_logging import configure_lite_logging

logger = logging.getLogger(__name__)


def _month_arg(value: str) -> date:
    """Accept ``yyyy-MM`` or a full ``yyyy-MM-dd`` date."""
    try:
        if len(value) == 7:
            return to_calendar_date(f"{value}-01")
        return to_calendar_date(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid month {value!r}") from e


def _date_arg(value: str) -> date:
    try:
        return to_calendar_date(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid date {value!r}") from e


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the bandcal CLI."""
    parser = argparse.ArgumentParser(
        prog="bandcal",
        description="bandcal - band calendar grid and agenda builder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m bandcal month 2025-01 --events events.json --today 2025-01-15
  python -m bandcal agenda --events events.yaml --today 2025-01-15 --viewer u1
        """,
    )
    parser.add_argument("--config", metavar="PATH", help="YAML/JSON settings file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--events", required=True, metavar="PATH", help="Events file (JSON/YAML)")
    common.add_argument("--today", type=_date_arg, default=None, help="Current date (yyyy-MM-dd)")
    common.add_argument("--viewer", metavar="USER_ID", help="Viewer user id")
    common.add_argument("--artist", metavar="ARTIST_ID", help="Current artist context")
    common.add_argument("--hide-artist", action="store_true", help="Turn off 'artist events'")
    common.add_argument("--hide-mine", action="store_true", help="Turn off 'my events'")
    common.add_argument("--all-artists", action="store_true", help="Turn on 'all artists'")

    sub = parser.add_subparsers(dest="command", required=True)
    month = sub.add_parser("month", parents=[common], help="Print a month grid")
    month.add_argument("month", type=_month_arg, help="Target month (yyyy-MM)")
    sub.add_parser("agenda", parents=[common], help="Print the upcoming agenda")
    return parser


def _context_from_args(args: argparse.Namespace) -> VisibilityContext:
    return VisibilityContext(
        viewer_user_id=args.viewer,
        effective_artist_id=args.artist,
        show_artist_events=not args.hide_artist,
        show_my_events=not args.hide_mine,
        show_all_artists=args.all_artists,
    )


def run(argv: Optional[list[str]] = None) -> dict[str, Any]:
    """Run a CLI command and return its JSON-ready result."""
    args = _create_parser().parse_args(argv)
    settings = load_settings(args.config)
    configure_lite_logging(
        debug_mode=args.debug or settings.log_level == "DEBUG",
        log_level=settings.log_level,
    )

    # The clock is only read here, at the outermost edge
    today = args.today or date.today()
    events = filter_events(load_events_file(args.events), _context_from_args(args))

    if args.command == "month":
        grid = MonthGridBuilder(settings).build(args.month, events, today)
        return grid_summary(grid)

    agenda = build_agenda(events, today, settings.agenda_months_ahead)
    return {
        month: [
            {
                "id": o.source_event_id,
                "title": o.event.title,
                "start": o.start_date.isoformat(),
                "end": o.end_date.isoformat(),
                "time": o.event.start_time,
            }
            for o in occurrences
        ]
        for month, occurrences in agenda.items()
    }


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point; prints JSON to stdout and returns an exit code."""
    try:
        result = run(argv)
    except BandCalError as e:
        logger.error("%s", e.message)
        return 1
    json.dump(result, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
