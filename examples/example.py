"""Example usage of TransitSchedulePostProcessor."""

import logging
import sys
from pathlib import Path

# Add src to path so we can import daywrap
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from daywrap import Departure, Line, Route, RouteStop, Schedule
from daywrap.export import format_seconds
from daywrap.post_processor import TransitSchedulePostProcessor

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def build_demo_schedule() -> Schedule:
    """A single line whose trips take 10 minutes from A to B."""
    route = Route("redFirstToLast", stops=[RouteStop("A", None, 0.0), RouteStop("B", 600.0, None)])
    for departure_id, departure_time in [
        ("early", 6 * 3600),
        ("midday", 12 * 3600),
        ("lateArrivalBeforeMidnight", 23 * 3600 + 45 * 60),
        ("lateArrivalAfterMidnight", 23 * 3600 + 55 * 60),
    ]:
        route.add_departure(Departure(departure_id, float(departure_time)))
    line = Line("red")
    line.add_route(route)
    schedule = Schedule()
    schedule.add_line(line)
    return schedule


def print_departures(processor: TransitSchedulePostProcessor):
    """Print every departure of the processor's schedule."""
    frame = processor.departures_frame()
    print(f"\n{'='*70}")
    for row in frame.itertuples():
        marker = "*" if row.is_copy else " "
        print(f"{marker} {row.line_id:6} {row.route_id:16} {format_seconds(row.departure_time):>10}  {row.departure_id}")
    print(f"{'='*70}\n")


def main(feed_path: str = None):
    """
    Load a feed (or the demo schedule), copy departures across midnight and print the result.

    Args:
        feed_path: Optional path to a zipped GTFS feed.
    """
    try:
        if feed_path:
            processor = TransitSchedulePostProcessor()
            processor.load_gtfs_from_zip(feed_path)
        else:
            processor = TransitSchedulePostProcessor(build_demo_schedule())

        late = processor.copy_late_departures(23 * 3600)
        early = processor.copy_early_departures(13 * 3600)
        report = late.merge(early)

        print_departures(processor)
        print(f"Added {len(report.copied)} departures ({report.excluded} excluded)")
        for problem in report.problems:
            print(f"  Problem on {problem.line_id}/{problem.route_id}: {problem.message}")

    except Exception as e:
        logger.error(f"Failed to process schedule: {e}", exc_info=True)
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else None)
