"""Tabular export of schedule departures."""

import logging

import pandas as pd

from .departure_copier import is_generated_copy
from .models import MalformedRouteError, Schedule

logger = logging.getLogger(__name__)

DEPARTURE_COLUMNS = ["line_id", "route_id", "departure_id", "departure_time", "arrival_time", "is_copy"]


def format_seconds(seconds: float) -> str:
    """Format seconds as [-]HH:MM:SS, allowing hours beyond 23."""
    sign = "-" if seconds < 0 else ""
    total = int(round(abs(seconds)))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{sign}{hours:02d}:{minutes:02d}:{secs:02d}"


def departures_to_frame(schedule: Schedule) -> pd.DataFrame:
    """
    Flatten a schedule into one row per departure.

    arrival_time is NaN for routes without a resolvable last stop arrival.
    """
    records = []
    for line, route in schedule.iter_routes():
        for departure in route.departures.values():
            try:
                arrival = route.arrival_time(departure)
            except MalformedRouteError:
                arrival = float("nan")
            records.append(
                {
                    "line_id": line.line_id,
                    "route_id": route.route_id,
                    "departure_id": departure.departure_id,
                    "departure_time": departure.departure_time,
                    "arrival_time": arrival,
                    "is_copy": is_generated_copy(departure.departure_id),
                }
            )
    frame = pd.DataFrame.from_records(records, columns=DEPARTURE_COLUMNS)
    return frame.sort_values(["line_id", "route_id", "departure_time"], kind="stable").reset_index(drop=True)


def write_departures_csv(schedule: Schedule, path: str) -> pd.DataFrame:
    """Write all departures to a CSV file, with times also rendered as HH:MM:SS."""
    frame = departures_to_frame(schedule)
    output = frame.assign(
        departure_clock=frame["departure_time"].map(format_seconds),
        arrival_clock=frame["arrival_time"].map(lambda t: "" if pd.isna(t) else format_seconds(t)),
    )
    output.to_csv(path, index=False)
    logger.info(f"Wrote {len(output)} departures to {path}")
    return output
