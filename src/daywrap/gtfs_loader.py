"""GTFS static data loader building a transit schedule."""

import csv
import io
import logging
import zipfile
from typing import Dict, List, Optional, Tuple

import requests

from .models import Departure, Line, Route, RouteStop, Schedule

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60  # seconds

# (stop_sequence, stop_id, arrival_time, departure_time)
StopTimeRow = Tuple[int, str, Optional[float], Optional[float]]


def parse_gtfs_time(value: str) -> Optional[float]:
    """
    Parse a GTFS time (H:MM:SS, hours may exceed 23) into seconds.

    Returns None for an empty value.

    Raises:
        ValueError: If the value is not a valid GTFS time.
    """
    value = value.strip() if value else ""
    if not value:
        return None
    parts = value.split(":")
    if len(parts) != 3:
        raise ValueError(f"Invalid GTFS time '{value}'")
    hours, minutes, seconds = (int(p) for p in parts)
    if hours < 0 or not 0 <= minutes < 60 or not 0 <= seconds < 60:
        raise ValueError(f"Invalid GTFS time '{value}'")
    return float(hours * 3600 + minutes * 60 + seconds)


class GTFSScheduleLoader:
    """Loads GTFS static data into a Schedule of lines, routes and departures."""

    def __init__(self):
        """Initialize the GTFS loader."""
        self.route_names: Dict[str, str] = {}  # route_id -> route_name
        self.route_types: Dict[str, str] = {}  # route_id -> route_type
        self.trip_routes: Dict[str, str] = {}  # trip_id -> route_id
        self.stop_times: Dict[str, List[StopTimeRow]] = {}  # trip_id -> rows
        self.schedule = Schedule()

    def load_from_url(self, url: str, timeout: float = DEFAULT_TIMEOUT) -> Schedule:
        """Download a zipped GTFS feed and load it."""
        logger.info(f"Downloading GTFS data from {url}")
        try:
            response = requests.get(url, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to download GTFS data: {e}")
            raise
        return self._load_zip(zipfile.ZipFile(io.BytesIO(response.content)))

    def load_from_zip(self, path: str) -> Schedule:
        """Load a zipped GTFS feed from disk."""
        logger.info(f"Loading GTFS data from {path}")
        with zipfile.ZipFile(path) as zip_file:
            return self._load_zip(zip_file)

    def load_from_files(self, routes_path: str, trips_path: str, stop_times_path: str) -> Schedule:
        """Load GTFS data from local CSV files."""
        logger.info("Loading GTFS data from local files")
        self.clear()
        with open(routes_path, "r", encoding="utf-8-sig") as f:
            self._load_routes(f.read())
        with open(trips_path, "r", encoding="utf-8-sig") as f:
            self._load_trips(f.read())
        with open(stop_times_path, "r", encoding="utf-8-sig") as f:
            self._load_stop_times(f.read())
        return self._build_schedule()

    def _load_zip(self, zip_file: zipfile.ZipFile) -> Schedule:
        self.clear()
        try:
            self._load_routes(zip_file.read("routes.txt").decode("utf-8-sig"))
            self._load_trips(zip_file.read("trips.txt").decode("utf-8-sig"))
            self._load_stop_times(zip_file.read("stop_times.txt").decode("utf-8-sig"))
        except KeyError as e:
            logger.error(f"GTFS feed is missing a required file: {e}")
            raise
        return self._build_schedule()

    def _load_routes(self, csv_content: str) -> None:
        """Parse routes.txt."""
        reader = csv.DictReader(io.StringIO(csv_content))
        for row in reader:
            route_id = row["route_id"]
            self.route_names[route_id] = row.get("route_short_name") or row.get("route_long_name") or route_id
            self.route_types[route_id] = row.get("route_type", "")

    def _load_trips(self, csv_content: str) -> None:
        """Parse trips.txt."""
        reader = csv.DictReader(io.StringIO(csv_content))
        for row in reader:
            route_id = row["route_id"]
            if route_id not in self.route_names:
                logger.warning(f"Trip {row['trip_id']} references unknown route {route_id}, skipping")
                continue
            self.trip_routes[row["trip_id"]] = route_id

    def _load_stop_times(self, csv_content: str) -> None:
        """Parse stop_times.txt, grouping rows by trip."""
        reader = csv.DictReader(io.StringIO(csv_content))
        skipped = 0
        for row in reader:
            trip_id = row["trip_id"]
            if trip_id not in self.trip_routes:
                skipped += 1
                continue
            try:
                entry = (
                    int(row["stop_sequence"]),
                    row["stop_id"],
                    parse_gtfs_time(row.get("arrival_time", "")),
                    parse_gtfs_time(row.get("departure_time", "")),
                )
            except ValueError as e:
                logger.warning(f"Skipping stop time of trip {trip_id}: {e}")
                skipped += 1
                continue
            self.stop_times.setdefault(trip_id, []).append(entry)
        if skipped:
            logger.debug(f"Skipped {skipped} stop time rows")

    def _build_schedule(self) -> Schedule:
        """Group trips into lines (GTFS routes) and routes (distinct stop patterns)."""
        schedule = Schedule()
        patterns: Dict[str, Dict[tuple, Route]] = {}  # line_id -> {pattern -> Route}

        for trip_id, rows in self.stop_times.items():
            rows.sort(key=lambda r: r[0])
            first = rows[0]
            start = first[3] if first[3] is not None else first[2]
            if start is None:
                logger.warning(f"Trip {trip_id} has no time at its first stop, skipping")
                continue

            stops = self._build_stops(rows, start)
            pattern = tuple((s.stop_id, s.arrival_offset, s.departure_offset) for s in stops)
            line_id = self.trip_routes[trip_id]

            if line_id not in schedule.lines:
                schedule.add_line(Line(line_id=line_id))
                patterns[line_id] = {}
            line = schedule.lines[line_id]
            route = patterns[line_id].get(pattern)
            if route is None:
                route = Route(
                    route_id=f"{line_id}_{len(patterns[line_id]) + 1}",
                    stops=stops,
                    transport_mode=self.route_types.get(line_id, ""),
                )
                patterns[line_id][pattern] = route
                line.add_route(route)

            route.add_departure(Departure(departure_id=trip_id, departure_time=start))

        self.schedule = schedule
        route_count = sum(len(line.routes) for line in schedule.lines.values())
        logger.info(
            f"Loaded {len(schedule.lines)} lines, {route_count} routes "
            f"and {schedule.departure_count()} departures"
        )
        return schedule

    @staticmethod
    def _build_stops(rows: List[StopTimeRow], start: float) -> List[RouteStop]:
        """Turn a trip's stop times into offsets relative to its first departure."""
        stops = []
        last_index = len(rows) - 1
        for index, (_, stop_id, arrival, departure) in enumerate(rows):
            arrival_offset = arrival - start if arrival is not None else None
            departure_offset = departure - start if departure is not None else None
            # arrival at the first stop and departure at the last stop do not apply
            if index == 0 and departure_offset is not None:
                arrival_offset = None
            if index == last_index and index > 0 and arrival_offset is not None:
                departure_offset = None
            stops.append(RouteStop(stop_id, arrival_offset, departure_offset))
        return stops

    def clear(self) -> None:
        """Clear all loaded data to free memory."""
        self.route_names.clear()
        self.route_types.clear()
        self.trip_routes.clear()
        self.stop_times.clear()
        self.schedule = Schedule()
        logger.debug("Cleared GTFS data from memory")
