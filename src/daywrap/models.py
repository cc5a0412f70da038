"""Data models for transit schedules."""

import math
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

# MATSim-style marker for an offset that does not apply at a stop
UNDEFINED_TIME = float("-inf")


class ScheduleError(Exception):
    """Base class for schedule model errors."""


class DepartureIdCollision(ScheduleError):
    """Raised when a departure id is already used on a route."""

    def __init__(self, route_id: str, departure_id: str):
        super().__init__(f"Departure {departure_id} already exists on route {route_id}")
        self.route_id = route_id
        self.departure_id = departure_id


class MalformedRouteError(ScheduleError):
    """Raised when a route has no resolvable arrival time at its last stop."""

    def __init__(self, route_id: str, reason: str):
        super().__init__(f"Route {route_id} is malformed: {reason}")
        self.route_id = route_id
        self.reason = reason


def is_defined(offset: Optional[float]) -> bool:
    """Return True if a stop offset holds a usable time."""
    return offset is not None and math.isfinite(offset)


@dataclass
class RouteStop:
    """A stop in a route's stop pattern, with offsets from the route start."""
    stop_id: str
    arrival_offset: Optional[float] = None  # seconds, None/-inf if undefined
    departure_offset: Optional[float] = None


@dataclass
class Departure:
    """One scheduled run of a route."""
    departure_id: str
    departure_time: float  # seconds since start of service day


@dataclass
class Route:
    """An ordered stop pattern owning its departures."""
    route_id: str
    stops: List[RouteStop] = field(default_factory=list)
    departures: Dict[str, Departure] = field(default_factory=dict)
    transport_mode: str = ""

    def add_departure(self, departure: Departure) -> None:
        """Add a departure, refusing to overwrite an existing id."""
        if departure.departure_id in self.departures:
            raise DepartureIdCollision(self.route_id, departure.departure_id)
        self.departures[departure.departure_id] = departure

    def last_stop_offset(self) -> Optional[float]:
        """Arrival offset of the last stop, falling back to its departure offset."""
        if not self.stops:
            return None
        last = self.stops[-1]
        if is_defined(last.arrival_offset):
            return last.arrival_offset
        if is_defined(last.departure_offset):
            return last.departure_offset
        return None

    def arrival_time(self, departure: Departure) -> float:
        """
        Compute when a departure reaches the last stop of this route.

        Raises:
            MalformedRouteError: If the route has no stops or the last stop
                has neither an arrival nor a departure offset.
        """
        offset = self.last_stop_offset()
        if offset is None:
            reason = "no stops" if not self.stops else "last stop has no arrival or departure offset"
            raise MalformedRouteError(self.route_id, reason)
        return departure.departure_time + offset


@dataclass
class Line:
    """A transit line grouping one or more routes."""
    line_id: str
    routes: Dict[str, Route] = field(default_factory=dict)

    def add_route(self, route: Route) -> None:
        if route.route_id in self.routes:
            raise ValueError(f"Route {route.route_id} already exists on line {self.line_id}")
        self.routes[route.route_id] = route

    def get_route(self, route_id: str) -> Route:
        """Get route by id."""
        if route_id not in self.routes:
            raise ValueError(f"Route {route_id} not found on line {self.line_id}")
        return self.routes[route_id]


@dataclass
class Schedule:
    """Root of the schedule tree: lines, their routes and departures."""
    lines: Dict[str, Line] = field(default_factory=dict)

    def add_line(self, line: Line) -> None:
        if line.line_id in self.lines:
            raise ValueError(f"Line {line.line_id} already exists")
        self.lines[line.line_id] = line

    def get_line(self, line_id: str) -> Line:
        """Get line by id."""
        if line_id not in self.lines:
            raise ValueError(f"Line {line_id} not found")
        return self.lines[line_id]

    def iter_routes(self) -> Iterator[Tuple[Line, Route]]:
        """Yield (line, route) pairs for every route in the schedule."""
        for line in self.lines.values():
            for route in line.routes.values():
                yield line, route

    def departure_count(self) -> int:
        return sum(len(route.departures) for _, route in self.iter_routes())
