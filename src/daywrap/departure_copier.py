"""Copy departures across the service day boundary.

Simulations run on a fixed day window, so a trip still on the road after
midnight (or already running at the start of the day) has to be present as an
explicit departure shifted by one day. Both passes only ever add departures.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from .models import (
    Departure,
    DepartureIdCollision,
    Line,
    MalformedRouteError,
    Route,
    Schedule,
    ScheduleError,
)

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 3600
LATE_COPY_PREFIX = "copied-24h_"
EARLY_COPY_PREFIX = "copied+24h_"


@dataclass
class CopyProblem:
    """A departure or route that could not be processed."""
    line_id: str
    route_id: str
    departure_id: Optional[str]  # None if the whole route was skipped
    message: str


class DepartureCopyError(ScheduleError):
    """Raised by CopyReport.raise_for_problems() when diagnostics were collected."""

    def __init__(self, problems: List[CopyProblem]):
        details = "; ".join(p.message for p in problems)
        super().__init__(f"{len(problems)} problem(s) while copying departures: {details}")
        self.problems = problems


@dataclass
class CopyReport:
    """Outcome of a copy pass."""
    copied: List[Tuple[str, str, str]] = field(default_factory=list)  # (line_id, route_id, new departure_id)
    excluded: int = 0
    kept_before_midnight: int = 0
    problems: List[CopyProblem] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems

    def raise_for_problems(self) -> None:
        """Raise DepartureCopyError if any departure or route was skipped because of an error."""
        if self.problems:
            raise DepartureCopyError(self.problems)

    def merge(self, other: "CopyReport") -> "CopyReport":
        return CopyReport(
            copied=self.copied + other.copied,
            excluded=self.excluded + other.excluded,
            kept_before_midnight=self.kept_before_midnight + other.kept_before_midnight,
            problems=self.problems + other.problems,
        )


def copy_late_departures_to_start_of_day(
    schedule: Schedule,
    threshold: float,
    exclusion_marker: Optional[str] = None,
    copy_despite_arrival_before_midnight: bool = False,
    skip_generated_copies: bool = False,
) -> CopyReport:
    """
    Copy departures at or after `threshold` to 24 hours earlier.

    A copy represents yesterday's run of the same trip, still in progress at
    the start of today. Trips arriving at their last stop after midnight are
    always copied; trips arriving by midnight only if
    `copy_despite_arrival_before_midnight` is set.

    Args:
        schedule: Schedule to modify in place.
        threshold: Earliest departure time (seconds) to consider.
        exclusion_marker: Departures whose id contains this substring are skipped.
        copy_despite_arrival_before_midnight: Also copy trips that end by 24:00:00.
        skip_generated_copies: Do not copy departures created by an earlier pass.

    Returns:
        CopyReport listing the new departures and any skipped routes/departures.

    Raises:
        ValueError: If threshold is negative.
    """
    _validate_threshold(threshold)
    report = CopyReport()

    for line, route in schedule.iter_routes():
        candidates = _select_candidates(
            route, lambda d: d.departure_time >= threshold, exclusion_marker, skip_generated_copies, report
        )
        if not candidates:
            continue

        to_copy: List[Departure] = []
        try:
            for departure in candidates:
                arrives_before_midnight = route.arrival_time(departure) <= SECONDS_PER_DAY
                if arrives_before_midnight and not copy_despite_arrival_before_midnight:
                    logger.debug(f"Not copying {departure.departure_id}: arrives before midnight")
                    report.kept_before_midnight += 1
                    continue
                to_copy.append(departure)
        except MalformedRouteError as e:
            logger.warning(f"Skipping route {route.route_id} of line {line.line_id}: {e}")
            report.problems.append(CopyProblem(line.line_id, route.route_id, None, str(e)))
            continue

        _insert_copies(line, route, to_copy, LATE_COPY_PREFIX, -SECONDS_PER_DAY, report)

    logger.info(
        f"Copied {len(report.copied)} late departures to the start of the day "
        f"(threshold {threshold}s, {report.excluded} excluded, "
        f"{report.kept_before_midnight} arriving before midnight)"
    )
    return report


def copy_early_departures_to_following_night(
    schedule: Schedule,
    threshold: float,
    exclusion_marker: Optional[str] = None,
    skip_generated_copies: bool = False,
) -> CopyReport:
    """
    Copy departures before `threshold` to 24 hours later.

    Extends the timetable past the end of the service day; every departure
    under the threshold is copied regardless of when it arrives.

    Args:
        schedule: Schedule to modify in place.
        threshold: Departures strictly before this time (seconds) are copied.
        exclusion_marker: Departures whose id contains this substring are skipped.
        skip_generated_copies: Do not copy departures created by an earlier pass.

    Returns:
        CopyReport listing the new departures and any id collisions.

    Raises:
        ValueError: If threshold is negative.
    """
    _validate_threshold(threshold)
    report = CopyReport()

    for line, route in schedule.iter_routes():
        candidates = _select_candidates(
            route, lambda d: d.departure_time < threshold, exclusion_marker, skip_generated_copies, report
        )
        _insert_copies(line, route, candidates, EARLY_COPY_PREFIX, SECONDS_PER_DAY, report)

    logger.info(
        f"Copied {len(report.copied)} early departures to the following night "
        f"(threshold {threshold}s, {report.excluded} excluded)"
    )
    return report


def _validate_threshold(threshold: float) -> None:
    if threshold is None or math.isnan(threshold) or threshold < 0:
        raise ValueError(f"Threshold must be a non-negative number of seconds, got {threshold}")


def is_generated_copy(departure_id: str) -> bool:
    """Return True if the id was created by one of the copy passes."""
    return departure_id.startswith((LATE_COPY_PREFIX, EARLY_COPY_PREFIX))


def _select_candidates(
    route: Route,
    selector,
    exclusion_marker: Optional[str],
    skip_generated_copies: bool,
    report: CopyReport,
) -> Tuple[Departure, ...]:
    """Snapshot the departures of a route that pass `selector` and are not excluded."""
    candidates = []
    for departure in route.departures.values():
        if not selector(departure):
            continue
        if skip_generated_copies and is_generated_copy(departure.departure_id):
            logger.debug(f"Not copying {departure.departure_id}: already a copy")
            continue
        # an empty marker is contained in every id
        if exclusion_marker is not None and exclusion_marker in departure.departure_id:
            logger.debug(f"Excluding {departure.departure_id} (contains '{exclusion_marker}')")
            report.excluded += 1
            continue
        candidates.append(departure)
    return tuple(candidates)


def _insert_copies(
    line: Line,
    route: Route,
    departures: Iterable[Departure],
    prefix: str,
    shift: float,
    report: CopyReport,
) -> None:
    for departure in departures:
        copy = Departure(
            departure_id=prefix + departure.departure_id,
            departure_time=departure.departure_time + shift,
        )
        try:
            route.add_departure(copy)
        except DepartureIdCollision as e:
            logger.warning(f"Not copying {departure.departure_id} on line {line.line_id}: {e}")
            report.problems.append(CopyProblem(line.line_id, route.route_id, copy.departure_id, str(e)))
            continue
        report.copied.append((line.line_id, route.route_id, copy.departure_id))
