"""daywrap - Copy transit departures across midnight for fixed-day simulations."""

__version__ = "0.1.0"

from .models import (
    Schedule,
    Line,
    Route,
    RouteStop,
    Departure,
    ScheduleError,
    DepartureIdCollision,
    MalformedRouteError,
)
from .departure_copier import (
    CopyReport,
    CopyProblem,
    DepartureCopyError,
    copy_late_departures_to_start_of_day,
    copy_early_departures_to_following_night,
)
from .gtfs_loader import GTFSScheduleLoader
from .post_processor import TransitSchedulePostProcessor

__all__ = [
    "TransitSchedulePostProcessor",
    "GTFSScheduleLoader",
    "copy_late_departures_to_start_of_day",
    "copy_early_departures_to_following_night",
    "CopyReport",
    "CopyProblem",
    "DepartureCopyError",
    "Schedule",
    "Line",
    "Route",
    "RouteStop",
    "Departure",
    "ScheduleError",
    "DepartureIdCollision",
    "MalformedRouteError",
]
