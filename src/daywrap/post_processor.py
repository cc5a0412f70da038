"""Main transit schedule post-processing class."""

import logging
from typing import Optional

import pandas as pd

from .departure_copier import (
    CopyReport,
    copy_early_departures_to_following_night,
    copy_late_departures_to_start_of_day,
)
from .export import departures_to_frame, write_departures_csv
from .gtfs_loader import GTFSScheduleLoader
from .models import Schedule

logger = logging.getLogger(__name__)


class TransitSchedulePostProcessor:
    """
    Loads a transit schedule and prepares it for a fixed-day simulation window.

    This class provides methods to:
    - Load a schedule from GTFS static files, a zipped feed or a URL
    - Copy late departures to the start of the day
    - Copy early departures to the following night
    - Export the resulting departures as a table
    """

    def __init__(self, schedule: Optional[Schedule] = None):
        """
        Initialize the post-processor.

        Args:
            schedule: Schedule to work on. If None, one must be loaded with
                      one of the load_gtfs_* methods.
        """
        self.gtfs_loader = GTFSScheduleLoader()
        self.schedule = schedule if schedule is not None else Schedule()

    def load_gtfs_from_files(self, routes_path: str, trips_path: str, stop_times_path: str) -> Schedule:
        """
        Load GTFS static data from local files.

        Args:
            routes_path: Path to routes.txt
            trips_path: Path to trips.txt
            stop_times_path: Path to stop_times.txt
        """
        self.schedule = self.gtfs_loader.load_from_files(routes_path, trips_path, stop_times_path)
        return self.schedule

    def load_gtfs_from_zip(self, path: str) -> Schedule:
        """Load a zipped GTFS feed from disk."""
        self.schedule = self.gtfs_loader.load_from_zip(path)
        return self.schedule

    def load_gtfs_from_url(self, url: str) -> Schedule:
        """Download and load a zipped GTFS feed."""
        self.schedule = self.gtfs_loader.load_from_url(url)
        return self.schedule

    def copy_late_departures(
        self,
        threshold: float,
        exclusion_marker: Optional[str] = None,
        copy_despite_arrival_before_midnight: bool = False,
        skip_generated_copies: bool = True,
    ) -> CopyReport:
        """
        Copy departures at or after threshold to 24 hours earlier.

        Departures created by an earlier copy pass are left alone unless
        skip_generated_copies is False, so chaining both passes never shifts a
        copy back onto its original. See copy_late_departures_to_start_of_day().
        """
        return copy_late_departures_to_start_of_day(
            self.schedule,
            threshold,
            exclusion_marker,
            copy_despite_arrival_before_midnight,
            skip_generated_copies,
        )

    def copy_early_departures(
        self,
        threshold: float,
        exclusion_marker: Optional[str] = None,
        skip_generated_copies: bool = True,
    ) -> CopyReport:
        """
        Copy departures before threshold to 24 hours later.

        See copy_late_departures() and copy_early_departures_to_following_night().
        """
        return copy_early_departures_to_following_night(
            self.schedule, threshold, exclusion_marker, skip_generated_copies
        )

    def departures_frame(self) -> pd.DataFrame:
        """Return all departures of the current schedule as a DataFrame."""
        return departures_to_frame(self.schedule)

    def write_csv(self, path: str) -> pd.DataFrame:
        """Write all departures of the current schedule to a CSV file."""
        return write_departures_csv(self.schedule, path)
