"""Tests for GTFSScheduleLoader."""

import io
import tempfile
import unittest
import zipfile
from unittest.mock import patch, MagicMock
import sys
from pathlib import Path

import requests

# Add src to path so we can import daywrap
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from daywrap.gtfs_loader import GTFSScheduleLoader, parse_gtfs_time

ROUTES_CSV = """route_id,agency_id,route_short_name,route_long_name,route_type
R1,agency,1,Red Line,1
"""

TRIPS_CSV = """route_id,service_id,trip_id,trip_headsign
R1,weekday,T1,Downtown
R1,weekday,T2,Downtown
R1,weekday,T3,Uptown
R9,weekday,T9,Unknown route
"""

STOP_TIMES_CSV = """trip_id,arrival_time,departure_time,stop_id,stop_sequence
T1,06:00:00,06:00:00,A,1
T1,06:05:00,06:06:00,B,2
T1,06:10:00,06:10:00,C,3
T2,23:55:00,23:55:00,A,1
T2,24:00:00,24:01:00,B,2
T2,24:05:00,24:05:00,C,3
T3,12:00:00,12:00:00,C,1
T3,12:10:00,12:10:00,A,2
T9,08:00:00,08:00:00,A,1
"""


def build_feed_zip() -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zip_file:
        zip_file.writestr("routes.txt", ROUTES_CSV)
        zip_file.writestr("trips.txt", TRIPS_CSV)
        zip_file.writestr("stop_times.txt", STOP_TIMES_CSV)
    return buffer.getvalue()


class TestParseGTFSTime(unittest.TestCase):
    """Test GTFS time parsing."""

    def test_parse_regular_time(self):
        self.assertEqual(parse_gtfs_time("06:30:15"), 6 * 3600 + 30 * 60 + 15)

    def test_parse_time_after_midnight(self):
        self.assertEqual(parse_gtfs_time("25:10:00"), 25 * 3600 + 600)

    def test_parse_single_digit_hour(self):
        self.assertEqual(parse_gtfs_time("7:00:00"), 7 * 3600)

    def test_empty_is_undefined(self):
        self.assertIsNone(parse_gtfs_time(""))
        self.assertIsNone(parse_gtfs_time("  "))

    def test_invalid_time(self):
        with self.assertRaises(ValueError):
            parse_gtfs_time("12:75:00")
        with self.assertRaises(ValueError):
            parse_gtfs_time("noon")


class TestGTFSScheduleLoader(unittest.TestCase):
    """Test building a schedule from GTFS static data."""

    def setUp(self):
        self.loader = GTFSScheduleLoader()
        self.loader._load_routes(ROUTES_CSV)
        self.loader._load_trips(TRIPS_CSV)
        self.loader._load_stop_times(STOP_TIMES_CSV)
        self.schedule = self.loader._build_schedule()

    def test_unknown_route_skipped(self):
        self.assertNotIn("T9", self.loader.trip_routes)
        self.assertEqual(list(self.schedule.lines), ["R1"])

    def test_trips_grouped_by_stop_pattern(self):
        line = self.schedule.get_line("R1")
        self.assertEqual(len(line.routes), 2)
        downtown = line.get_route("R1_1")
        self.assertEqual(sorted(downtown.departures), ["T1", "T2"])
        self.assertEqual([s.stop_id for s in downtown.stops], ["A", "B", "C"])
        uptown = line.get_route("R1_2")
        self.assertEqual(list(uptown.departures), ["T3"])

    def test_departure_times_and_offsets(self):
        route = self.schedule.get_line("R1").get_route("R1_1")
        self.assertEqual(route.departures["T2"].departure_time, 23 * 3600 + 55 * 60)
        first, middle, last = route.stops
        self.assertIsNone(first.arrival_offset)
        self.assertEqual(first.departure_offset, 0.0)
        self.assertEqual(middle.arrival_offset, 300.0)
        self.assertEqual(middle.departure_offset, 360.0)
        self.assertEqual(last.arrival_offset, 600.0)
        self.assertIsNone(last.departure_offset)

    def test_arrival_time_after_midnight(self):
        route = self.schedule.get_line("R1").get_route("R1_1")
        self.assertEqual(route.arrival_time(route.departures["T2"]), 24 * 3600 + 5 * 60)

    def test_invalid_stop_time_row_skipped(self):
        loader = GTFSScheduleLoader()
        loader._load_routes(ROUTES_CSV)
        loader._load_trips(TRIPS_CSV)
        loader._load_stop_times(
            "trip_id,arrival_time,departure_time,stop_id,stop_sequence\n"
            "T1,06:00:00,06:00:00,A,1\n"
            "T1,bad,06:06:00,B,2\n"
            "T1,06:10:00,06:10:00,C,3\n"
        )
        schedule = loader._build_schedule()
        route = schedule.get_line("R1").get_route("R1_1")
        self.assertEqual([s.stop_id for s in route.stops], ["A", "C"])

    def test_load_from_files(self):
        with tempfile.TemporaryDirectory() as tmp:
            paths = []
            for name, content in (("routes.txt", ROUTES_CSV), ("trips.txt", TRIPS_CSV),
                                  ("stop_times.txt", STOP_TIMES_CSV)):
                path = Path(tmp) / name
                path.write_text(content, encoding="utf-8")
                paths.append(str(path))
            schedule = GTFSScheduleLoader().load_from_files(*paths)
        self.assertEqual(schedule.departure_count(), 3)

    def test_load_from_zip(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "feed.zip"
            path.write_bytes(build_feed_zip())
            schedule = GTFSScheduleLoader().load_from_zip(str(path))
        self.assertEqual(schedule.departure_count(), 3)

    def test_zip_missing_file(self):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zip_file:
            zip_file.writestr("routes.txt", ROUTES_CSV)
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "feed.zip"
            path.write_bytes(buffer.getvalue())
            with self.assertRaises(KeyError):
                GTFSScheduleLoader().load_from_zip(str(path))

    @patch("daywrap.gtfs_loader.requests.get")
    def test_load_from_url(self, mock_get):
        mock_response = MagicMock()
        mock_response.content = build_feed_zip()
        mock_get.return_value = mock_response

        schedule = GTFSScheduleLoader().load_from_url("http://test/gtfs.zip")

        mock_get.assert_called_once_with("http://test/gtfs.zip", timeout=60)
        mock_response.raise_for_status.assert_called_once()
        self.assertEqual(schedule.departure_count(), 3)

    @patch("daywrap.gtfs_loader.requests.get")
    def test_load_from_url_http_error(self, mock_get):
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = requests.HTTPError("404")
        mock_get.return_value = mock_response

        with self.assertRaises(requests.HTTPError):
            GTFSScheduleLoader().load_from_url("http://test/missing.zip")

    def test_clear(self):
        self.loader.clear()
        self.assertEqual(self.loader.trip_routes, {})
        self.assertEqual(self.loader.schedule.departure_count(), 0)


if __name__ == "__main__":
    unittest.main()
