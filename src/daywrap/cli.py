"""Command-line entry point for day-wraparound post-processing."""

import argparse
import logging
import sys
import zipfile
from typing import List, Optional

import requests

from .departure_copier import CopyReport
from .gtfs_loader import parse_gtfs_time
from .post_processor import TransitSchedulePostProcessor

logger = logging.getLogger(__name__)


def parse_threshold(value: str) -> float:
    """Parse a threshold given as HH:MM:SS or as plain seconds."""
    try:
        seconds = parse_gtfs_time(value) if ":" in value else float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid time '{value}', expected HH:MM:SS or seconds")
    if seconds is None or seconds < 0:
        raise argparse.ArgumentTypeError(f"invalid time '{value}', must be non-negative")
    return seconds


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="daywrap",
        description="Copy transit departures across midnight for fixed-day simulations.",
    )
    parser.add_argument("feed", help="Path or http(s) URL of a zipped GTFS feed")
    parser.add_argument("--late-threshold", type=parse_threshold, default=None,
                        help="Copy departures at/after this time to 24h earlier (HH:MM:SS)")
    parser.add_argument("--early-threshold", type=parse_threshold, default=None,
                        help="Copy departures before this time to 24h later (HH:MM:SS)")
    parser.add_argument("--exclude", default=None,
                        help="Never copy departures whose id contains this text")
    parser.add_argument("--copy-despite-arrival-before-midnight", action="store_true",
                        help="Also copy late trips that arrive by 24:00:00")
    parser.add_argument("--strict", action="store_true",
                        help="Exit with status 1 if any route or departure was skipped")
    parser.add_argument("--output", default=None, help="Write the resulting departures to this CSV file")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    processor = TransitSchedulePostProcessor()
    try:
        if args.feed.startswith(("http://", "https://")):
            processor.load_gtfs_from_url(args.feed)
        else:
            processor.load_gtfs_from_zip(args.feed)
    except (OSError, KeyError, ValueError, zipfile.BadZipFile, requests.RequestException) as e:
        logger.error(f"Failed to load GTFS feed {args.feed}: {e}")
        print(f"Error: {e}")
        return 1

    report = CopyReport()
    if args.late_threshold is not None:
        report = report.merge(processor.copy_late_departures(
            args.late_threshold, args.exclude, args.copy_despite_arrival_before_midnight
        ))
    if args.early_threshold is not None:
        report = report.merge(processor.copy_early_departures(args.early_threshold, args.exclude))

    if args.output:
        processor.write_csv(args.output)

    print(f"Added {len(report.copied)} departures, {len(report.problems)} problem(s)")
    for problem in report.problems:
        print(f"  {problem.line_id}/{problem.route_id}: {problem.message}")

    if args.strict and not report.ok:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
