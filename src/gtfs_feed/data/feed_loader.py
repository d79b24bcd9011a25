"""GTFS feed loader building a validated in-memory Feed."""

import asyncio
import logging
from collections.abc import Callable
from datetime import date
from pathlib import Path
from typing import Any

from gtfs_feed.data.config import get_settings
from gtfs_feed.data.sources import Row, RowSource, open_source
from gtfs_feed.exceptions import MalformedFeedError
from gtfs_feed.models.feed import Feed
from gtfs_feed.normalizers import tables

logger = logging.getLogger(__name__)

REQUIRED_FILES = [
    "agency.txt",
    "stops.txt",
    "routes.txt",
    "trips.txt",
    "stop_times.txt",
]

# At least one of these must be present
CALENDAR_FILES = ["calendar.txt", "calendar_dates.txt"]

# Table definitions: csv_filename -> (Feed field, normalizer)
# Normalizers flagged True take the reference date for time anchoring.
TABLE_DEFINITIONS: dict[str, tuple[str, Callable[..., Any], bool]] = {
    "agency.txt": ("agencies", tables.normalize_agencies, False),
    "stops.txt": ("stops", tables.normalize_stops, False),
    "routes.txt": ("routes", tables.normalize_routes, False),
    "trips.txt": ("trips", tables.normalize_trips, False),
    "stop_times.txt": ("stop_times", tables.normalize_stop_times, True),
    "calendar.txt": ("calendar", tables.normalize_calendar, False),
    "calendar_dates.txt": ("calendar_dates", tables.normalize_calendar_dates, False),
    "fare_attributes.txt": ("fare_attributes", tables.normalize_fare_attributes, False),
    "fare_rules.txt": ("fare_rules", tables.normalize_fare_rules, False),
    "shapes.txt": ("shapes", tables.normalize_shapes, False),
    "frequencies.txt": ("frequencies", tables.normalize_frequencies, True),
    "transfers.txt": ("transfers", tables.normalize_transfers, False),
    "pathways.txt": ("pathways", tables.normalize_pathways, False),
    "levels.txt": ("levels", tables.normalize_levels, False),
    "feed_info.txt": ("feed_info", tables.normalize_feed_info, False),
    "translations.txt": ("translations", tables.normalize_translations, False),
}


def check_admission(entry_names: frozenset[str] | set[str]) -> None:
    """Check that a feed carries the required tables.

    Raises:
        MalformedFeedError: If a required table is missing, or both
            calendar.txt and calendar_dates.txt are missing.
    """
    missing = [name for name in REQUIRED_FILES if name not in entry_names]
    if missing:
        raise MalformedFeedError(f"Not a valid GTFS feed, missing: {', '.join(missing)}")
    if not any(name in entry_names for name in CALENDAR_FILES):
        raise MalformedFeedError(
            "Not a valid GTFS feed, calendar.txt or calendar_dates.txt is required"
        )


class FeedLoader:
    """Loader turning a row source into a validated Feed.

    Import is all-or-nothing: the first invalid row aborts it and no partial
    Feed is returned.
    """

    def __init__(self, reference_date: date | None = None):
        """Initialize the loader.

        Args:
            reference_date: Service day stop times are anchored on. Defaults
                to GTFS_REFERENCE_DATE, then today.
        """
        self.reference_date = reference_date or get_settings().reference_date or date.today()

    async def load(self, source: RowSource) -> Feed:
        """Load and validate every recognized table of a feed.

        Args:
            source: Row source for the feed.

        Returns:
            The immutable Feed.

        Raises:
            MalformedFeedError: If required tables are missing or references
                between tables don't resolve.
            FieldValidationError: If any row has an invalid field.
        """
        entry_names = source.entry_names()
        check_admission(entry_names)

        names = [name for name in TABLE_DEFINITIONS if name in entry_names]
        for name in TABLE_DEFINITIONS:
            if name not in entry_names:
                logger.warning(f"Optional file {name} not found")

        raw_tables = await asyncio.gather(*(source.read_rows(name) for name in names))

        collections: dict[str, Any] = {}
        for name, rows in zip(names, raw_tables):
            collections[TABLE_DEFINITIONS[name][0]] = self._normalize_table(name, rows)

        self._verify_integrity(collections)

        feed = Feed(reference_date=self.reference_date, **collections)
        logger.info(f"GTFS feed loaded, anchored on {self.reference_date.isoformat()}")
        return feed

    def _normalize_table(self, name: str, rows: list[Row]) -> Any:
        """Run the normalizer of a single table."""
        logger.info(f"Loading {name}...")
        _, normalizer, needs_reference = TABLE_DEFINITIONS[name]
        if needs_reference:
            records = normalizer(rows, self.reference_date)
        else:
            records = normalizer(rows)
        logger.info(f"  Loaded {len(records):,} rows from {name}")
        return records

    def _verify_integrity(self, collections: dict[str, Any]) -> None:
        """Verify references between tables."""
        logger.info("Verifying feed integrity...")

        agencies = collections["agencies"]
        agency_ids = {agency.id for agency in agencies}
        route_ids = {route.id for route in collections["routes"]}
        trip_ids = {trip.id for trip in collections["trips"]}
        stop_ids = {stop.id for stop in collections["stops"]}

        for route in collections["routes"]:
            if route.agency_id is None:
                if len(agencies) > 1:
                    raise MalformedFeedError(
                        f"Route {route.id} needs an agency_id in a multi-agency feed"
                    )
            elif route.agency_id not in agency_ids:
                raise MalformedFeedError(
                    f"Route {route.id} references unknown agency {route.agency_id}"
                )

        for trip in collections["trips"]:
            if trip.route_id not in route_ids:
                raise MalformedFeedError(
                    f"Trip {trip.id} references unknown route {trip.route_id}"
                )

        for stop_time in collections["stop_times"]:
            if stop_time.trip_id not in trip_ids:
                raise MalformedFeedError(
                    f"stop_times.txt references unknown trip {stop_time.trip_id}"
                )
            if stop_time.stop_id not in stop_ids:
                raise MalformedFeedError(
                    f"stop_times.txt references unknown stop {stop_time.stop_id}"
                )

        logger.info("Feed integrity verified")


async def load_feed(path: Path, reference_date: date | None = None) -> Feed:
    """Load a GTFS feed from a directory or ZIP file.

    Args:
        path: Path to GTFS directory or ZIP file.
        reference_date: Service day stop times are anchored on.

    Returns:
        The validated Feed.

    Raises:
        FileNotFoundError: If GTFS path doesn't exist.
    """
    return await FeedLoader(reference_date).load(open_source(path))


def get_table_counts(feed: Feed) -> dict[str, int]:
    """Get record counts for all tables of a feed.

    Args:
        feed: Loaded feed.

    Returns:
        Dictionary mapping table file names to record counts.
    """
    return {name: len(getattr(feed, field)) for name, (field, _, _) in TABLE_DEFINITIONS.items()}
