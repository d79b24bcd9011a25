"""Field and table normalization for raw GTFS rows."""

from gtfs_feed.normalizers.fields import RowReader
from gtfs_feed.normalizers.tables import (
    normalize_agencies,
    normalize_calendar,
    normalize_calendar_dates,
    normalize_fare_attributes,
    normalize_fare_rules,
    normalize_feed_info,
    normalize_frequencies,
    normalize_levels,
    normalize_pathways,
    normalize_routes,
    normalize_shapes,
    normalize_stop_times,
    normalize_stops,
    normalize_transfers,
    normalize_translations,
    normalize_trips,
)
from gtfs_feed.normalizers.text import to_half_width, to_half_width_or_none

__all__ = [
    # Fields
    "RowReader",
    # Tables
    "normalize_agencies",
    "normalize_stops",
    "normalize_routes",
    "normalize_trips",
    "normalize_stop_times",
    "normalize_calendar",
    "normalize_calendar_dates",
    "normalize_fare_attributes",
    "normalize_fare_rules",
    "normalize_shapes",
    "normalize_frequencies",
    "normalize_transfers",
    "normalize_pathways",
    "normalize_levels",
    "normalize_feed_info",
    "normalize_translations",
    # Text
    "to_half_width",
    "to_half_width_or_none",
]
