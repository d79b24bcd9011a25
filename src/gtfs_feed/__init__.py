"""Validated in-memory GTFS schedule model."""

from gtfs_feed.data.feed_loader import FeedLoader, load_feed
from gtfs_feed.exceptions import (
    FeedError,
    FieldValidationError,
    MalformedFeedError,
    NotFoundError,
)
from gtfs_feed.models.feed import Feed

__version__ = "0.1.0"

__all__ = [
    "Feed",
    "FeedError",
    "FeedLoader",
    "FieldValidationError",
    "MalformedFeedError",
    "NotFoundError",
    "load_feed",
]
