"""gtfs-feedkit: validated GTFS static and GTFS-realtime models."""

__version__ = "0.1.0"

from gtfs_feedkit.errors import (
    DecodeError,
    FeedValidationError,
    GtfsError,
    ValidationReport,
    Violation,
)
from gtfs_feedkit.models import DecodeOptions, DroppedPolicy, LoaderOptions
from gtfs_feedkit.realtime.builder import decode_feed_message
from gtfs_feedkit.static.loader import StaticFeedLoader, load_feed

__all__ = [
    "DecodeError",
    "DecodeOptions",
    "DroppedPolicy",
    "FeedValidationError",
    "GtfsError",
    "LoaderOptions",
    "StaticFeedLoader",
    "ValidationReport",
    "Violation",
    "__version__",
    "decode_feed_message",
    "load_feed",
]
