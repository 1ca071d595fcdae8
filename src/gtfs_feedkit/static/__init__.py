"""Static GTFS loading, validation and the immutable Feed aggregate."""

from gtfs_feedkit.static.feed import Feed
from gtfs_feedkit.static.loader import LoadResult, StaticFeedLoader, load_feed
from gtfs_feedkit.static.models import (
    Agency,
    Calendar,
    CalendarDate,
    Route,
    ShapePoint,
    Stop,
    StopTime,
    Trip,
)

__all__ = [
    "Agency",
    "Calendar",
    "CalendarDate",
    "Feed",
    "LoadResult",
    "Route",
    "ShapePoint",
    "StaticFeedLoader",
    "Stop",
    "StopTime",
    "Trip",
    "load_feed",
]
