"""GTFS-realtime decoding without a generated schema."""

from gtfs_feedkit.realtime.builder import decode_feed_message
from gtfs_feedkit.realtime.models import (
    Alert,
    DroppedField,
    EntitySelector,
    FeedEntity,
    FeedHeader,
    FeedMessage,
    Position,
    StopTimeEvent,
    StopTimeUpdate,
    TranslatedString,
    TripDescriptor,
    TripUpdate,
    VehicleDescriptor,
    VehiclePosition,
)

__all__ = [
    "Alert",
    "DroppedField",
    "EntitySelector",
    "FeedEntity",
    "FeedHeader",
    "FeedMessage",
    "Position",
    "StopTimeEvent",
    "StopTimeUpdate",
    "TranslatedString",
    "TripDescriptor",
    "TripUpdate",
    "VehicleDescriptor",
    "VehiclePosition",
    "decode_feed_message",
]
