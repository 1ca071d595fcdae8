"""GTFS-realtime 2.0 field numbering.

The numbering is a fixed external contract (gtfs-realtime.proto); it is kept
here as constant tables instead of being discovered from a descriptor at
runtime. Fields not listed, including extensions and the experimental
shape/stop/trip-modification entities, are skipped by the decoder.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum

from gtfs_feedkit.realtime import models
from gtfs_feedkit.realtime.wire import WireType


class Kind(Enum):
    """Scalar interpretation of a field's wire value."""

    STRING = "string"
    BOOL = "bool"
    INT32 = "int32"
    INT64 = "int64"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FLOAT = "float"
    DOUBLE = "double"
    ENUM = "enum"
    MESSAGE = "message"


_WIRE_TYPES = {
    Kind.STRING: WireType.LENGTH_DELIMITED,
    Kind.MESSAGE: WireType.LENGTH_DELIMITED,
    Kind.FLOAT: WireType.FIXED32,
    Kind.DOUBLE: WireType.FIXED64,
}


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """One field of a message.

    Attributes:
        number: Field number on the wire.
        name: Field name in gtfs-realtime.proto, used in error paths.
        kind: How to interpret the wire value.
        attribute: Keyword on the model class; fields sharing an attribute form
            a oneof where the last field on the wire wins.
        repeated: Collect every occurrence in wire order.
        required: Message is invalid without this field.
        message: Name of the nested MessageSpec for MESSAGE fields.
        enum: Enum class for ENUM fields.
    """

    number: int
    name: str
    kind: Kind
    attribute: str = ""
    repeated: bool = False
    required: bool = False
    message: str | None = None
    enum: type[IntEnum] | None = None

    @property
    def key(self) -> str:
        return self.attribute or self.name

    @property
    def wire_type(self) -> WireType:
        return _WIRE_TYPES.get(self.kind, WireType.VARINT)


@dataclass(frozen=True)
class MessageSpec:
    name: str
    model: type
    fields: tuple[FieldSpec, ...]
    by_number: dict[int, FieldSpec] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "by_number", {f.number: f for f in self.fields})

    @property
    def required(self) -> tuple[FieldSpec, ...]:
        return tuple(f for f in self.fields if f.required)


FEED_MESSAGE_HEADER = 1
FEED_MESSAGE_ENTITY = 2

FEED_HEADER = MessageSpec(
    "FeedHeader",
    models.FeedHeader,
    (
        FieldSpec(1, "gtfs_realtime_version", Kind.STRING, required=True),
        FieldSpec(2, "incrementality", Kind.ENUM, enum=models.Incrementality),
        FieldSpec(3, "timestamp", Kind.UINT64),
        FieldSpec(4, "feed_version", Kind.STRING),
    ),
)

FEED_ENTITY = MessageSpec(
    "FeedEntity",
    models.FeedEntity,
    (
        FieldSpec(1, "id", Kind.STRING, required=True),
        FieldSpec(2, "is_deleted", Kind.BOOL),
        FieldSpec(3, "trip_update", Kind.MESSAGE, "payload", message="TripUpdate"),
        FieldSpec(4, "vehicle", Kind.MESSAGE, "payload", message="VehiclePosition"),
        FieldSpec(5, "alert", Kind.MESSAGE, "payload", message="Alert"),
    ),
)

TRIP_DESCRIPTOR = MessageSpec(
    "TripDescriptor",
    models.TripDescriptor,
    (
        FieldSpec(1, "trip_id", Kind.STRING),
        FieldSpec(2, "start_time", Kind.STRING),
        FieldSpec(3, "start_date", Kind.STRING),
        FieldSpec(
            4, "schedule_relationship", Kind.ENUM, enum=models.TripScheduleRelationship
        ),
        FieldSpec(5, "route_id", Kind.STRING),
        FieldSpec(6, "direction_id", Kind.UINT32),
    ),
)

VEHICLE_DESCRIPTOR = MessageSpec(
    "VehicleDescriptor",
    models.VehicleDescriptor,
    (
        FieldSpec(1, "id", Kind.STRING),
        FieldSpec(2, "label", Kind.STRING),
        FieldSpec(3, "license_plate", Kind.STRING),
        FieldSpec(
            4, "wheelchair_accessible", Kind.ENUM, enum=models.WheelchairAccessible
        ),
    ),
)

STOP_TIME_EVENT = MessageSpec(
    "StopTimeEvent",
    models.StopTimeEvent,
    (
        FieldSpec(1, "delay", Kind.INT32),
        FieldSpec(2, "time", Kind.INT64),
        FieldSpec(3, "uncertainty", Kind.INT32),
        FieldSpec(4, "scheduled_time", Kind.INT64),
    ),
)

STOP_TIME_UPDATE = MessageSpec(
    "StopTimeUpdate",
    models.StopTimeUpdate,
    (
        FieldSpec(1, "stop_sequence", Kind.UINT32),
        FieldSpec(2, "arrival", Kind.MESSAGE, message="StopTimeEvent"),
        FieldSpec(3, "departure", Kind.MESSAGE, message="StopTimeEvent"),
        FieldSpec(4, "stop_id", Kind.STRING),
        FieldSpec(
            5, "schedule_relationship", Kind.ENUM, enum=models.StopScheduleRelationship
        ),
        FieldSpec(
            7, "departure_occupancy_status", Kind.ENUM, enum=models.OccupancyStatus
        ),
    ),
)

TRIP_UPDATE = MessageSpec(
    "TripUpdate",
    models.TripUpdate,
    (
        FieldSpec(1, "trip", Kind.MESSAGE, required=True, message="TripDescriptor"),
        FieldSpec(
            2,
            "stop_time_update",
            Kind.MESSAGE,
            "stop_time_updates",
            repeated=True,
            message="StopTimeUpdate",
        ),
        FieldSpec(3, "vehicle", Kind.MESSAGE, message="VehicleDescriptor"),
        FieldSpec(4, "timestamp", Kind.UINT64),
        FieldSpec(5, "delay", Kind.INT32),
    ),
)

POSITION = MessageSpec(
    "Position",
    models.Position,
    (
        FieldSpec(1, "latitude", Kind.FLOAT, required=True),
        FieldSpec(2, "longitude", Kind.FLOAT, required=True),
        FieldSpec(3, "bearing", Kind.FLOAT),
        FieldSpec(4, "odometer", Kind.DOUBLE),
        FieldSpec(5, "speed", Kind.FLOAT),
    ),
)

VEHICLE_POSITION = MessageSpec(
    "VehiclePosition",
    models.VehiclePosition,
    (
        FieldSpec(1, "trip", Kind.MESSAGE, message="TripDescriptor"),
        FieldSpec(2, "position", Kind.MESSAGE, message="Position"),
        FieldSpec(3, "current_stop_sequence", Kind.UINT32),
        FieldSpec(4, "current_status", Kind.ENUM, enum=models.VehicleStopStatus),
        FieldSpec(5, "timestamp", Kind.UINT64),
        FieldSpec(6, "congestion_level", Kind.ENUM, enum=models.CongestionLevel),
        FieldSpec(7, "stop_id", Kind.STRING),
        FieldSpec(8, "vehicle", Kind.MESSAGE, message="VehicleDescriptor"),
        FieldSpec(9, "occupancy_status", Kind.ENUM, enum=models.OccupancyStatus),
        FieldSpec(10, "occupancy_percentage", Kind.UINT32),
    ),
)

TIME_RANGE = MessageSpec(
    "TimeRange",
    models.TimeRange,
    (
        FieldSpec(1, "start", Kind.UINT64),
        FieldSpec(2, "end", Kind.UINT64),
    ),
)

ENTITY_SELECTOR = MessageSpec(
    "EntitySelector",
    models.EntitySelector,
    (
        FieldSpec(1, "agency_id", Kind.STRING),
        FieldSpec(2, "route_id", Kind.STRING),
        FieldSpec(3, "route_type", Kind.INT32),
        FieldSpec(4, "trip", Kind.MESSAGE, message="TripDescriptor"),
        FieldSpec(5, "stop_id", Kind.STRING),
        FieldSpec(6, "direction_id", Kind.UINT32),
    ),
)

TRANSLATION = MessageSpec(
    "Translation",
    models.Translation,
    (
        FieldSpec(1, "text", Kind.STRING, required=True),
        FieldSpec(2, "language", Kind.STRING),
    ),
)

TRANSLATED_STRING = MessageSpec(
    "TranslatedString",
    models.TranslatedString,
    (
        FieldSpec(
            1,
            "translation",
            Kind.MESSAGE,
            "translations",
            repeated=True,
            message="Translation",
        ),
    ),
)

LOCALIZED_IMAGE = MessageSpec(
    "LocalizedImage",
    models.LocalizedImage,
    (
        FieldSpec(1, "url", Kind.STRING, required=True),
        FieldSpec(2, "media_type", Kind.STRING, required=True),
        FieldSpec(3, "language", Kind.STRING),
    ),
)

TRANSLATED_IMAGE = MessageSpec(
    "TranslatedImage",
    models.TranslatedImage,
    (
        FieldSpec(
            1,
            "localized_image",
            Kind.MESSAGE,
            "localized_images",
            repeated=True,
            message="LocalizedImage",
        ),
    ),
)


def _text(number: int, name: str) -> FieldSpec:
    return FieldSpec(number, name, Kind.MESSAGE, message="TranslatedString")


ALERT = MessageSpec(
    "Alert",
    models.Alert,
    (
        FieldSpec(
            1,
            "active_period",
            Kind.MESSAGE,
            "active_periods",
            repeated=True,
            message="TimeRange",
        ),
        FieldSpec(
            5,
            "informed_entity",
            Kind.MESSAGE,
            "informed_entities",
            repeated=True,
            message="EntitySelector",
        ),
        FieldSpec(6, "cause", Kind.ENUM, enum=models.Cause),
        FieldSpec(7, "effect", Kind.ENUM, enum=models.Effect),
        _text(8, "url"),
        _text(10, "header_text"),
        _text(11, "description_text"),
        _text(12, "tts_header_text"),
        _text(13, "tts_description_text"),
        FieldSpec(14, "severity_level", Kind.ENUM, enum=models.SeverityLevel),
        FieldSpec(15, "image", Kind.MESSAGE, message="TranslatedImage"),
        _text(16, "image_alternative_text"),
        _text(17, "cause_detail"),
        _text(18, "effect_detail"),
    ),
)

MESSAGES: dict[str, MessageSpec] = {
    spec.name: spec
    for spec in (
        FEED_HEADER,
        FEED_ENTITY,
        TRIP_DESCRIPTOR,
        VEHICLE_DESCRIPTOR,
        STOP_TIME_EVENT,
        STOP_TIME_UPDATE,
        TRIP_UPDATE,
        POSITION,
        VEHICLE_POSITION,
        TIME_RANGE,
        ENTITY_SELECTOR,
        TRANSLATION,
        TRANSLATED_STRING,
        LOCALIZED_IMAGE,
        TRANSLATED_IMAGE,
        ALERT,
    )
}
