"""Typed GTFS-realtime feed message model.

All classes are frozen; a decoded FeedMessage never changes after the decode
call returns.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import TypeAlias

from gtfs_feedkit.enums import Unrecognized


class Incrementality(IntEnum):
    FULL_DATASET = 0
    DIFFERENTIAL = 1


class TripScheduleRelationship(IntEnum):
    SCHEDULED = 0
    ADDED = 1
    UNSCHEDULED = 2
    CANCELED = 3
    REPLACEMENT = 5
    DUPLICATED = 6
    DELETED = 7
    NEW = 8


class StopScheduleRelationship(IntEnum):
    SCHEDULED = 0
    SKIPPED = 1
    NO_DATA = 2
    UNSCHEDULED = 3


class VehicleStopStatus(IntEnum):
    INCOMING_AT = 0
    STOPPED_AT = 1
    IN_TRANSIT_TO = 2


class CongestionLevel(IntEnum):
    UNKNOWN_CONGESTION_LEVEL = 0
    RUNNING_SMOOTHLY = 1
    STOP_AND_GO = 2
    CONGESTION = 3
    SEVERE_CONGESTION = 4


class OccupancyStatus(IntEnum):
    EMPTY = 0
    MANY_SEATS_AVAILABLE = 1
    FEW_SEATS_AVAILABLE = 2
    STANDING_ROOM_ONLY = 3
    CRUSHED_STANDING_ROOM_ONLY = 4
    FULL = 5
    NOT_ACCEPTING_PASSENGERS = 6
    NO_DATA_AVAILABLE = 7
    NOT_BOARDABLE = 8


class WheelchairAccessible(IntEnum):
    NO_VALUE = 0
    UNKNOWN = 1
    WHEELCHAIR_ACCESSIBLE = 2
    WHEELCHAIR_INACCESSIBLE = 3


class Cause(IntEnum):
    UNKNOWN_CAUSE = 1
    OTHER_CAUSE = 2
    TECHNICAL_PROBLEM = 3
    STRIKE = 4
    DEMONSTRATION = 5
    ACCIDENT = 6
    HOLIDAY = 7
    WEATHER = 8
    MAINTENANCE = 9
    CONSTRUCTION = 10
    POLICE_ACTIVITY = 11
    MEDICAL_EMERGENCY = 12


class Effect(IntEnum):
    NO_SERVICE = 1
    REDUCED_SERVICE = 2
    SIGNIFICANT_DELAYS = 3
    DETOUR = 4
    ADDITIONAL_SERVICE = 5
    MODIFIED_SERVICE = 6
    OTHER_EFFECT = 7
    UNKNOWN_EFFECT = 8
    STOP_MOVED = 9
    NO_EFFECT = 10
    ACCESSIBILITY_ISSUE = 11


class SeverityLevel(IntEnum):
    UNKNOWN_SEVERITY = 1
    INFO = 2
    WARNING = 3
    SEVERE = 4


@dataclass(frozen=True, slots=True)
class FeedHeader:
    gtfs_realtime_version: str
    incrementality: Incrementality | Unrecognized = Incrementality.FULL_DATASET
    timestamp: int | None = None
    feed_version: str | None = None


@dataclass(frozen=True, slots=True)
class TripDescriptor:
    trip_id: str | None = None
    route_id: str | None = None
    direction_id: int | None = None
    start_time: str | None = None
    start_date: str | None = None
    schedule_relationship: TripScheduleRelationship | Unrecognized | None = None


@dataclass(frozen=True, slots=True)
class VehicleDescriptor:
    id: str | None = None
    label: str | None = None
    license_plate: str | None = None
    wheelchair_accessible: WheelchairAccessible | Unrecognized | None = None


@dataclass(frozen=True, slots=True)
class StopTimeEvent:
    """Predicted arrival or departure; `time` is POSIX seconds."""

    delay: int | None = None
    time: int | None = None
    uncertainty: int | None = None
    scheduled_time: int | None = None


@dataclass(frozen=True, slots=True)
class StopTimeUpdate:
    stop_sequence: int | None = None
    stop_id: str | None = None
    arrival: StopTimeEvent | None = None
    departure: StopTimeEvent | None = None
    departure_occupancy_status: OccupancyStatus | Unrecognized | None = None
    schedule_relationship: StopScheduleRelationship | Unrecognized = (
        StopScheduleRelationship.SCHEDULED
    )


@dataclass(frozen=True, slots=True)
class TripUpdate:
    trip: TripDescriptor
    vehicle: VehicleDescriptor | None = None
    stop_time_updates: tuple[StopTimeUpdate, ...] = ()
    timestamp: int | None = None
    delay: int | None = None


@dataclass(frozen=True, slots=True)
class Position:
    latitude: float
    longitude: float
    bearing: float | None = None
    odometer: float | None = None
    speed: float | None = None


@dataclass(frozen=True, slots=True)
class VehiclePosition:
    trip: TripDescriptor | None = None
    vehicle: VehicleDescriptor | None = None
    position: Position | None = None
    current_stop_sequence: int | None = None
    stop_id: str | None = None
    current_status: VehicleStopStatus | Unrecognized = VehicleStopStatus.IN_TRANSIT_TO
    timestamp: int | None = None
    congestion_level: CongestionLevel | Unrecognized | None = None
    occupancy_status: OccupancyStatus | Unrecognized | None = None
    occupancy_percentage: int | None = None


@dataclass(frozen=True, slots=True)
class TimeRange:
    start: int | None = None
    end: int | None = None

    def contains(self, timestamp: int) -> bool:
        """True when `timestamp` falls in the range; open ends are unbounded."""
        if self.start is not None and timestamp < self.start:
            return False
        return self.end is None or timestamp <= self.end


@dataclass(frozen=True, slots=True)
class EntitySelector:
    agency_id: str | None = None
    route_id: str | None = None
    route_type: int | None = None
    trip: TripDescriptor | None = None
    stop_id: str | None = None
    direction_id: int | None = None


@dataclass(frozen=True, slots=True)
class Translation:
    text: str
    language: str | None = None


@dataclass(frozen=True, slots=True)
class TranslatedString:
    translations: tuple[Translation, ...] = ()

    def text(self, language: str | None = None) -> str | None:
        """Pick the translation for `language`.

        Falls back to the untagged translation, then to the first one.
        """
        if not self.translations:
            return None
        if language is not None:
            for translation in self.translations:
                if translation.language == language:
                    return translation.text
        for translation in self.translations:
            if translation.language is None:
                return translation.text
        return self.translations[0].text


@dataclass(frozen=True, slots=True)
class LocalizedImage:
    url: str
    media_type: str
    language: str | None = None


@dataclass(frozen=True, slots=True)
class TranslatedImage:
    localized_images: tuple[LocalizedImage, ...] = ()


@dataclass(frozen=True, slots=True)
class Alert:
    active_periods: tuple[TimeRange, ...] = ()
    informed_entities: tuple[EntitySelector, ...] = ()
    cause: Cause | Unrecognized = Cause.UNKNOWN_CAUSE
    effect: Effect | Unrecognized = Effect.UNKNOWN_EFFECT
    url: TranslatedString | None = None
    header_text: TranslatedString | None = None
    description_text: TranslatedString | None = None
    tts_header_text: TranslatedString | None = None
    tts_description_text: TranslatedString | None = None
    severity_level: SeverityLevel | Unrecognized = SeverityLevel.UNKNOWN_SEVERITY
    image: TranslatedImage | None = None
    image_alternative_text: TranslatedString | None = None
    cause_detail: TranslatedString | None = None
    effect_detail: TranslatedString | None = None

    def is_active(self, timestamp: int) -> bool:
        """An alert without active periods is always active."""
        if not self.active_periods:
            return True
        return any(period.contains(timestamp) for period in self.active_periods)


EntityPayload: TypeAlias = TripUpdate | VehiclePosition | Alert


@dataclass(frozen=True, slots=True)
class FeedEntity:
    """One update record; `payload` holds at most one variant."""

    id: str
    is_deleted: bool = False
    payload: EntityPayload | None = None

    @property
    def trip_update(self) -> TripUpdate | None:
        return self.payload if isinstance(self.payload, TripUpdate) else None

    @property
    def vehicle(self) -> VehiclePosition | None:
        return self.payload if isinstance(self.payload, VehiclePosition) else None

    @property
    def alert(self) -> Alert | None:
        return self.payload if isinstance(self.payload, Alert) else None


@dataclass(frozen=True, slots=True)
class DroppedField:
    """A substructure treated as absent during decoding.

    Attributes:
        path: Dotted schema path, e.g. "entity[3].vehicle.position".
        reason: Why it was dropped.
        offset: Absolute byte offset of the dropped field's tag.
    """

    path: str
    reason: str
    offset: int | None = None


@dataclass(frozen=True, slots=True)
class FeedMessage:
    header: FeedHeader
    entities: tuple[FeedEntity, ...] = ()
    dropped: tuple[DroppedField, ...] = ()

    def __len__(self) -> int:
        return len(self.entities)
