"""Static GTFS entity records.

Records hold parsed values only; references to other tables are kept as ids
and resolved through the Feed indices.
"""

from dataclasses import dataclass

from gtfs_feedkit.enums import Unrecognized
from gtfs_feedkit.scalars import (
    Color,
    Coordinate,
    Date,
    LanguageCode,
    ServiceTime,
    Timezone,
)
from gtfs_feedkit.static.enums import (
    BikesAllowed,
    DirectionId,
    ExceptionType,
    ExtendedRouteType,
    LocationType,
    PickupDropOffType,
    RouteType,
    Timepoint,
    WheelchairBoarding,
)


@dataclass(frozen=True, slots=True)
class Agency:
    """Transit agency; `id` is empty when a single-agency feed omits it."""

    id: str
    name: str
    url: str
    timezone: Timezone
    lang: LanguageCode | None = None
    phone: str | None = None
    fare_url: str | None = None
    email: str | None = None


@dataclass(frozen=True, slots=True)
class Stop:
    id: str
    name: str | None = None
    code: str | None = None
    desc: str | None = None
    coordinate: Coordinate | None = None
    zone_id: str | None = None
    url: str | None = None
    location_type: LocationType | Unrecognized = LocationType.STOP
    parent_station: str | None = None
    timezone: Timezone | None = None
    wheelchair_boarding: WheelchairBoarding | Unrecognized | None = None
    platform_code: str | None = None


@dataclass(frozen=True, slots=True)
class Route:
    """Route; `agency_id` is resolved to the sole agency when omitted."""

    id: str
    agency_id: str
    route_type: RouteType | ExtendedRouteType | Unrecognized
    short_name: str | None = None
    long_name: str | None = None
    desc: str | None = None
    url: str | None = None
    color: Color | None = None
    text_color: Color | None = None
    sort_order: int | None = None

    @property
    def display_name(self) -> str:
        return self.short_name or self.long_name or self.id


@dataclass(frozen=True, slots=True)
class Trip:
    id: str
    route_id: str
    service_id: str
    headsign: str | None = None
    short_name: str | None = None
    direction_id: DirectionId | Unrecognized | None = None
    block_id: str | None = None
    shape_id: str | None = None
    wheelchair_accessible: WheelchairBoarding | Unrecognized | None = None
    bikes_allowed: BikesAllowed | Unrecognized | None = None


@dataclass(frozen=True, slots=True)
class StopTime:
    trip_id: str
    stop_sequence: int
    stop_id: str
    arrival_time: ServiceTime | None = None
    departure_time: ServiceTime | None = None
    stop_headsign: str | None = None
    pickup_type: PickupDropOffType | Unrecognized = PickupDropOffType.REGULAR
    drop_off_type: PickupDropOffType | Unrecognized = PickupDropOffType.REGULAR
    shape_dist_traveled: float | None = None
    timepoint: Timepoint | Unrecognized | None = None

    @property
    def key(self) -> tuple[str, int]:
        return (self.trip_id, self.stop_sequence)


@dataclass(frozen=True, slots=True)
class Calendar:
    """Weekly service pattern; `days` is indexed Monday=0 .. Sunday=6."""

    service_id: str
    days: tuple[bool, bool, bool, bool, bool, bool, bool]
    start_date: Date
    end_date: Date

    def covers(self, day: Date) -> bool:
        """True when the weekly pattern runs on `day` (ignoring exceptions)."""
        return self.start_date <= day <= self.end_date and self.days[day.weekday()]


@dataclass(frozen=True, slots=True)
class CalendarDate:
    service_id: str
    date: Date
    exception_type: ExceptionType | Unrecognized

    @property
    def key(self) -> tuple[str, Date]:
        return (self.service_id, self.date)


@dataclass(frozen=True, slots=True)
class ShapePoint:
    shape_id: str
    sequence: int
    coordinate: Coordinate
    dist_traveled: float | None = None

    @property
    def key(self) -> tuple[str, int]:
        return (self.shape_id, self.sequence)
