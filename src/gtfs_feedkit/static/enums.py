"""Coded columns of the static GTFS tables."""

from dataclasses import dataclass
from enum import IntEnum
from typing import TypeVar

from gtfs_feedkit.enums import Unrecognized
from gtfs_feedkit.errors import MalformedScalar, UnknownEnumValue
from gtfs_feedkit.scalars import parse_int


class RouteType(IntEnum):
    TRAM = 0
    SUBWAY = 1
    RAIL = 2
    BUS = 3
    FERRY = 4
    CABLE_TRAM = 5
    AERIAL_LIFT = 6
    FUNICULAR = 7
    TROLLEYBUS = 11
    MONORAIL = 12


@dataclass(frozen=True, slots=True)
class ExtendedRouteType:
    """Hierarchical Vehicle Type code (100-1799), e.g. 700 for bus service."""

    code: int

    def __post_init__(self) -> None:
        if not 100 <= self.code <= 1799:
            raise MalformedScalar("route_type", self.code, "not an extended route type")

    @property
    def category(self) -> int:
        """Hundreds group, e.g. 700 for every bus subtype."""
        return self.code - self.code % 100

    def __str__(self) -> str:
        return str(self.code)


class LocationType(IntEnum):
    STOP = 0
    STATION = 1
    ENTRANCE_EXIT = 2
    GENERIC_NODE = 3
    BOARDING_AREA = 4


class WheelchairBoarding(IntEnum):
    NO_INFORMATION = 0
    ACCESSIBLE = 1
    NOT_ACCESSIBLE = 2


class BikesAllowed(IntEnum):
    NO_INFORMATION = 0
    ALLOWED = 1
    NOT_ALLOWED = 2


class DirectionId(IntEnum):
    OUTBOUND = 0
    INBOUND = 1


class PickupDropOffType(IntEnum):
    REGULAR = 0
    NONE = 1
    PHONE_AGENCY = 2
    COORDINATE_WITH_DRIVER = 3


class Timepoint(IntEnum):
    APPROXIMATE = 0
    EXACT = 1


class ServiceAvailability(IntEnum):
    NOT_AVAILABLE = 0
    AVAILABLE = 1


class ExceptionType(IntEnum):
    ADDED = 1
    REMOVED = 2


E = TypeVar("E", bound=IntEnum)


def parse_enum(
    enum_cls: type[E],
    text: str,
    field: str,
    strict: bool = True,
) -> E | Unrecognized:
    """Parse a coded column.

    Args:
        enum_cls: Enumeration to look the code up in.
        text: Raw column text.
        field: Column name for error reporting.
        strict: Raise on unknown codes instead of returning Unrecognized.

    Raises:
        MalformedScalar: If the text is not an integer.
        UnknownEnumValue: If strict and the code is not a member.
    """
    code = parse_int(text, field)
    try:
        return enum_cls(code)
    except ValueError:
        if strict:
            raise UnknownEnumValue(field, text, f"unknown {enum_cls.__name__} code") from None
        return Unrecognized(code)


def parse_route_type(
    text: str,
    field: str = "route_type",
    strict: bool = True,
) -> RouteType | ExtendedRouteType | Unrecognized:
    """Parse a basic or extended route type."""
    code = parse_int(text, field)
    try:
        return RouteType(code)
    except ValueError:
        pass
    if 100 <= code <= 1799:
        return ExtendedRouteType(code)
    if strict:
        raise UnknownEnumValue(field, text, "unknown route type")
    return Unrecognized(code)
