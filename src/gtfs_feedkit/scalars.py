"""Validated scalar types shared by the static and realtime pipelines.

Every constructor either returns a valid value or raises MalformedScalar
naming the field and the offending input. Nothing is clamped or wrapped.
"""

import math
import re
from dataclasses import dataclass
from datetime import date as _date
from typing import Self

from gtfs_feedkit.errors import MalformedScalar

SECONDS_PER_DAY = 86_400

_DATE_RE = re.compile(r"^[0-9]{8}$")
_TIME_RE = re.compile(r"^([0-9]+):([0-9]{2}):([0-9]{2})$")
_COLOR_RE = re.compile(r"^[0-9A-Fa-f]{6}$")
_INT_RE = re.compile(r"^[+-]?[0-9]+$")
# Non-finite spellings pass here so they can be reported as such
_FLOAT_RE = re.compile(
    r"^[+-]?(?:(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)$",
    re.IGNORECASE,
)
# Area/Location[/Sublocation], or a bare legacy zone such as UTC or EST5EDT
_TIMEZONE_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_+\-]*(/[A-Za-z0-9_+\-]+)*$")
_LANGUAGE_RE = re.compile(r"^[A-Za-z]{2,8}(-[A-Za-z0-9]{1,8})*$")


@dataclass(frozen=True, slots=True, order=True)
class Date:
    """Calendar date as used by GTFS service calendars (YYYYMMDD)."""

    year: int
    month: int
    day: int

    def __post_init__(self) -> None:
        try:
            _date(self.year, self.month, self.day)
        except ValueError as e:
            raise MalformedScalar(
                "date", f"{self.year:04d}{self.month:02d}{self.day:02d}", str(e)
            ) from e

    @classmethod
    def parse(cls, text: str, field: str = "date") -> Self:
        """Parse an 8-digit YYYYMMDD literal.

        Args:
            text: Raw literal.
            field: Column or field name reported on failure.

        Raises:
            MalformedScalar: If the literal is not 8 digits or not a real date.
        """
        text = text.strip()
        if not _DATE_RE.match(text):
            raise MalformedScalar(field, text, "expected YYYYMMDD")
        try:
            return cls(int(text[:4]), int(text[4:6]), int(text[6:]))
        except MalformedScalar as e:
            raise MalformedScalar(field, text, e.reason) from e

    @classmethod
    def from_date(cls, value: _date) -> Self:
        return cls(value.year, value.month, value.day)

    def to_date(self) -> _date:
        return _date(self.year, self.month, self.day)

    def weekday(self) -> int:
        """Day of week, Monday is 0."""
        return self.to_date().weekday()

    def __str__(self) -> str:
        return f"{self.year:04d}{self.month:02d}{self.day:02d}"


@dataclass(frozen=True, slots=True, order=True)
class ServiceTime:
    """Elapsed seconds since midnight of a service day.

    Values past 24:00:00 are legal and describe trips running after midnight;
    they are never reduced modulo a day.
    """

    seconds: int

    def __post_init__(self) -> None:
        if self.seconds < 0:
            raise MalformedScalar("time", self.seconds, "negative service time")

    @classmethod
    def parse(cls, text: str, field: str = "time") -> Self:
        """Parse an H:MM:SS or HH:MM:SS literal; hours may exceed 23."""
        text = text.strip()
        match = _TIME_RE.match(text)
        if match is None:
            raise MalformedScalar(field, text, "expected HH:MM:SS")
        hours, minutes, seconds = (int(g) for g in match.groups())
        if minutes > 59 or seconds > 59:
            raise MalformedScalar(field, text, "minutes and seconds must be below 60")
        return cls(hours * 3600 + minutes * 60 + seconds)

    @property
    def hours(self) -> int:
        return self.seconds // 3600

    @property
    def minutes(self) -> int:
        return (self.seconds % 3600) // 60

    @property
    def crosses_midnight(self) -> bool:
        """True for times at or after 24:00:00 of the service day."""
        return self.seconds >= SECONDS_PER_DAY

    def __str__(self) -> str:
        return f"{self.hours:02d}:{self.minutes:02d}:{self.seconds % 60:02d}"


@dataclass(frozen=True, slots=True)
class Coordinate:
    """WGS84 latitude/longitude pair."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not math.isfinite(self.latitude) or not -90.0 <= self.latitude <= 90.0:
            raise MalformedScalar("latitude", self.latitude, "must be within [-90, 90]")
        if not math.isfinite(self.longitude) or not -180.0 <= self.longitude <= 180.0:
            raise MalformedScalar(
                "longitude", self.longitude, "must be within [-180, 180]"
            )

    @classmethod
    def parse(
        cls,
        latitude: str,
        longitude: str,
        lat_field: str = "latitude",
        lon_field: str = "longitude",
    ) -> Self:
        """Parse a coordinate from two decimal literals."""
        lat = parse_float(latitude, lat_field)
        lon = parse_float(longitude, lon_field)
        try:
            return cls(lat, lon)
        except MalformedScalar as e:
            name = lat_field if e.field == "latitude" else lon_field
            raise MalformedScalar(name, e.value, e.reason) from e


@dataclass(frozen=True, slots=True)
class Color:
    """24-bit RGB color."""

    rgb: int

    def __post_init__(self) -> None:
        if not 0 <= self.rgb <= 0xFFFFFF:
            raise MalformedScalar("color", self.rgb, "outside 24-bit range")

    @classmethod
    def parse(cls, text: str, field: str = "color") -> Self:
        """Parse six hex digits, any case, without a leading '#'."""
        text = text.strip()
        if not _COLOR_RE.match(text):
            raise MalformedScalar(field, text, "expected 6 hex digits")
        return cls(int(text, 16))

    @property
    def red(self) -> int:
        return (self.rgb >> 16) & 0xFF

    @property
    def green(self) -> int:
        return (self.rgb >> 8) & 0xFF

    @property
    def blue(self) -> int:
        return self.rgb & 0xFF

    @property
    def hex(self) -> str:
        return f"{self.rgb:06X}"

    def __str__(self) -> str:
        return self.hex


@dataclass(frozen=True, slots=True)
class Timezone:
    """IANA time zone name, checked syntactically only."""

    name: str

    def __post_init__(self) -> None:
        if not _TIMEZONE_RE.match(self.name):
            raise MalformedScalar("timezone", self.name, "not an IANA zone name")

    @classmethod
    def parse(cls, text: str, field: str = "timezone") -> Self:
        text = text.strip()
        if not _TIMEZONE_RE.match(text):
            raise MalformedScalar(field, text, "not an IANA zone name")
        return cls(text)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class LanguageCode:
    """BCP-47 style language tag, checked syntactically only."""

    tag: str

    def __post_init__(self) -> None:
        if not _LANGUAGE_RE.match(self.tag):
            raise MalformedScalar("language", self.tag, "not a language tag")

    @classmethod
    def parse(cls, text: str, field: str = "language") -> Self:
        text = text.strip()
        if not _LANGUAGE_RE.match(text):
            raise MalformedScalar(field, text, "not a language tag")
        return cls(text)

    @property
    def primary(self) -> str:
        """Primary language subtag, lower-cased."""
        return self.tag.split("-", 1)[0].lower()

    def __str__(self) -> str:
        return self.tag


def parse_int(text: str, field: str, minimum: int | None = None) -> int:
    """Parse a base-10 integer column.

    Raises:
        MalformedScalar: If the text is not an integer or is below `minimum`.
    """
    text = text.strip()
    if not _INT_RE.match(text):
        raise MalformedScalar(field, text, "expected an integer")
    value = int(text)
    if minimum is not None and value < minimum:
        raise MalformedScalar(field, text, f"must be >= {minimum}")
    return value


def parse_float(text: str, field: str, minimum: float | None = None) -> float:
    """Parse a finite decimal column."""
    text = text.strip()
    if not _FLOAT_RE.match(text):
        raise MalformedScalar(field, text, "expected a number")
    value = float(text)
    if not math.isfinite(value):
        raise MalformedScalar(field, text, "must be finite")
    if minimum is not None and value < minimum:
        raise MalformedScalar(field, text, f"must be >= {minimum}")
    return value
