"""Static GTFS table loader and validator.

Rows arrive already tokenized: one mapping of column name to raw text per row.
Loading runs in two passes. The first parses every row of every table and
registers it under its key; the second resolves cross-table references and
checks ordering. Every problem is collected into a ValidationReport; a Feed is
produced only when the report is empty.
"""

from collections import Counter, defaultdict
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeAlias, TypeVar

from gtfs_feedkit.enums import Unrecognized, enum_name
from gtfs_feedkit.errors import (
    ErrorKind,
    FeedValidationError,
    InputLimitExceeded,
    MalformedScalar,
    ValidationReport,
    Violation,
)
from gtfs_feedkit.logging import get_logger
from gtfs_feedkit.metrics import record_static_load, record_static_rows, timed_stage
from gtfs_feedkit.models import LoaderOptions
from gtfs_feedkit.scalars import (
    Color,
    Coordinate,
    Date,
    LanguageCode,
    ServiceTime,
    Timezone,
    parse_float,
    parse_int,
)
from gtfs_feedkit.static.enums import (
    BikesAllowed,
    DirectionId,
    ExceptionType,
    LocationType,
    PickupDropOffType,
    ServiceAvailability,
    Timepoint,
    WheelchairBoarding,
    parse_enum,
    parse_route_type,
)
from gtfs_feedkit.static.feed import Feed
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

logger = get_logger(__name__)

Row: TypeAlias = Mapping[str, str | None]
Tables: TypeAlias = Mapping[str, Iterable[Row]]

K = TypeVar("K")
T = TypeVar("T")

# Ordering of tables represents loading order: referenced tables come first
TABLE_ORDER = (
    "agency",
    "stops",
    "routes",
    "calendar",
    "calendar_dates",
    "shapes",
    "trips",
    "stop_times",
)
REQUIRED_TABLES = ("agency", "stops", "routes", "trips", "stop_times")
SERVICE_TABLES = ("calendar", "calendar_dates")
WEEKDAY_COLUMNS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)
# Location types that must carry a name and coordinates
_LOCATED_TYPES = (LocationType.STOP, LocationType.STATION, LocationType.ENTRANCE_EXIT)
# Location types that must belong to a parent station
_CHILD_TYPES = (
    LocationType.ENTRANCE_EXIT,
    LocationType.GENERIC_NODE,
    LocationType.BOARDING_AREA,
)
# Location type a parent_station must have, per child location type
_PARENT_TYPES: dict[LocationType | Unrecognized, LocationType] = {
    LocationType.STOP: LocationType.STATION,
    LocationType.ENTRANCE_EXIT: LocationType.STATION,
    LocationType.GENERIC_NODE: LocationType.STATION,
    LocationType.BOARDING_AREA: LocationType.STOP,
}


class _RowReader:
    """Column access for one row that records violations instead of raising."""

    def __init__(self, table: str, number: int, row: Row, report: ValidationReport) -> None:
        self.table = table
        self.number = number
        self.row = row
        self.report = report
        self.entity_id: str | None = None
        self.failed = False

    def violation(
        self,
        kind: ErrorKind,
        message: str,
        column: str | None = None,
        value: str | None = None,
    ) -> None:
        self.failed = True
        self.report.add(
            Violation(
                table=self.table,
                row=self.number,
                kind=kind,
                message=message,
                entity_id=self.entity_id,
                field=column,
                value=value,
            )
        )

    def required(self, column: str) -> str | None:
        if column not in self.row:
            self.violation(ErrorKind.MISSING_COLUMN, f"Missing column '{column}'", column)
            return None
        value = (self.row[column] or "").strip()
        if not value:
            self.violation(
                ErrorKind.MISSING_REQUIRED_FIELD, f"Empty required field '{column}'", column
            )
            return None
        return value

    def optional(self, column: str) -> str | None:
        value = (self.row.get(column) or "").strip()
        return value or None

    def parse(
        self,
        column: str,
        parser: Callable[[str, str], T],
        required: bool = False,
    ) -> T | None:
        text = self.required(column) if required else self.optional(column)
        if text is None:
            return None
        try:
            return parser(text, column)
        except MalformedScalar as e:
            self.violation(e.kind, str(e), column, text)
            return None


@dataclass
class _Table(Generic[K, T]):
    """Records of one table keyed by id, with the row each came from."""

    name: str
    present: bool = False
    records: dict[K, T] = field(default_factory=dict)
    rows: dict[K, int] = field(default_factory=dict)

    def register(self, key: K, record: T, reader: _RowReader, kind: ErrorKind) -> bool:
        """Register a record; the first row with a key stays authoritative."""
        if key in self.records:
            reader.violation(
                kind,
                f"Key {key!r} already defined on row {self.rows[key]}",
                value=str(key),
            )
            return False
        self.records[key] = record
        self.rows[key] = reader.number
        return True


@dataclass
class LoadResult:
    """Outcome of a static load: a valid Feed, or the violations preventing one."""

    feed: Feed | None
    report: ValidationReport

    @property
    def ok(self) -> bool:
        return self.feed is not None


class StaticFeedLoader:
    """Load and validate a set of tokenized static GTFS tables."""

    def __init__(self, options: LoaderOptions | None = None) -> None:
        self.options = options or LoaderOptions()

    def load(self, tables: Tables) -> LoadResult:
        """Parse, index and validate every table.

        Args:
            tables: Mapping of table name ("stops" or "stops.txt") to its rows.

        Returns:
            LoadResult holding either a Feed or a non-empty report.

        Raises:
            InputLimitExceeded: If a table has more rows than
                `options.max_rows_per_table`.
        """
        return _LoadRun(self.options, tables).run()


def load_feed(tables: Tables, options: LoaderOptions | None = None) -> Feed:
    """Load a static feed, raising when it is not valid.

    Raises:
        FeedValidationError: Carrying the full report when any violation exists.
        InputLimitExceeded: If a table exceeds the configured row limit.
    """
    result = StaticFeedLoader(options).load(tables)
    if result.feed is None:
        raise FeedValidationError(result.report)
    return result.feed


class _LoadRun:
    """State for a single load call."""

    def __init__(self, options: LoaderOptions, tables: Tables) -> None:
        self.options = options
        self.strict = options.strict_enums
        self.report = ValidationReport()
        self.tables: dict[str, Iterable[Row]] = {}
        for name, rows in tables.items():
            self.tables[name.removesuffix(".txt")] = rows

        self.agencies: _Table[str, Agency] = _Table("agency")
        self.stops: _Table[str, Stop] = _Table("stops")
        self.routes: _Table[str, Route] = _Table("routes")
        self.calendars: _Table[str, Calendar] = _Table("calendar")
        self.calendar_dates: _Table[tuple[str, Date], CalendarDate] = _Table("calendar_dates")
        self.shapes: _Table[tuple[str, int], ShapePoint] = _Table("shapes")
        self.trips: _Table[str, Trip] = _Table("trips")
        self.stop_times: _Table[tuple[str, int], StopTime] = _Table("stop_times")

    def run(self) -> LoadResult:
        self._check_tables()

        parsers: dict[str, tuple[_Table[Any, Any], Callable[[_RowReader], None]]] = {
            "agency": (self.agencies, self._parse_agency),
            "stops": (self.stops, self._parse_stop),
            "routes": (self.routes, self._parse_route),
            "calendar": (self.calendars, self._parse_calendar),
            "calendar_dates": (self.calendar_dates, self._parse_calendar_date),
            "shapes": (self.shapes, self._parse_shape_point),
            "trips": (self.trips, self._parse_trip),
            "stop_times": (self.stop_times, self._parse_stop_time),
        }
        for name in TABLE_ORDER:
            rows = self.tables.get(name)
            if rows is None:
                continue
            table, parse_row = parsers[name]
            table.present = True
            with timed_stage("static_load_table", self.options.profile, table=name):
                count = self._read_table(name, rows, parse_row)
            record_static_rows(name, count)
            if name == "agency":
                self._check_agency_ids()

        with timed_stage("static_validate", self.options.profile):
            self._validate_references()
            self._validate_stop_time_order()
            self._validate_shape_order()

        return self._finish()

    def _check_tables(self) -> None:
        required = list(REQUIRED_TABLES)
        if self.options.require_shapes:
            required.append("shapes")
        for name in required:
            if name not in self.tables:
                self._table_violation(name, f"Required table '{name}' is missing")
        if not any(name in self.tables for name in SERVICE_TABLES):
            self._table_violation(
                "calendar", "At least one of 'calendar' or 'calendar_dates' is required"
            )

    def _table_violation(self, table: str, message: str) -> None:
        self.report.add(Violation(table, None, ErrorKind.MISSING_TABLE, message))

    def _read_table(
        self,
        name: str,
        rows: Iterable[Row],
        parse_row: Callable[[_RowReader], None],
    ) -> int:
        limit = self.options.max_rows_per_table
        count = 0
        for count, row in enumerate(rows, start=1):
            if limit is not None and count > limit:
                raise InputLimitExceeded(f"Rows in table '{name}'", limit, count)
            parse_row(_RowReader(name, count, row, self.report))
        return count

    def _violation(
        self,
        table: str,
        row: int | None,
        kind: ErrorKind,
        message: str,
        entity_id: str | None = None,
        column: str | None = None,
        value: str | None = None,
    ) -> None:
        self.report.add(Violation(table, row, kind, message, entity_id, column, value))

    # First pass: one parser per table

    def _parse_agency(self, r: _RowReader) -> None:
        agency_id = r.optional("agency_id") or ""
        r.entity_id = agency_id or None
        name = r.required("agency_name")
        url = r.required("agency_url")
        timezone = r.parse("agency_timezone", Timezone.parse, required=True)
        lang = r.parse("agency_lang", LanguageCode.parse)
        if r.failed or name is None or url is None or timezone is None:
            return
        agency = Agency(
            id=agency_id,
            name=name,
            url=url,
            timezone=timezone,
            lang=lang,
            phone=r.optional("agency_phone"),
            fare_url=r.optional("agency_fare_url"),
            email=r.optional("agency_email"),
        )
        self.agencies.register(agency_id, agency, r, ErrorKind.DUPLICATE_ID)

    def _check_agency_ids(self) -> None:
        if len(self.agencies.records) < 2 or "" not in self.agencies.records:
            return
        self._violation(
            "agency",
            self.agencies.rows[""],
            ErrorKind.MISSING_REQUIRED_FIELD,
            "agency_id is required when the feed has more than one agency",
            column="agency_id",
        )

    def _parse_stop(self, r: _RowReader) -> None:
        stop_id = r.required("stop_id")
        r.entity_id = stop_id
        location_type = r.parse(
            "location_type",
            lambda t, f: parse_enum(LocationType, t, f, self.strict),
        )
        if location_type is None:
            location_type = LocationType.STOP

        located = location_type in _LOCATED_TYPES
        name = r.required("stop_name") if located else r.optional("stop_name")
        lat = r.required("stop_lat") if located else r.optional("stop_lat")
        lon = r.required("stop_lon") if located else r.optional("stop_lon")
        coordinate = None
        if lat is not None and lon is not None:
            try:
                coordinate = Coordinate.parse(lat, lon, "stop_lat", "stop_lon")
            except MalformedScalar as e:
                r.violation(e.kind, str(e), e.field, str(e.value))

        parent_station = (
            r.required("parent_station")
            if location_type in _CHILD_TYPES
            else r.optional("parent_station")
        )
        timezone = r.parse("stop_timezone", Timezone.parse)
        wheelchair = r.parse(
            "wheelchair_boarding",
            lambda t, f: parse_enum(WheelchairBoarding, t, f, self.strict),
        )
        if r.failed or stop_id is None:
            return
        stop = Stop(
            id=stop_id,
            name=name,
            code=r.optional("stop_code"),
            desc=r.optional("stop_desc"),
            coordinate=coordinate,
            zone_id=r.optional("zone_id"),
            url=r.optional("stop_url"),
            location_type=location_type,
            parent_station=parent_station,
            timezone=timezone,
            wheelchair_boarding=wheelchair,
            platform_code=r.optional("platform_code"),
        )
        self.stops.register(stop_id, stop, r, ErrorKind.DUPLICATE_ID)

    def _parse_route(self, r: _RowReader) -> None:
        route_id = r.required("route_id")
        r.entity_id = route_id
        agency_id = r.optional("agency_id")
        if agency_id is None:
            if len(self.agencies.records) == 1:
                agency_id = next(iter(self.agencies.records))
            elif self.agencies.present:
                r.violation(
                    ErrorKind.MISSING_REQUIRED_FIELD,
                    "agency_id is required when the feed has more than one agency",
                    "agency_id",
                )
        short_name = r.optional("route_short_name")
        long_name = r.optional("route_long_name")
        if short_name is None and long_name is None:
            r.violation(
                ErrorKind.MISSING_REQUIRED_FIELD,
                "One of route_short_name or route_long_name is required",
                "route_short_name",
            )
        route_type = r.parse(
            "route_type",
            lambda t, f: parse_route_type(t, f, self.strict),
            required=True,
        )
        color = r.parse("route_color", Color.parse)
        text_color = r.parse("route_text_color", Color.parse)
        sort_order = r.parse("route_sort_order", lambda t, f: parse_int(t, f, minimum=0))
        if r.failed or route_id is None or route_type is None:
            return
        route = Route(
            id=route_id,
            agency_id=agency_id or "",
            route_type=route_type,
            short_name=short_name,
            long_name=long_name,
            desc=r.optional("route_desc"),
            url=r.optional("route_url"),
            color=color,
            text_color=text_color,
            sort_order=sort_order,
        )
        self.routes.register(route_id, route, r, ErrorKind.DUPLICATE_ID)

    def _parse_calendar(self, r: _RowReader) -> None:
        service_id = r.required("service_id")
        r.entity_id = service_id
        days = [
            r.parse(
                column,
                lambda t, f: parse_enum(ServiceAvailability, t, f, strict=True),
                required=True,
            )
            for column in WEEKDAY_COLUMNS
        ]
        start_date = r.parse("start_date", Date.parse, required=True)
        end_date = r.parse("end_date", Date.parse, required=True)
        if start_date is not None and end_date is not None and start_date > end_date:
            r.violation(
                ErrorKind.DATE_RANGE_VIOLATION,
                f"start_date {start_date} is after end_date {end_date}",
                "end_date",
                str(end_date),
            )
        if r.failed or service_id is None or start_date is None or end_date is None:
            return
        calendar = Calendar(
            service_id=service_id,
            days=tuple(day is ServiceAvailability.AVAILABLE for day in days),  # type: ignore[arg-type]
            start_date=start_date,
            end_date=end_date,
        )
        self.calendars.register(service_id, calendar, r, ErrorKind.DUPLICATE_ID)

    def _parse_calendar_date(self, r: _RowReader) -> None:
        service_id = r.required("service_id")
        r.entity_id = service_id
        day = r.parse("date", Date.parse, required=True)
        exception_type = r.parse(
            "exception_type",
            lambda t, f: parse_enum(ExceptionType, t, f, self.strict),
            required=True,
        )
        if r.failed or service_id is None or day is None or exception_type is None:
            return
        calendar_date = CalendarDate(service_id, day, exception_type)
        self.calendar_dates.register(
            calendar_date.key, calendar_date, r, ErrorKind.DUPLICATE_ID
        )

    def _parse_shape_point(self, r: _RowReader) -> None:
        shape_id = r.required("shape_id")
        r.entity_id = shape_id
        lat = r.required("shape_pt_lat")
        lon = r.required("shape_pt_lon")
        coordinate = None
        if lat is not None and lon is not None:
            try:
                coordinate = Coordinate.parse(lat, lon, "shape_pt_lat", "shape_pt_lon")
            except MalformedScalar as e:
                r.violation(e.kind, str(e), e.field, str(e.value))
        sequence = r.parse(
            "shape_pt_sequence", lambda t, f: parse_int(t, f, minimum=0), required=True
        )
        dist = r.parse("shape_dist_traveled", lambda t, f: parse_float(t, f, minimum=0.0))
        if r.failed or shape_id is None or sequence is None or coordinate is None:
            return
        point = ShapePoint(shape_id, sequence, coordinate, dist)
        self.shapes.register(point.key, point, r, ErrorKind.ORDER_VIOLATION)

    def _parse_trip(self, r: _RowReader) -> None:
        trip_id = r.required("trip_id")
        r.entity_id = trip_id
        route_id = r.required("route_id")
        service_id = r.required("service_id")
        direction_id = r.parse(
            "direction_id", lambda t, f: parse_enum(DirectionId, t, f, self.strict)
        )
        wheelchair = r.parse(
            "wheelchair_accessible",
            lambda t, f: parse_enum(WheelchairBoarding, t, f, self.strict),
        )
        bikes = r.parse(
            "bikes_allowed", lambda t, f: parse_enum(BikesAllowed, t, f, self.strict)
        )
        if r.failed or trip_id is None or route_id is None or service_id is None:
            return
        trip = Trip(
            id=trip_id,
            route_id=route_id,
            service_id=service_id,
            headsign=r.optional("trip_headsign"),
            short_name=r.optional("trip_short_name"),
            direction_id=direction_id,
            block_id=r.optional("block_id"),
            shape_id=r.optional("shape_id"),
            wheelchair_accessible=wheelchair,
            bikes_allowed=bikes,
        )
        self.trips.register(trip_id, trip, r, ErrorKind.DUPLICATE_ID)

    def _parse_stop_time(self, r: _RowReader) -> None:
        trip_id = r.required("trip_id")
        r.entity_id = trip_id
        sequence = r.parse(
            "stop_sequence", lambda t, f: parse_int(t, f, minimum=0), required=True
        )
        stop_id = r.required("stop_id")
        arrival = r.parse("arrival_time", ServiceTime.parse)
        departure = r.parse("departure_time", ServiceTime.parse)
        pickup = r.parse(
            "pickup_type", lambda t, f: parse_enum(PickupDropOffType, t, f, self.strict)
        )
        drop_off = r.parse(
            "drop_off_type", lambda t, f: parse_enum(PickupDropOffType, t, f, self.strict)
        )
        timepoint = r.parse("timepoint", lambda t, f: parse_enum(Timepoint, t, f, self.strict))
        dist = r.parse("shape_dist_traveled", lambda t, f: parse_float(t, f, minimum=0.0))
        if r.failed or trip_id is None or sequence is None or stop_id is None:
            return
        stop_time = StopTime(
            trip_id=trip_id,
            stop_sequence=sequence,
            stop_id=stop_id,
            arrival_time=arrival,
            departure_time=departure,
            stop_headsign=r.optional("stop_headsign"),
            pickup_type=pickup if pickup is not None else PickupDropOffType.REGULAR,
            drop_off_type=drop_off if drop_off is not None else PickupDropOffType.REGULAR,
            shape_dist_traveled=dist,
            timepoint=timepoint,
        )
        self.stop_times.register(stop_time.key, stop_time, r, ErrorKind.ORDER_VIOLATION)

    # Second pass: references and ordering

    def _dangling(
        self,
        table: _Table[Any, Any],
        key: Any,
        entity_id: str,
        column: str,
        value: str,
        target: str,
    ) -> None:
        self._violation(
            table.name,
            table.rows[key],
            ErrorKind.DANGLING_REFERENCE,
            f"{column} '{value}' does not match any {target}",
            entity_id,
            column,
            value,
        )

    def _bad_parent(self, stop: Stop, message: str) -> None:
        self._violation(
            "stops",
            self.stops.rows[stop.id],
            ErrorKind.DANGLING_REFERENCE,
            message,
            stop.id,
            "parent_station",
            stop.parent_station,
        )

    def _parent_cycle(self, stop: Stop) -> bool:
        """Whether following parent_station from `stop` leads back to it."""
        stops = self.stops.records
        seen = {stop.id}
        current = stop.parent_station
        while current is not None and current in stops:
            if current == stop.id:
                return True
            if current in seen:
                return False
            seen.add(current)
            current = stops[current].parent_station
        return False

    def _validate_parents(self) -> None:
        stops = self.stops.records
        for stop_id, stop in stops.items():
            parent_id = stop.parent_station
            if parent_id is None:
                continue
            if parent_id == stop_id:
                self._bad_parent(stop, f"Stop '{stop_id}' is its own parent_station")
                continue
            parent = stops.get(parent_id)
            if parent is None:
                self._dangling(self.stops, stop_id, stop_id, "parent_station", parent_id, "stop")
                continue
            if stop.location_type is LocationType.STATION:
                self._bad_parent(stop, "A station cannot have a parent_station")
                continue
            expected = _PARENT_TYPES.get(stop.location_type)
            if expected is not None and parent.location_type is not expected:
                self._bad_parent(
                    stop,
                    f"parent_station '{parent_id}' must be a {expected.name.lower()}"
                    f" for location_type {enum_name(stop.location_type)}",
                )
                continue
            if self._parent_cycle(stop):
                self._bad_parent(stop, f"parent_station chain of '{stop_id}' forms a cycle")

    def _validate_references(self) -> None:
        stops = self.stops.records
        if self.stops.present:
            self._validate_parents()

        if self.agencies.present:
            for route_id, route in self.routes.records.items():
                if route.agency_id and route.agency_id not in self.agencies.records:
                    self._dangling(
                        self.routes, route_id, route_id, "agency_id", route.agency_id, "agency"
                    )

        services_present = self.calendars.present or self.calendar_dates.present
        service_ids = set(self.calendars.records) | {
            sid for sid, _ in self.calendar_dates.records
        }
        shape_ids = {sid for sid, _ in self.shapes.records}
        for trip_id, trip in self.trips.records.items():
            if self.routes.present and trip.route_id not in self.routes.records:
                self._dangling(self.trips, trip_id, trip_id, "route_id", trip.route_id, "route")
            if services_present and trip.service_id not in service_ids:
                self._dangling(
                    self.trips, trip_id, trip_id, "service_id", trip.service_id, "service"
                )
            if (
                self.shapes.present
                and trip.shape_id is not None
                and trip.shape_id not in shape_ids
            ):
                self._dangling(self.trips, trip_id, trip_id, "shape_id", trip.shape_id, "shape")

        for key, stop_time in self.stop_times.records.items():
            if self.trips.present and stop_time.trip_id not in self.trips.records:
                self._dangling(
                    self.stop_times, key, stop_time.trip_id, "trip_id", stop_time.trip_id, "trip"
                )
            if self.stops.present and stop_time.stop_id not in stops:
                self._dangling(
                    self.stop_times, key, stop_time.trip_id, "stop_id", stop_time.stop_id, "stop"
                )

    def _order_violation(self, key: tuple[str, int], column: str, message: str) -> None:
        self._violation(
            "stop_times",
            self.stop_times.rows[key],
            ErrorKind.ORDER_VIOLATION,
            message,
            key[0],
            column,
        )

    def _validate_stop_time_order(self) -> None:
        by_trip: dict[str, list[StopTime]] = defaultdict(list)
        for stop_time in self.stop_times.records.values():
            if stop_time.trip_id in self.trips.records:
                by_trip[stop_time.trip_id].append(stop_time)

        for trip_id, stop_times in by_trip.items():
            stop_times.sort(key=lambda st: st.stop_sequence)
            for end in (stop_times[0], stop_times[-1]):
                if end.arrival_time is None and end.departure_time is None:
                    self._violation(
                        "stop_times",
                        self.stop_times.rows[end.key],
                        ErrorKind.MISSING_REQUIRED_FIELD,
                        "First and last stop of a trip need arrival or departure times",
                        trip_id,
                        "arrival_time",
                    )

            last_time: ServiceTime | None = None
            last_dist: float | None = None
            for stop_time in stop_times:
                arrival, departure = stop_time.arrival_time, stop_time.departure_time
                if arrival is not None and departure is not None and departure < arrival:
                    self._order_violation(
                        stop_time.key,
                        "departure_time",
                        f"departure_time {departure} is before arrival_time {arrival}",
                    )
                current = arrival or departure
                if current is not None:
                    if last_time is not None and current < last_time:
                        self._order_violation(
                            stop_time.key,
                            "arrival_time",
                            f"Time {current} at stop_sequence {stop_time.stop_sequence} "
                            f"is before the previous stop's {last_time}",
                        )
                    last_time = departure or arrival
                if stop_time.shape_dist_traveled is not None:
                    if last_dist is not None and stop_time.shape_dist_traveled < last_dist:
                        self._order_violation(
                            stop_time.key,
                            "shape_dist_traveled",
                            "shape_dist_traveled decreases along the trip",
                        )
                    last_dist = stop_time.shape_dist_traveled

    def _validate_shape_order(self) -> None:
        by_shape: dict[str, list[ShapePoint]] = defaultdict(list)
        for point in self.shapes.records.values():
            by_shape[point.shape_id].append(point)
        for shape_id, points in by_shape.items():
            points.sort(key=lambda p: p.sequence)
            last_dist: float | None = None
            for point in points:
                if point.dist_traveled is None:
                    continue
                if last_dist is not None and point.dist_traveled < last_dist:
                    self._violation(
                        "shapes",
                        self.shapes.rows[point.key],
                        ErrorKind.ORDER_VIOLATION,
                        "shape_dist_traveled decreases along the shape",
                        shape_id,
                        "shape_dist_traveled",
                    )
                last_dist = point.dist_traveled

    def _finish(self) -> LoadResult:
        per_table_kind = Counter((v.table, v.kind.value) for v in self.report)
        if self.report:
            record_static_load(False, dict(per_table_kind))
            logger.warning(
                "static_feed_invalid",
                violation_count=len(self.report),
                counts=self.report.counts(),
            )
            return LoadResult(feed=None, report=self.report)

        feed = Feed.build(
            agencies=self.agencies.records,
            stops=self.stops.records,
            routes=self.routes.records,
            trips=self.trips.records,
            stop_times=self.stop_times.records.values(),
            calendars=self.calendars.records,
            calendar_dates=self.calendar_dates.records,
            shape_points=self.shapes.records.values(),
        )
        record_static_load(True, {})
        logger.info("static_feed_loaded", **feed.counts())
        return LoadResult(feed=feed, report=self.report)
