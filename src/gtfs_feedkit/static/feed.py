"""Immutable static feed aggregate with derived indices."""

from collections import defaultdict
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TypeVar

from gtfs_feedkit.scalars import Date
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


K = TypeVar("K")
V = TypeVar("V")


def _freeze(mapping: Mapping[K, V]) -> Mapping[K, V]:
    return MappingProxyType(dict(mapping))


def _group(items: Iterable[V], key_of: Callable[[V], K]) -> Mapping[K, tuple[V, ...]]:
    groups: dict[K, list[V]] = defaultdict(list)
    for item in items:
        groups[key_of(item)].append(item)
    return MappingProxyType({k: tuple(v) for k, v in groups.items()})


@dataclass(frozen=True)
class Feed:
    """A fully validated static feed.

    Entity tables are read-only id-keyed mappings. Reverse indices map a parent
    id to an ordered tuple of children; StopTimes and ShapePoints are sorted by
    sequence.
    """

    agencies: Mapping[str, Agency]
    stops: Mapping[str, Stop]
    routes: Mapping[str, Route]
    trips: Mapping[str, Trip]
    calendars: Mapping[str, Calendar]
    calendar_dates: Mapping[tuple[str, Date], CalendarDate]
    shapes: Mapping[str, tuple[ShapePoint, ...]]
    stop_times_by_trip: Mapping[str, tuple[StopTime, ...]]
    trips_by_route: Mapping[str, tuple[Trip, ...]]
    trips_by_service: Mapping[str, tuple[Trip, ...]]
    stop_times_by_stop: Mapping[str, tuple[StopTime, ...]]
    children_by_parent: Mapping[str, tuple[Stop, ...]]
    exceptions_by_service: Mapping[str, tuple[CalendarDate, ...]]
    service_ids: frozenset[str]

    @classmethod
    def build(
        cls,
        agencies: Mapping[str, Agency],
        stops: Mapping[str, Stop],
        routes: Mapping[str, Route],
        trips: Mapping[str, Trip],
        stop_times: Iterable[StopTime],
        calendars: Mapping[str, Calendar],
        calendar_dates: Mapping[tuple[str, Date], CalendarDate],
        shape_points: Iterable[ShapePoint],
    ) -> "Feed":
        """Build the aggregate and its indices from validated records."""
        ordered_stop_times = sorted(stop_times, key=lambda st: (st.trip_id, st.stop_sequence))
        ordered_points = sorted(shape_points, key=lambda p: (p.shape_id, p.sequence))

        return cls(
            agencies=_freeze(agencies),
            stops=_freeze(stops),
            routes=_freeze(routes),
            trips=_freeze(trips),
            calendars=_freeze(calendars),
            calendar_dates=_freeze(calendar_dates),
            shapes=_group(ordered_points, lambda p: p.shape_id),
            stop_times_by_trip=_group(ordered_stop_times, lambda st: st.trip_id),
            trips_by_route=_group(trips.values(), lambda t: t.route_id),
            trips_by_service=_group(trips.values(), lambda t: t.service_id),
            stop_times_by_stop=_group(ordered_stop_times, lambda st: st.stop_id),
            children_by_parent=_group(
                (s for s in stops.values() if s.parent_station is not None),
                lambda s: s.parent_station,
            ),
            exceptions_by_service=_group(
                sorted(calendar_dates.values(), key=lambda cd: (cd.service_id, cd.date)),
                lambda cd: cd.service_id,
            ),
            service_ids=frozenset(calendars) | frozenset(sid for sid, _ in calendar_dates),
        )

    def counts(self) -> dict[str, int]:
        """Number of records per table."""
        return {
            "agency": len(self.agencies),
            "stops": len(self.stops),
            "routes": len(self.routes),
            "trips": len(self.trips),
            "stop_times": sum(len(v) for v in self.stop_times_by_trip.values()),
            "calendar": len(self.calendars),
            "calendar_dates": len(self.calendar_dates),
            "shapes": sum(len(v) for v in self.shapes.values()),
        }
