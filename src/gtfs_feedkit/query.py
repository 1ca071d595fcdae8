"""Read-only queries over a built Feed or FeedMessage.

Every function here is pure. Sequence-returning functions hand back an
EntityView, a fresh iterable that re-walks the immutable source on each
iteration, so the same view can be consumed any number of times.
"""

from collections.abc import Callable, Iterator
from datetime import date as _date
from typing import Generic, TypeAlias, TypeVar

from gtfs_feedkit.realtime.models import (
    Alert,
    FeedEntity,
    FeedMessage,
    TripUpdate,
    VehiclePosition,
)
from gtfs_feedkit.scalars import Date
from gtfs_feedkit.static.enums import ExceptionType
from gtfs_feedkit.static.feed import Feed
from gtfs_feedkit.static.models import (
    Agency,
    Calendar,
    Route,
    ShapePoint,
    Stop,
    StopTime,
    Trip,
)

EntityPredicate: TypeAlias = Callable[[FeedEntity], bool]

T = TypeVar("T")


class EntityView(Generic[T]):
    """Lazy, restartable view over the entities of a FeedMessage.

    Iteration preserves decode order. Nothing is copied or cached.
    """

    def __init__(self, message: FeedMessage, select: Callable[[FeedEntity], T | None]) -> None:
        self._message = message
        self._select = select

    def __iter__(self) -> Iterator[T]:
        for entity in self._message.entities:
            item = self._select(entity)
            if item is not None:
                yield item

    def first(self) -> T | None:
        return next(iter(self), None)

    def count(self) -> int:
        return sum(1 for _ in self)

    def __bool__(self) -> bool:
        return self.first() is not None


# Static lookups


def get_agency(feed: Feed, agency_id: str) -> Agency | None:
    return feed.agencies.get(agency_id)


def get_stop(feed: Feed, stop_id: str) -> Stop | None:
    return feed.stops.get(stop_id)


def get_route(feed: Feed, route_id: str) -> Route | None:
    return feed.routes.get(route_id)


def get_trip(feed: Feed, trip_id: str) -> Trip | None:
    return feed.trips.get(trip_id)


def get_calendar(feed: Feed, service_id: str) -> Calendar | None:
    return feed.calendars.get(service_id)


def stop_times_for_trip(feed: Feed, trip_id: str) -> tuple[StopTime, ...]:
    """StopTimes of a trip ordered by stop_sequence; empty for unknown trips."""
    return feed.stop_times_by_trip.get(trip_id, ())


def stop_times_at_stop(feed: Feed, stop_id: str) -> tuple[StopTime, ...]:
    return feed.stop_times_by_stop.get(stop_id, ())


def trips_for_route(feed: Feed, route_id: str) -> tuple[Trip, ...]:
    return feed.trips_by_route.get(route_id, ())


def children_of(feed: Feed, stop_id: str) -> tuple[Stop, ...]:
    """Stops whose parent_station is `stop_id`."""
    return feed.children_by_parent.get(stop_id, ())


def shape_points(feed: Feed, shape_id: str) -> tuple[ShapePoint, ...]:
    return feed.shapes.get(shape_id, ())


# Service calendar


def _as_date(day: Date | _date) -> Date:
    return day if isinstance(day, Date) else Date.from_date(day)


def is_service_active(feed: Feed, service_id: str, day: Date | _date) -> bool:
    """Whether a service runs on `day`.

    A calendar_dates exception for the day wins over the weekly pattern:
    ADDED turns the service on, REMOVED turns it off.
    """
    day = _as_date(day)
    exception = feed.calendar_dates.get((service_id, day))
    if exception is not None:
        return exception.exception_type == ExceptionType.ADDED
    calendar = feed.calendars.get(service_id)
    return calendar is not None and calendar.covers(day)


def active_service_ids(feed: Feed, day: Date | _date) -> frozenset[str]:
    """All service ids running on `day`."""
    day = _as_date(day)
    return frozenset(sid for sid in feed.service_ids if is_service_active(feed, sid, day))


def active_trips(feed: Feed, day: Date | _date) -> tuple[Trip, ...]:
    """Trips whose service runs on `day`, grouped by service id."""
    return tuple(
        trip
        for service_id in sorted(active_service_ids(feed, day))
        for trip in feed.trips_by_service.get(service_id, ())
    )


# Realtime views


def trip_updates(message: FeedMessage) -> EntityView[TripUpdate]:
    return EntityView(message, lambda e: e.trip_update)


def vehicle_positions(message: FeedMessage) -> EntityView[VehiclePosition]:
    return EntityView(message, lambda e: e.vehicle)


def alerts(message: FeedMessage) -> EntityView[Alert]:
    return EntityView(message, lambda e: e.alert)


def entities_where(message: FeedMessage, predicate: EntityPredicate) -> EntityView[FeedEntity]:
    """Entities matching `predicate`, in decode order."""
    return EntityView(message, lambda e: e if predicate(e) else None)


def find_trip_updates(message: FeedMessage, trip_id: str) -> EntityView[TripUpdate]:
    """TripUpdates whose trip descriptor names `trip_id`."""

    def select(entity: FeedEntity) -> TripUpdate | None:
        update = entity.trip_update
        if update is not None and update.trip.trip_id == trip_id:
            return update
        return None

    return EntityView(message, select)


def get_entity(message: FeedMessage, entity_id: str) -> FeedEntity | None:
    """First entity carrying `entity_id`."""
    return entities_where(message, lambda e: e.id == entity_id).first()
