"""Tests for static and realtime queries."""

from datetime import date
from typing import TYPE_CHECKING

import pytest

from gtfs_feedkit import query
from gtfs_feedkit.realtime import decode_feed_message
from gtfs_feedkit.realtime.models import FeedMessage
from gtfs_feedkit.scalars import Date
from gtfs_feedkit.static.feed import Feed

if TYPE_CHECKING:
    from conftest import ProtoWriter


@pytest.fixture
def mixed_message(pb: "type[ProtoWriter]") -> FeedMessage:
    """Return a message with 3 trip updates, 2 alerts and 1 vehicle, interleaved."""
    data = (
        pb.header(timestamp=1_700_000_000)
        + pb.entity("tu-1", pb.trip_update("T1"))
        + pb.entity("al-1", pb.alert("First alert"))
        + pb.entity("tu-2", pb.trip_update("T2"))
        + pb.entity("vp-1", pb.vehicle("V1"))
        + pb.entity("al-2", pb.alert("Second alert"))
        + pb.entity("tu-3", pb.trip_update("T1"))
    )
    return decode_feed_message(data)


class TestStaticLookups:
    """Tests for id lookups and traversals over a Feed."""

    def test_lookups(self, static_feed: Feed) -> None:
        """Test id lookups return records or None."""
        assert query.get_agency(static_feed, "A1") is not None
        assert query.get_stop(static_feed, "S2") is not None
        assert query.get_route(static_feed, "R1") is not None
        assert query.get_trip(static_feed, "T1") is not None
        assert query.get_calendar(static_feed, "WK") is not None
        assert query.get_trip(static_feed, "T404") is None

    def test_stop_times_for_trip(self, static_feed: Feed) -> None:
        """Test a trip's stop times come back in sequence order."""
        stop_times = query.stop_times_for_trip(static_feed, "T1")
        assert [st.stop_sequence for st in stop_times] == [1, 2, 3]
        assert query.stop_times_for_trip(static_feed, "T404") == ()

    def test_stop_times_at_stop(self, static_feed: Feed) -> None:
        """Test the stop index spans trips."""
        trips = {st.trip_id for st in query.stop_times_at_stop(static_feed, "S3")}
        assert trips == {"T1", "T2"}

    def test_trips_for_route(self, static_feed: Feed) -> None:
        """Test trips grouped by route."""
        assert [t.id for t in query.trips_for_route(static_feed, "R1")] == ["T1", "T2"]

    def test_children_of(self, static_feed: Feed) -> None:
        """Test station children."""
        assert [s.id for s in query.children_of(static_feed, "STA")] == ["S1"]
        assert query.children_of(static_feed, "S2") == ()

    def test_shape_points(self, static_feed: Feed) -> None:
        """Test shape points are ordered by sequence."""
        points = query.shape_points(static_feed, "SH1")
        assert [p.sequence for p in points] == [1, 2, 3]

    def test_feed_is_read_only(self, static_feed: Feed) -> None:
        """Test the feed's tables cannot be mutated."""
        with pytest.raises(TypeError):
            static_feed.stops["X"] = static_feed.stops["S1"]  # type: ignore[index]


class TestServiceCalendar:
    """Tests for service activity on a date."""

    def test_weekday_service(self, static_feed: Feed) -> None:
        """Test the weekly pattern on a regular Wednesday."""
        assert query.active_service_ids(static_feed, Date(2024, 7, 3)) == {"WK"}

    def test_removed_exception(self, static_feed: Feed) -> None:
        """Test a REMOVED calendar date overrides the weekly pattern."""
        assert not query.is_service_active(static_feed, "WK", date(2024, 7, 4))
        assert query.active_service_ids(static_feed, date(2024, 7, 4)) == frozenset()

    def test_added_exception(self, static_feed: Feed) -> None:
        """Test an ADDED calendar date enables a service on a Saturday."""
        assert query.active_service_ids(static_feed, Date(2024, 7, 6)) == {"SAT"}
        assert [t.id for t in query.active_trips(static_feed, Date(2024, 7, 6))] == ["T2"]

    def test_outside_date_range(self, static_feed: Feed) -> None:
        """Test dates past end_date are inactive."""
        assert not query.is_service_active(static_feed, "WK", Date(2025, 1, 1))

    def test_unknown_service(self, static_feed: Feed) -> None:
        """Test an unknown service id is never active."""
        assert not query.is_service_active(static_feed, "NOPE", Date(2024, 7, 3))


class TestEntityViews:
    """Tests for lazy, restartable realtime views."""

    def test_alerts_in_decode_order(self, mixed_message: FeedMessage) -> None:
        """Test filtering for alerts yields exactly the alerts, in order."""
        alerts = list(query.alerts(mixed_message))
        assert len(alerts) == 2
        assert [a.header_text.text() for a in alerts if a.header_text] == [
            "First alert",
            "Second alert",
        ]

    def test_trip_updates_and_vehicles(self, mixed_message: FeedMessage) -> None:
        """Test the other entity kinds."""
        assert [tu.trip.trip_id for tu in query.trip_updates(mixed_message)] == ["T1", "T2", "T1"]
        assert query.vehicle_positions(mixed_message).count() == 1

    def test_views_are_restartable(self, mixed_message: FeedMessage) -> None:
        """Test a view can be iterated repeatedly with the same result."""
        view = query.trip_updates(mixed_message)
        assert list(view) == list(view)
        assert view.count() == 3

    def test_views_are_lazy(self, mixed_message: FeedMessage) -> None:
        """Test iteration is incremental."""
        iterator = iter(query.alerts(mixed_message))
        first = next(iterator)
        assert first.header_text is not None
        assert first.header_text.text() == "First alert"

    def test_entities_where(self, mixed_message: FeedMessage) -> None:
        """Test predicate filtering keeps decode order."""
        view = query.entities_where(mixed_message, lambda e: e.id.startswith("tu-"))
        assert [e.id for e in view] == ["tu-1", "tu-2", "tu-3"]
        assert not query.entities_where(mixed_message, lambda e: e.is_deleted)

    def test_find_trip_updates(self, mixed_message: FeedMessage) -> None:
        """Test lookup of updates for one trip."""
        assert query.find_trip_updates(mixed_message, "T1").count() == 2
        assert query.find_trip_updates(mixed_message, "T404").first() is None

    def test_get_entity(self, mixed_message: FeedMessage) -> None:
        """Test lookup of an entity by id."""
        entity = query.get_entity(mixed_message, "vp-1")
        assert entity is not None
        assert entity.vehicle is not None
        assert query.get_entity(mixed_message, "missing") is None
