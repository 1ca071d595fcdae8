"""Shared pytest fixtures for gtfs-feedkit tests."""

import struct
from pathlib import Path
from typing import TypeAlias

import pytest
from google.transit import gtfs_realtime_pb2

from gtfs_feedkit.static.feed import Feed
from gtfs_feedkit.static.loader import load_feed

Tables: TypeAlias = dict[str, list[dict[str, str]]]


class ProtoWriter:
    """Minimal protobuf encoder for hand-built (and deliberately broken) buffers."""

    @staticmethod
    def varint(value: int) -> bytes:
        value &= 0xFFFFFFFFFFFFFFFF
        out = bytearray()
        while True:
            byte = value & 0x7F
            value >>= 7
            if value:
                out.append(byte | 0x80)
            else:
                out.append(byte)
                return bytes(out)

    @classmethod
    def tag(cls, number: int, wire_type: int) -> bytes:
        return cls.varint((number << 3) | wire_type)

    @classmethod
    def uint(cls, number: int, value: int) -> bytes:
        return cls.tag(number, 0) + cls.varint(value)

    @classmethod
    def bytes_field(cls, number: int, payload: bytes) -> bytes:
        return cls.tag(number, 2) + cls.varint(len(payload)) + payload

    @classmethod
    def string(cls, number: int, text: str) -> bytes:
        return cls.bytes_field(number, text.encode("utf-8"))

    @classmethod
    def float32(cls, number: int, value: float) -> bytes:
        return cls.tag(number, 5) + struct.pack("<f", value)

    @classmethod
    def double(cls, number: int, value: float) -> bytes:
        return cls.tag(number, 1) + struct.pack("<d", value)

    @classmethod
    def message(cls, number: int, *parts: bytes) -> bytes:
        return cls.bytes_field(number, b"".join(parts))

    @classmethod
    def header(cls, version: str = "2.0", timestamp: int | None = None) -> bytes:
        parts = [cls.string(1, version)]
        if timestamp is not None:
            parts.append(cls.uint(3, timestamp))
        return cls.message(1, *parts)

    @classmethod
    def entity(cls, entity_id: str, *parts: bytes) -> bytes:
        return cls.message(2, cls.string(1, entity_id), *parts)

    @classmethod
    def trip_update(cls, trip_id: str, *parts: bytes) -> bytes:
        return cls.message(3, cls.message(1, cls.string(1, trip_id)), *parts)

    @classmethod
    def vehicle(cls, vehicle_id: str, *parts: bytes) -> bytes:
        return cls.message(4, cls.message(8, cls.string(1, vehicle_id)), *parts)

    @classmethod
    def alert(cls, header_text: str, *parts: bytes) -> bytes:
        text = cls.message(10, cls.message(1, cls.string(1, header_text)))
        return cls.message(5, text, *parts)


@pytest.fixture
def pb() -> type[ProtoWriter]:
    """Return the protobuf writer helper."""
    return ProtoWriter


@pytest.fixture
def reference_feed_bytes() -> bytes:
    """Return a FeedMessage serialized by the official protobuf bindings."""
    message = gtfs_realtime_pb2.FeedMessage()
    message.header.gtfs_realtime_version = "2.0"
    message.header.incrementality = gtfs_realtime_pb2.FeedHeader.FULL_DATASET
    message.header.timestamp = 1_700_000_000

    trip_entity = message.entity.add()
    trip_entity.id = "tu-1"
    trip_update = trip_entity.trip_update
    trip_update.trip.trip_id = "T1"
    trip_update.trip.route_id = "R1"
    trip_update.trip.start_date = "20240102"
    trip_update.trip.schedule_relationship = gtfs_realtime_pb2.TripDescriptor.SCHEDULED
    trip_update.timestamp = 1_700_000_010
    trip_update.delay = -30
    first = trip_update.stop_time_update.add()
    first.stop_sequence = 1
    first.stop_id = "S1"
    first.arrival.delay = -30
    first.arrival.time = 1_700_000_100
    second = trip_update.stop_time_update.add()
    second.stop_sequence = 2
    second.stop_id = "S2"
    second.departure.delay = 45
    second.schedule_relationship = gtfs_realtime_pb2.TripUpdate.StopTimeUpdate.SKIPPED

    vehicle_entity = message.entity.add()
    vehicle_entity.id = "vp-1"
    vehicle = vehicle_entity.vehicle
    vehicle.trip.trip_id = "T1"
    vehicle.vehicle.id = "bus-42"
    vehicle.vehicle.label = "42"
    vehicle.position.latitude = 39.5
    vehicle.position.longitude = -75.25
    vehicle.position.bearing = 90.0
    vehicle.position.speed = 12.5
    vehicle.current_stop_sequence = 2
    vehicle.current_status = gtfs_realtime_pb2.VehiclePosition.STOPPED_AT
    vehicle.timestamp = 1_700_000_020
    vehicle.occupancy_status = gtfs_realtime_pb2.VehiclePosition.FEW_SEATS_AVAILABLE

    alert_entity = message.entity.add()
    alert_entity.id = "al-1"
    alert = alert_entity.alert
    period = alert.active_period.add()
    period.start = 1_700_000_000
    period.end = 1_700_003_600
    informed = alert.informed_entity.add()
    informed.route_id = "R1"
    alert.cause = gtfs_realtime_pb2.Alert.CONSTRUCTION
    alert.effect = gtfs_realtime_pb2.Alert.DETOUR
    english = alert.header_text.translation.add()
    english.text = "Detour on Route 1"
    english.language = "en"
    spanish = alert.header_text.translation.add()
    spanish.text = "Desvío en la Ruta 1"
    spanish.language = "es"

    return message.SerializeToString()


@pytest.fixture
def static_tables() -> Tables:
    """Return a small, valid static feed as tokenized rows."""
    return {
        "agency": [
            {
                "agency_id": "A1",
                "agency_name": "Test Transit",
                "agency_url": "https://transit.example.com",
                "agency_timezone": "America/New_York",
                "agency_lang": "en",
            },
        ],
        "stops": [
            {
                "stop_id": "STA",
                "stop_name": "Central Station",
                "stop_lat": "39.9526",
                "stop_lon": "-75.1652",
                "location_type": "1",
                "parent_station": "",
            },
            {
                "stop_id": "S1",
                "stop_name": "Central Platform 1",
                "stop_lat": "39.9527",
                "stop_lon": "-75.1653",
                "location_type": "0",
                "parent_station": "STA",
            },
            {
                "stop_id": "S2",
                "stop_name": "Market St",
                "stop_lat": "39.9500",
                "stop_lon": "-75.1600",
                "location_type": "",
                "parent_station": "",
            },
            {
                "stop_id": "S3",
                "stop_name": "Airport",
                "stop_lat": "39.8744",
                "stop_lon": "-75.2424",
                "location_type": "",
                "parent_station": "",
            },
        ],
        "routes": [
            {
                "route_id": "R1",
                "agency_id": "",
                "route_short_name": "1",
                "route_long_name": "Airport Line",
                "route_type": "3",
                "route_color": "ff0000",
            },
        ],
        "calendar": [
            {
                "service_id": "WK",
                "monday": "1",
                "tuesday": "1",
                "wednesday": "1",
                "thursday": "1",
                "friday": "1",
                "saturday": "0",
                "sunday": "0",
                "start_date": "20240101",
                "end_date": "20241231",
            },
        ],
        "calendar_dates": [
            {"service_id": "WK", "date": "20240704", "exception_type": "2"},
            {"service_id": "SAT", "date": "20240706", "exception_type": "1"},
        ],
        "shapes": [
            {
                "shape_id": "SH1",
                "shape_pt_lat": "39.9527",
                "shape_pt_lon": "-75.1653",
                "shape_pt_sequence": "1",
                "shape_dist_traveled": "0",
            },
            {
                "shape_id": "SH1",
                "shape_pt_lat": "39.9500",
                "shape_pt_lon": "-75.1600",
                "shape_pt_sequence": "2",
                "shape_dist_traveled": "0.6",
            },
            {
                "shape_id": "SH1",
                "shape_pt_lat": "39.8744",
                "shape_pt_lon": "-75.2424",
                "shape_pt_sequence": "3",
                "shape_dist_traveled": "11.2",
            },
        ],
        "trips": [
            {"route_id": "R1", "service_id": "WK", "trip_id": "T1", "shape_id": "SH1"},
            {"route_id": "R1", "service_id": "SAT", "trip_id": "T2", "direction_id": "1"},
        ],
        "stop_times": [
            # Deliberately out of sequence order
            {
                "trip_id": "T1",
                "arrival_time": "08:10:00",
                "departure_time": "08:11:00",
                "stop_id": "S2",
                "stop_sequence": "2",
            },
            {
                "trip_id": "T1",
                "arrival_time": "08:00:00",
                "departure_time": "08:00:00",
                "stop_id": "S1",
                "stop_sequence": "1",
            },
            {
                "trip_id": "T1",
                "arrival_time": "08:30:00",
                "departure_time": "08:30:00",
                "stop_id": "S3",
                "stop_sequence": "3",
            },
            {
                "trip_id": "T2",
                "arrival_time": "25:00:00",
                "departure_time": "25:00:00",
                "stop_id": "S3",
                "stop_sequence": "1",
            },
            {
                "trip_id": "T2",
                "arrival_time": "25:40:00",
                "departure_time": "25:40:00",
                "stop_id": "S1",
                "stop_sequence": "5",
            },
        ],
    }


@pytest.fixture
def static_feed(static_tables: Tables) -> Feed:
    """Return the loaded sample static feed."""
    return load_feed(static_tables)


@pytest.fixture
def sample_options_yaml() -> str:
    """Return sample options.yaml content."""
    return """
decode:
  max_buffer_bytes: 1048576
  max_depth: 16
  dropped_policy: collect

load:
  strict_enums: false
  require_shapes: true

sources:
  - name: trips
    url: https://example.com/gtfs-rt/trips.pb
    timeout_seconds: 10
    headers:
      x-api-key: secret
  - name: vehicles
    url: https://example.com/gtfs-rt/vehicles.pb?format=pb
    query:
      api_key: abc123
"""


@pytest.fixture
def sample_options_file(tmp_path: Path, sample_options_yaml: str) -> Path:
    """Create a temporary options.yaml file."""
    options_file = tmp_path / "options.yaml"
    options_file.write_text(sample_options_yaml)
    return options_file
