"""Prometheus metrics and stage timing for gtfs-feedkit."""

import time
from collections.abc import Iterator
from contextlib import contextmanager

from prometheus_client import Counter, Histogram

from gtfs_feedkit.logging import get_logger

# Common histogram buckets for timing metrics
TIMING_BUCKETS = [0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]

# Realtime decode metrics
decode_total = Counter(
    "gtfs_rt_decode_total",
    "Realtime buffers decoded successfully",
)

decode_errors = Counter(
    "gtfs_rt_decode_errors_total",
    "Realtime buffers rejected",
    ["error_type"],
)

decode_bytes = Histogram(
    "gtfs_rt_decode_bytes",
    "Size of decoded realtime buffers in bytes",
    buckets=[1000, 10000, 50000, 100000, 500000, 1000000, 5000000],
)

decode_entities = Counter(
    "gtfs_rt_decode_entities_total",
    "Feed entities decoded",
    ["payload"],
)

dropped_substructures = Counter(
    "gtfs_rt_dropped_substructures_total",
    "Realtime substructures treated as absent",
    ["message"],
)

# Static load metrics
static_loads = Counter(
    "gtfs_static_loads_total",
    "Static feed load attempts",
    ["outcome"],
)

static_rows = Counter(
    "gtfs_static_rows_total",
    "Static rows read",
    ["table"],
)

static_violations = Counter(
    "gtfs_static_violations_total",
    "Static feed violations found",
    ["table", "kind"],
)

# Stage timing
stage_duration = Histogram(
    "gtfs_stage_duration_seconds",
    "Time spent in a pipeline stage",
    ["stage"],
    buckets=TIMING_BUCKETS,
    unit="seconds",
)


def record_decode_success(byte_count: int, payload_counts: dict[str, int]) -> None:
    """Record a successful realtime decode.

    Args:
        byte_count: Size of the decoded buffer.
        payload_counts: Number of entities per payload kind.
    """
    decode_total.inc()
    decode_bytes.observe(byte_count)
    for payload, count in payload_counts.items():
        decode_entities.labels(payload=payload).inc(count)


def record_decode_error(error_type: str) -> None:
    """Record a rejected realtime buffer.

    Args:
        error_type: Error kind (e.g., "TruncatedMessage").
    """
    decode_errors.labels(error_type=error_type).inc()


def record_dropped(message: str) -> None:
    dropped_substructures.labels(message=message).inc()


def record_static_rows(table: str, count: int) -> None:
    static_rows.labels(table=table).inc(count)


def record_static_load(valid: bool, violation_counts: dict[tuple[str, str], int]) -> None:
    """Record the outcome of a static load.

    Args:
        valid: Whether a Feed was produced.
        violation_counts: Number of violations per (table, kind).
    """
    static_loads.labels(outcome="valid" if valid else "invalid").inc()
    for (table, kind), count in violation_counts.items():
        static_violations.labels(table=table, kind=kind).inc(count)


@contextmanager
def timed_stage(stage: str, profile: bool = False, **context: object) -> Iterator[None]:
    """Time a pipeline stage.

    The duration is always observed in the stage histogram. When `profile` is
    set, it is also logged as a `stage_timing` event in milliseconds.

    Args:
        stage: Stage name (e.g., "realtime_decode", "static_validate").
        profile: Log the timing.
        **context: Extra key/value pairs for the log event.
    """
    start = time.monotonic()
    try:
        yield
    finally:
        elapsed = time.monotonic() - start
        stage_duration.labels(stage=stage).observe(elapsed)
        if profile:
            get_logger(__name__).info(
                "stage_timing",
                stage=stage,
                duration_ms=round(elapsed * 1000, 3),
                **context,
            )
