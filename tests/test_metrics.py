"""Tests for metrics and stage timing."""

from prometheus_client import REGISTRY
from structlog.testing import capture_logs

from gtfs_feedkit.metrics import record_static_load, timed_stage


def sample(name: str, labels: dict[str, str] | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestTimedStage:
    """Tests for the timed_stage context manager."""

    def test_observes_duration(self) -> None:
        """Test the stage histogram counts every timed block."""
        before = sample("gtfs_stage_duration_seconds_count", {"stage": "unit_test"})
        with timed_stage("unit_test"):
            pass
        after = sample("gtfs_stage_duration_seconds_count", {"stage": "unit_test"})
        assert after == before + 1

    def test_logs_when_profiling(self) -> None:
        """Test a stage_timing event is logged only when profiling."""
        with capture_logs() as logs:
            with timed_stage("quiet"):
                pass
            with timed_stage("loud", profile=True, table="stops"):
                pass

        timings = [log for log in logs if log["event"] == "stage_timing"]
        assert len(timings) == 1
        assert timings[0]["stage"] == "loud"
        assert timings[0]["table"] == "stops"
        assert timings[0]["duration_ms"] >= 0

    def test_observes_on_error(self) -> None:
        """Test the duration is recorded when the block raises."""
        before = sample("gtfs_stage_duration_seconds_count", {"stage": "failing"})
        try:
            with timed_stage("failing"):
                raise ValueError("boom")
        except ValueError:
            pass
        after = sample("gtfs_stage_duration_seconds_count", {"stage": "failing"})
        assert after == before + 1


class TestRecordStaticLoad:
    """Tests for static load counters."""

    def test_counts_outcome_and_violations(self) -> None:
        """Test outcome and per-kind violation counters."""
        labels = {"table": "stops", "kind": "MalformedScalar"}
        before_invalid = sample("gtfs_static_loads_total", {"outcome": "invalid"})
        before_violations = sample("gtfs_static_violations_total", labels)

        record_static_load(False, {("stops", "MalformedScalar"): 3})

        assert sample("gtfs_static_loads_total", {"outcome": "invalid"}) == before_invalid + 1
        assert sample("gtfs_static_violations_total", labels) == before_violations + 3
