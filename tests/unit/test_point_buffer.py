"""
Unit Tests for TimeSeriesPoint and PointBuffer
===============================================

Coverage:
- ✅ Point invariants (measurement, fields, tags)
- ✅ Bounded push with BUFFER_FULL result
- ✅ Drain returns live entries only
- ✅ Clear resets the count
"""

import pytest
from datetime import datetime, timezone

from influxstats.core.exceptions import ValidationError
from influxstats.domain.points import (
    PointBuffer,
    Precision,
    PushResult,
    TimeSeriesPoint,
    coerce_field_value
)


def make_point(i: int = 0) -> TimeSeriesPoint:
    return TimeSeriesPoint(
        measurement="cpu",
        timestamp=datetime(2024, 1, 1, 0, 0, i, tzinfo=timezone.utc),
        fields={"load": float(i)},
        tags={"host": "web1"},
    )


@pytest.mark.unit
class TestTimeSeriesPoint:
    """Unit tests for TimeSeriesPoint validation."""

    def test_defaults_to_seconds_precision(self):
        point = make_point()

        assert point.precision == Precision.SECONDS
        assert point.precision.write_precision == "s"

    def test_rejects_empty_measurement(self):
        with pytest.raises(ValidationError, match="measurement must be a non-empty string"):
            TimeSeriesPoint(measurement=" ", timestamp=0, fields={"x": 1.0})

    def test_rejects_empty_fields(self):
        with pytest.raises(ValidationError, match="at least one field"):
            TimeSeriesPoint(measurement="cpu", timestamp=0, fields={})

    def test_rejects_non_string_tags(self):
        with pytest.raises(ValidationError, match="tags must map strings to strings"):
            TimeSeriesPoint(measurement="cpu", timestamp=0, fields={"x": 1.0}, tags={"host": 1})

    def test_to_dict_is_json_friendly(self):
        data = make_point(5).to_dict()

        assert data["measurement"] == "cpu"
        assert data["time"] == "2024-01-01T00:00:05+00:00"
        assert data["precision"] == "s"
        assert data["fields"] == {"load": 5.0}

    def test_coerce_field_value(self):
        assert coerce_field_value("10") == 10.0
        assert coerce_field_value("1.5") == 1.5
        assert coerce_field_value("idle") == "idle"


@pytest.mark.unit
class TestPointBuffer:
    """Unit tests for the fixed-capacity buffer."""

    def test_push_until_full(self):
        """
        Verifies:
        - push returns OK while there is room
        - is_full flips at capacity
        """
        buffer = PointBuffer(capacity=2)

        assert buffer.push(make_point(0)) == PushResult.OK
        assert not buffer.is_full
        assert buffer.push(make_point(1)) == PushResult.OK
        assert buffer.is_full
        assert buffer.count == 2

    def test_overflow_never_grows_count(self):
        """
        Verifies:
        - capacity + 1 pushes keep count at capacity
        - the overflowing point is not stored
        """
        buffer = PointBuffer(capacity=3)
        results = [buffer.push(make_point(i)) for i in range(4)]

        assert results[-1] == PushResult.BUFFER_FULL
        assert buffer.count == 3
        assert len(buffer) == 3
        assert [p.fields["load"] for p in buffer.drain()] == [0.0, 1.0, 2.0]

    def test_clear_resets_count(self):
        buffer = PointBuffer(capacity=3)
        buffer.push(make_point(0))
        buffer.push(make_point(1))

        buffer.clear()

        assert buffer.count == 0
        assert buffer.drain() == ()

    def test_drain_hides_stale_slots(self):
        """
        Verifies:
        - drain does not change the count
        - entries left over from before clear() are never exposed
        """
        buffer = PointBuffer(capacity=3)
        for i in range(3):
            buffer.push(make_point(i))
        buffer.clear()
        buffer.push(make_point(9))

        drained = buffer.drain()

        assert len(drained) == 1
        assert drained[0].fields["load"] == 9.0
        assert buffer.count == 1

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValidationError):
            PointBuffer(capacity=0)
