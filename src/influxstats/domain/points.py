"""
Measurement Points and Point Buffer
===================================

TimeSeriesPoint holds one pending measurement. PointBuffer keeps a fixed
number of them until the writer hands the batch to the database.

The buffer never grows: push() reports BUFFER_FULL instead of appending, and
the caller decides whether to flush, drop or raise.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from influxdb_client import WritePrecision

from influxstats.core.exceptions import ValidationError

FieldValue = Union[float, str]


class Precision(str, Enum):
    """Timestamp unit used when encoding a point for write."""
    SECONDS = "s"
    MILLISECONDS = "ms"
    MICROSECONDS = "us"
    NANOSECONDS = "ns"

    @property
    def write_precision(self) -> str:
        """Matching influxdb-client WritePrecision constant."""
        return {
            Precision.SECONDS: WritePrecision.S,
            Precision.MILLISECONDS: WritePrecision.MS,
            Precision.MICROSECONDS: WritePrecision.US,
            Precision.NANOSECONDS: WritePrecision.NS,
        }[self]


class PushResult(str, Enum):
    """Outcome of PointBuffer.push()."""
    OK = "ok"
    BUFFER_FULL = "buffer_full"


@dataclass(frozen=True)
class TimeSeriesPoint:
    """A single measurement waiting to be written."""

    measurement: str
    timestamp: Union[datetime, int]
    fields: Dict[str, FieldValue]
    tags: Dict[str, str] = field(default_factory=dict)
    precision: Precision = Precision.SECONDS

    def __post_init__(self):
        if not self.measurement or not self.measurement.strip():
            raise ValidationError("measurement", self.measurement, "measurement must be a non-empty string")
        if not self.fields:
            raise ValidationError("fields", self.fields, "a point needs at least one field")
        for key, value in self.tags.items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise ValidationError("tags", self.tags, "tags must map strings to strings")

    def to_dict(self) -> Dict:
        """JSON-friendly representation, used when dumping rejected batches."""
        timestamp = self.timestamp.isoformat() if isinstance(self.timestamp, datetime) else self.timestamp
        return {
            "measurement": self.measurement,
            "time": timestamp,
            "precision": self.precision.value,
            "tags": dict(self.tags),
            "fields": dict(self.fields),
        }


def coerce_field_value(raw: str) -> FieldValue:
    """Turn a textual field into a float when it parses as one, else keep the text."""
    try:
        return float(raw)
    except (TypeError, ValueError):
        return raw


class PointBuffer:
    """
    Fixed-capacity, array-backed buffer of pending points.

    Not thread-safe: one buffer per producer.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValidationError("capacity", capacity, "buffer capacity must be at least 1")
        self._capacity = capacity
        self._slots: List[Optional[TimeSeriesPoint]] = [None] * capacity
        self._count = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def count(self) -> int:
        return self._count

    @property
    def is_full(self) -> bool:
        return self._count == self._capacity

    def push(self, point: TimeSeriesPoint) -> PushResult:
        """Append a point, or report BUFFER_FULL and leave the buffer untouched."""
        if self.is_full:
            return PushResult.BUFFER_FULL
        self._slots[self._count] = point
        self._count += 1
        return PushResult.OK

    def drain(self) -> Tuple[TimeSeriesPoint, ...]:
        """Live entries in insertion order. The count is unchanged until clear()."""
        return tuple(self._slots[:self._count])

    def clear(self) -> None:
        # Slots past the count are stale and get overwritten by the next push
        self._count = 0

    def __len__(self) -> int:
        return self._count

    def __repr__(self):
        return f"PointBuffer(count={self._count}, capacity={self._capacity})"
