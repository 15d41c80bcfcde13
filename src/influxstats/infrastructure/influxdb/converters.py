"""
InfluxDB Result Converters
==========================

Turns raw query results into DataSet and TextSet values.

A raw result is the list of series blocks returned by the /query endpoint:

    [
        {
            "name": "cpu",
            "tags": {"host": "server01"},
            "columns": ["time", "usage_user", "usage_system"],
            "values": [["2024-01-01T00:00:00Z", 12.5, 3.1], ...]
        }
    ]

Column 0 is always the timestamp. Conversion is best effort by default: a
value that cannot be parsed becomes 0.0 (or ZERO_INSTANT for timestamps) and
the rest of the batch is kept. ParsePolicy.STRICT raises MalformedRowError
instead.
"""

import logging
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from influxstats.core.exceptions import MalformedRowError
from influxstats.domain.datasets import DataSet, TextSet, ZERO_INSTANT

logger = logging.getLogger(__name__)

RawResult = Sequence[Dict[str, Any]]

# Python datetimes stop at microseconds; InfluxDB returns up to nanoseconds
_FRACTION_RE = re.compile(r"\.(\d{6})\d+")


class ParsePolicy(str, Enum):
    """What to do with a value that cannot be parsed."""
    ZERO_FILL = "zero_fill"
    STRICT = "strict"


def parse_timestamp(raw: Any) -> datetime:
    """
    Parse an RFC3339 timestamp or a numeric epoch (seconds).

    Raises:
        ValueError: If the value is not a timestamp
    """
    if isinstance(raw, bool):
        raise ValueError(f"not a timestamp: {raw!r}")
    if isinstance(raw, (int, float)):
        try:
            return datetime.fromtimestamp(raw, tz=timezone.utc)
        except (OverflowError, OSError) as e:
            raise ValueError(f"epoch out of range: {raw!r}") from e
    if not isinstance(raw, str):
        raise ValueError(f"not a timestamp: {raw!r}")

    text = _FRACTION_RE.sub(r".\1", raw.strip())
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_value(raw: Any) -> float:
    """
    Parse a field value as float. None is 0.0.

    Raises:
        ValueError: If the value is not numeric
    """
    if raw is None:
        return 0.0
    try:
        return float(raw)
    except (TypeError, ValueError) as e:
        raise ValueError(f"not a number: {raw!r}") from e


class ResultConverter:
    """Converts raw series blocks into value objects."""

    def __init__(self, policy: ParsePolicy = ParsePolicy.ZERO_FILL):
        self.policy = ParsePolicy(policy)

    def convert_to_dataset(self, result: Optional[RawResult]) -> List[DataSet]:
        """
        One DataSet per series block that has rows.

        Empty results produce an empty list.

        Raises:
            MalformedRowError: Only with ParsePolicy.STRICT
        """
        datasets = []
        for block in result or ():
            values = block.get("values") or []
            if not values:
                continue
            datasets.append(self._convert_block(block, values))
        return datasets

    def _convert_block(self, block: Dict[str, Any], rows: List[Sequence[Any]]) -> DataSet:
        name = block.get("name", "")
        columns = list(block.get("columns") or [])
        fields = columns[1:]

        timestamps = []
        series: Dict[str, List[float]] = {f: [] for f in fields}

        for i, row in enumerate(rows):
            raw_time = row[0] if row else None
            try:
                timestamps.append(parse_timestamp(raw_time))
            except ValueError:
                self._on_malformed(name, i, columns[0] if columns else "time", raw_time)
                timestamps.append(ZERO_INSTANT)

            for j, field in enumerate(fields, start=1):
                # Short rows zero-fill the missing columns
                raw = row[j] if j < len(row) else None
                try:
                    series[field].append(parse_value(raw))
                except ValueError:
                    self._on_malformed(name, i, field, raw)
                    series[field].append(0.0)

        return DataSet(name=name, timestamps=timestamps, series=series, tags=block.get("tags") or {})

    def _on_malformed(self, series: str, row: int, column: str, value: Any) -> None:
        if self.policy == ParsePolicy.STRICT:
            raise MalformedRowError(series, row, column, value)
        logger.warning(f"⚠️ Malformed value in {series} row {row} column {column}: {value!r}, using zero")

    def convert_to_textset(self, result: Optional[RawResult]) -> Optional[TextSet]:
        """
        Flatten the first series block into a list of strings.

        Returns None for an empty result.
        """
        if not result:
            return None

        block = result[0]
        textset = TextSet(name=block.get("name", ""), tags=dict(block.get("tags") or {}))
        for row in block.get("values") or []:
            for value in row:
                if value is not None:
                    textset.values.append(str(value))
        return textset


def convert_to_dataset(result: Optional[RawResult], policy: ParsePolicy = ParsePolicy.ZERO_FILL) -> List[DataSet]:
    return ResultConverter(policy).convert_to_dataset(result)


def convert_to_textset(result: Optional[RawResult]) -> Optional[TextSet]:
    return ResultConverter().convert_to_textset(result)
