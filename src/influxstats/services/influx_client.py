"""
InfluxClient Service
====================

Façade over the point buffer, query builder, result converter and statistics
engine. The database itself is reached through a QueryExecutor.

Handles:
- Buffered point ingestion with an explicit overflow policy
- Batched writes (buffer cleared only after a successful write)
- Query composition and conversion into DataSets
- Descriptive statistics over query results

Usage:
    from influxstats import InfluxClient, FilterSet

    with InfluxClient(database="metrics") as client:
        client.add_point("cpu", datetime.now(timezone.utc), {"load": 0.42}, {"host": "web1"})
        client.write_points()

        datasets = client.read_points(["load"], "cpu", filters=FilterSet().add("host", "web1"))
        stats = client.build_stats(datasets).field_sort("max")
"""

import dataclasses
import json
import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Union

from tenacity import (
    Retrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log
)

from influxstats.core.config import settings
from influxstats.core.exceptions import (
    BufferFullError,
    InfluxConnectionError,
    MarshalError
)
from influxstats.core.logging_config import PerformanceLogger
from influxstats.domain.datasets import DataSet, TextSet
from influxstats.domain.points import (
    FieldValue,
    PointBuffer,
    Precision,
    PushResult,
    TimeSeriesPoint,
    coerce_field_value
)
from influxstats.domain.statistics import DataStats, StatisticsEngine
from influxstats.infrastructure.influxdb.client import get_influxdb_executor
from influxstats.infrastructure.influxdb.converters import ParsePolicy, ResultConverter
from influxstats.infrastructure.influxdb.executor import Consistency, PingResult, QueryExecutor
from influxstats.infrastructure.influxdb.queries import FilterSet, build_query, show_measurements_query

logger = logging.getLogger(__name__)

OVERFLOW_DROP = "drop"
OVERFLOW_RAISE = "raise"


def marshal_points(points: Sequence[TimeSeriesPoint]) -> str:
    """
    Serialize a batch to JSON for diagnostics.

    Raises:
        MarshalError: If a point holds a value JSON cannot encode
    """
    try:
        return json.dumps([p.to_dict() for p in points], ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise MarshalError(str(e)) from e


class InfluxClient:
    """
    Client for buffered writes, filtered reads and statistics.

    Single-threaded: use one instance per producer.
    """

    def __init__(
        self,
        executor: Optional[QueryExecutor] = None,
        database: Optional[str] = None,
        retention_policy: Optional[str] = None,
        consistency: Union[Consistency, str, None] = None,
        capacity: Optional[int] = None,
        overflow_policy: Optional[str] = None,
        parse_policy: Union[ParsePolicy, str, None] = None,
        label: Optional[str] = None,
        debug: Optional[bool] = None,
        retry_attempts: Optional[int] = None,
        retry_wait: float = 1.0
    ):
        """
        Initialize the client. Unset arguments fall back to settings.

        Args:
            executor: Database transport (defaults to the global InfluxDBExecutor)
            database: Database for reads and writes
            retention_policy: Retention policy for writes ("" = database default)
            consistency: Write consistency level
            capacity: Point buffer capacity
            overflow_policy: "drop" (warn and discard) or "raise" (BufferFullError)
            parse_policy: How malformed result values are handled
            label: Prefix for written measurements (<label>_<measurement>)
            debug: Log every built query at INFO level
            retry_attempts: Attempts per executor call on connection errors (1 = no retry)
            retry_wait: Exponential backoff multiplier in seconds
        """
        self.executor = executor or get_influxdb_executor()
        self.database = database or settings.INFLUXDB_DATABASE
        self.retention_policy = (
            retention_policy if retention_policy is not None else settings.INFLUXDB_RETENTION_POLICY
        )
        self.consistency = Consistency(consistency or settings.INFLUXDB_CONSISTENCY)
        self.overflow_policy = overflow_policy or settings.BUFFER_OVERFLOW_POLICY
        if self.overflow_policy not in (OVERFLOW_DROP, OVERFLOW_RAISE):
            raise ValueError(f"Unknown overflow policy: {self.overflow_policy}")
        self.label = label if label is not None else settings.MEASUREMENT_LABEL
        self.debug = settings.QUERY_DEBUG if debug is None else debug
        self.retry_attempts = retry_attempts or settings.RETRY_ATTEMPTS
        self.retry_wait = retry_wait

        self.buffer = PointBuffer(capacity or settings.POINT_BUFFER_CAPACITY)
        self.converter = ResultConverter(parse_policy or settings.PARSE_ERROR_POLICY)
        self.stats_engine = StatisticsEngine()
        self._columns: Dict[str, List[str]] = {}

    def set_debug(self, debug: bool) -> None:
        self.debug = debug

    def _call(self, fn, *args):
        """Run an executor call, retrying connection errors if configured."""
        retryer = Retrying(
            stop=stop_after_attempt(max(1, self.retry_attempts)),
            wait=wait_exponential(multiplier=self.retry_wait, max=10),
            retry=retry_if_exception_type(InfluxConnectionError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True
        )
        return retryer(fn, *args)

    # =================================================================
    # DATABASES
    # =================================================================

    def create_db(self, name: str) -> None:
        self._call(self.executor.create_database, name)

    def drop_db(self, name: str) -> None:
        self._call(self.executor.drop_database, name)

    def show_db(self) -> List[str]:
        return self._call(self.executor.list_databases)

    def exist_db(self, name: str) -> bool:
        """True if the database exists. Executor errors propagate."""
        return name in self.show_db()

    def ping(self) -> PingResult:
        return self._call(self.executor.ping)

    # =================================================================
    # COLUMN DEFINITIONS
    # =================================================================

    def define_columns(self, measurement: str, columns: Sequence[str]) -> None:
        """Register the ordered field names used by add_row()."""
        self._columns[measurement] = list(columns)

    def get_columns(self, measurement: str) -> List[str]:
        return list(self._columns.get(measurement, []))

    def get_filtered_columns(self, measurement: str, substring: str) -> List[str]:
        """Defined columns whose name contains substring."""
        return [c for c in self._columns.get(measurement, []) if substring in c]

    # =================================================================
    # BUFFERED WRITES
    # =================================================================

    def add_point(
        self,
        measurement: str,
        timestamp: Union[datetime, int],
        fields: Dict[str, FieldValue],
        tags: Optional[Dict[str, str]] = None
    ) -> PushResult:
        """Buffer a point with seconds precision."""
        return self.add_precise_point(measurement, timestamp, fields, tags, Precision.SECONDS)

    def add_precise_point(
        self,
        measurement: str,
        timestamp: Union[datetime, int],
        fields: Dict[str, FieldValue],
        tags: Optional[Dict[str, str]] = None,
        precision: Union[Precision, str] = Precision.SECONDS
    ) -> PushResult:
        """
        Buffer a point with an explicit timestamp precision.

        Returns:
            PushResult.OK, or PushResult.BUFFER_FULL when the point was dropped

        Raises:
            ValidationError: If the point is invalid
            BufferFullError: If the buffer is full and the overflow policy is "raise"
        """
        point = TimeSeriesPoint(
            measurement=measurement,
            timestamp=timestamp,
            fields=dict(fields),
            tags=dict(tags or {}),
            precision=Precision(precision)
        )

        result = self.buffer.push(point)
        if result == PushResult.BUFFER_FULL:
            if self.overflow_policy == OVERFLOW_RAISE:
                raise BufferFullError(self.buffer.capacity, measurement)
            logger.warning(
                f"⚠️ Point buffer full ({self.buffer.capacity} points), dropped point for {measurement}"
            )
        return result

    def add_row(
        self,
        measurement: str,
        timestamp: Union[datetime, int],
        values: Sequence[str],
        tags: Optional[Dict[str, str]] = None
    ) -> Optional[PushResult]:
        """
        Buffer a positional row against the columns from define_columns().

        Numeric strings become floats, other values stay strings. Rows for an
        undefined measurement, or with the wrong number of values, are skipped
        and return None.
        """
        columns = self._columns.get(measurement)
        if not columns:
            logger.debug(f"No defined fields for {measurement}, row skipped")
            return None
        if len(columns) != len(values):
            logger.debug(
                f"Row for {measurement} has {len(values)} values for {len(columns)} columns, row skipped"
            )
            return None

        fields = {column: coerce_field_value(value) for column, value in zip(columns, values)}
        return self.add_point(measurement, timestamp, fields, tags)

    def points_count(self) -> int:
        return self.buffer.count

    def is_full(self) -> bool:
        return self.buffer.is_full

    def clear_points(self) -> None:
        self.buffer.clear()

    def _labelled(self, points: Sequence[TimeSeriesPoint]) -> List[TimeSeriesPoint]:
        if not self.label:
            return list(points)
        return [dataclasses.replace(p, measurement=f"{self.label}_{p.measurement}") for p in points]

    def write_points(self) -> int:
        """
        Write every buffered point, then clear the buffer.

        The buffer is kept intact when the write fails so the caller can
        retry; the rejected batch is logged as JSON.

        Returns:
            Number of points written

        Raises:
            InfluxDBError: Whatever the executor raised
        """
        points = self.buffer.drain()
        if not points:
            logger.debug("No buffered points to write")
            return 0

        batch = self._labelled(points)
        try:
            with PerformanceLogger(f"write {len(batch)} points", __name__):
                self._call(self.executor.write, batch, self.database, self.retention_policy, self.consistency)
        except Exception:
            self._dump_rejected_batch(batch)
            raise

        self.buffer.clear()
        return len(batch)

    def flush(self) -> int:
        """Alias of write_points()."""
        return self.write_points()

    def _dump_rejected_batch(self, batch: Sequence[TimeSeriesPoint]) -> None:
        try:
            logger.error(f"❌ Rejected batch for {self.database}: {marshal_points(batch)}")
        except MarshalError as e:
            logger.warning(f"⚠️ {e.message}")

    # =================================================================
    # READS & STATISTICS
    # =================================================================

    def read_points(
        self,
        fields: Sequence[str],
        measurement: str,
        filters: Optional[FilterSet] = None,
        group_by: Union[str, Sequence[str], None] = None,
        from_: Optional[str] = None,
        to: Optional[str] = None,
        aggregate_fn: Optional[str] = None,
        database: Optional[str] = None
    ) -> List[DataSet]:
        """
        Query a measurement and convert every series block into a DataSet.

        Args:
            fields: Field names to select
            measurement: Measurement name
            filters: Tag predicates
            group_by: GROUP BY clause, e.g. "time(1h)" or '"host"'
            from_: Exclusive lower time bound, pre-formatted
            to: Exclusive upper time bound, pre-formatted
            aggregate_fn: Aggregation applied to every field (mean, max, ...)
            database: Overrides the client database

        Returns:
            One DataSet per returned series
        """
        command = build_query(fields, filters, group_by, measurement, from_, to, aggregate_fn)
        if self.debug:
            logger.info(f"query: {command}")
        else:
            logger.debug(f"query: {command}")

        with PerformanceLogger(f"read {measurement}", __name__):
            result = self._call(self.executor.query, command, database or self.database)

        return self.converter.convert_to_dataset(result)

    def list_measurement(self, database: Optional[str] = None) -> Optional[TextSet]:
        """Measurement names of a database, or None when it has none."""
        result = self._call(self.executor.query, show_measurements_query(), database or self.database)
        return self.converter.convert_to_textset(result)

    def build_stats(self, datasets: Union[DataSet, Sequence[DataSet]]) -> DataStats:
        """Statistics for every field of every DataSet, flattened in order."""
        if isinstance(datasets, DataSet):
            datasets = [datasets]
        return self.stats_engine.build_stats(datasets)

    def close(self) -> None:
        close = getattr(self.executor, "close", None)
        if callable(close):
            close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
