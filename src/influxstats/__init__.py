"""
influxstats
===========

Buffered writes, InfluxQL reads and descriptive statistics for InfluxDB.
"""

from influxstats.domain.datasets import DataSet, TextSet, ZERO_INSTANT
from influxstats.domain.points import PointBuffer, Precision, PushResult, TimeSeriesPoint
from influxstats.domain.statistics import (
    DataStat,
    DataStats,
    FieldName,
    StatisticsEngine,
    TaggedName
)
from influxstats.infrastructure.influxdb import (
    Consistency,
    Filter,
    FilterMode,
    FilterSet,
    InfluxDBExecutor,
    ParsePolicy,
    PingResult,
    QueryBuilder,
    QueryExecutor,
    ResultConverter
)
from influxstats.services.influx_client import InfluxClient

__version__ = "0.1.0"

__all__ = [
    "InfluxClient",
    "TimeSeriesPoint",
    "PointBuffer",
    "Precision",
    "PushResult",
    "DataSet",
    "TextSet",
    "ZERO_INSTANT",
    "DataStat",
    "DataStats",
    "FieldName",
    "TaggedName",
    "StatisticsEngine",
    "Filter",
    "FilterMode",
    "FilterSet",
    "QueryBuilder",
    "ResultConverter",
    "ParsePolicy",
    "QueryExecutor",
    "InfluxDBExecutor",
    "Consistency",
    "PingResult",
]
