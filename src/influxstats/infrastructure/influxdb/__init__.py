"""
InfluxDB Infrastructure Module
===============================

Provides the InfluxDB executor, InfluxQL query builder and result converters.
"""

from .client import (
    InfluxDBExecutor,
    get_influxdb_executor
)

from .converters import (
    ParsePolicy,
    ResultConverter,
    convert_to_dataset,
    convert_to_textset
)

from .executor import (
    Consistency,
    PingResult,
    QueryExecutor
)

from .queries import (
    Filter,
    FilterMode,
    FilterSet,
    QueryBuilder,
    build_query
)

__all__ = [
    "InfluxDBExecutor",
    "get_influxdb_executor",
    "ParsePolicy",
    "ResultConverter",
    "convert_to_dataset",
    "convert_to_textset",
    "Consistency",
    "PingResult",
    "QueryExecutor",
    "Filter",
    "FilterMode",
    "FilterSet",
    "QueryBuilder",
    "build_query",
]
