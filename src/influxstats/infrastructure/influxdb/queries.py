"""
InfluxQL Query Templates
========================

Provides the InfluxQL query builder and reusable statements.

Usage:
    from influxstats.infrastructure.influxdb.queries import (
        FilterSet,
        QueryBuilder,
        build_query
    )

    filters = FilterSet().add("host", "server01").add("region", "us-.*", FilterMode.REGEX)

    query = QueryBuilder("cpu") \
        .select("usage_user", "usage_system") \
        .aggregate("mean") \
        .range("2024-01-01T00:00:00Z", "2024-01-02T00:00:00Z") \
        .where(filters) \
        .group_by("time(1h)") \
        .build()

Clause order is fixed by the InfluxQL grammar:
    SELECT ... FROM ... WHERE <time-lower> AND <time-upper> AND <filters...> GROUP BY ...

Filter values are rendered verbatim. They are not escaped, so callers must not
pass untrusted input.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Union


class FilterMode(str, Enum):
    """How a tag predicate compares its value."""
    EXACT = "exact"
    REGEX = "regex"


def quote_ident(name: str) -> str:
    """Double-quote an InfluxQL identifier; the wildcard stays bare."""
    if name == "*":
        return name
    return '"' + name.replace('"', '\\"') + '"'


def time_literal(bound: str) -> str:
    """
    Render a caller-formatted time bound.

    RFC3339 strings are single-quoted. Bounds already quoted, and relative
    expressions such as "now() - 1h", are used as given.
    """
    if bound.startswith("'") or "now()" in bound:
        return bound
    return f"'{bound}'"


@dataclass(frozen=True)
class Filter:
    """One tag predicate."""
    tag: str
    value: str
    mode: FilterMode = FilterMode.EXACT

    def render(self) -> str:
        if self.mode == FilterMode.REGEX:
            return f"{quote_ident(self.tag)} =~ /{self.value}/"
        return f"{quote_ident(self.tag)} = '{self.value}'"


class FilterSet:
    """Ordered tag predicates, combined with AND."""

    def __init__(self, filters: Optional[Sequence[Filter]] = None):
        self._filters: List[Filter] = list(filters or [])

    def add(self, tag: str, value: str, mode: Union[FilterMode, str] = FilterMode.EXACT) -> "FilterSet":
        """Append a predicate. Returns self for chaining."""
        self._filters.append(Filter(tag=tag, value=value, mode=FilterMode(mode)))
        return self

    def render(self) -> List[str]:
        return [f.render() for f in self._filters]

    def __iter__(self) -> Iterator[Filter]:
        return iter(self._filters)

    def __len__(self) -> int:
        return len(self._filters)

    def __bool__(self) -> bool:
        return bool(self._filters)


class QueryBuilder:
    """
    Fluent interface for building InfluxQL SELECT statements.

    Example:
        >>> query = QueryBuilder("cpu") \
        ...     .select("load") \
        ...     .range("2024-01-01T00:00:00Z") \
        ...     .group_by("time(1m)") \
        ...     .build()
    """

    def __init__(self, measurement: str):
        self.measurement = measurement
        self._fields: List[str] = []
        self._function: Optional[str] = None
        self._start: Optional[str] = None
        self._stop: Optional[str] = None
        self._filters = FilterSet()
        self._group_by: Optional[str] = None

    def select(self, *fields: str) -> "QueryBuilder":
        """Add fields to the select list, in order."""
        self._fields.extend(fields)
        return self

    def aggregate(self, function: Optional[str]) -> "QueryBuilder":
        """Wrap every selected field in an aggregation function (mean, max, ...)."""
        self._function = function or None
        return self

    def range(self, start: Optional[str] = None, stop: Optional[str] = None) -> "QueryBuilder":
        """
        Restrict the time range. Bounds are exclusive.

        Args:
            start: Lower bound (e.g., "2024-01-01T00:00:00Z", "now() - 1h")
            stop: Optional upper bound
        """
        self._start = start or None
        self._stop = stop or None
        return self

    def filter_tag(self, tag: str, value: str, mode: Union[FilterMode, str] = FilterMode.EXACT) -> "QueryBuilder":
        """Add a tag filter."""
        self._filters.add(tag, value, mode)
        return self

    def where(self, filters: Optional[FilterSet]) -> "QueryBuilder":
        """Add every filter of a FilterSet, keeping its order."""
        for f in filters or ():
            self._filters.add(f.tag, f.value, f.mode)
        return self

    def group_by(self, group_by: Union[str, Sequence[str], None]) -> "QueryBuilder":
        """Group by a raw clause ("time(5m)", '"host"') or several of them."""
        if group_by and not isinstance(group_by, str):
            group_by = ",".join(group_by)
        self._group_by = group_by or None
        return self

    def _select_clause(self) -> str:
        if self._function:
            columns = [f"{self._function}({quote_ident(f)})" for f in self._fields]
        else:
            columns = [quote_ident(f) for f in self._fields]
        return f"SELECT {','.join(columns)} FROM {quote_ident(self.measurement)}"

    def _predicates(self) -> List[str]:
        predicates = []
        if self._start:
            predicates.append(f"time > {time_literal(self._start)}")
        if self._stop:
            predicates.append(f"time < {time_literal(self._stop)}")
        predicates.extend(self._filters.render())
        return predicates

    def build(self) -> str:
        """Build final InfluxQL query."""
        parts = [self._select_clause()]

        predicates = self._predicates()
        if predicates:
            parts.append("WHERE " + " AND ".join(predicates))

        if self._group_by:
            parts.append(f"GROUP BY {self._group_by}")

        return " ".join(parts)


# =================================================================
# PRE-BUILT QUERIES
# =================================================================

def build_query(
    fields: Sequence[str],
    filters: Optional[FilterSet],
    group_by: Union[str, Sequence[str], None],
    measurement: str,
    from_: Optional[str] = None,
    to: Optional[str] = None,
    aggregate_fn: Optional[str] = None
) -> str:
    """
    Compose a SELECT statement in one call.

    Args:
        fields: Field names, in select order
        filters: Tag predicates (may be empty)
        group_by: GROUP BY clause, emitted after WHERE
        measurement: Measurement name
        from_: Optional exclusive lower time bound
        to: Optional exclusive upper time bound
        aggregate_fn: Optional aggregation function applied to every field

    Returns:
        InfluxQL query string
    """
    return QueryBuilder(measurement) \
        .select(*fields) \
        .aggregate(aggregate_fn) \
        .range(from_, to) \
        .where(filters) \
        .group_by(group_by) \
        .build()


def show_measurements_query() -> str:
    return "SHOW MEASUREMENTS"


def show_databases_query() -> str:
    return "SHOW DATABASES"


def create_database_query(name: str) -> str:
    return f"CREATE DATABASE {quote_ident(name)}"


def drop_database_query(name: str) -> str:
    return f"DROP DATABASE {quote_ident(name)}"
