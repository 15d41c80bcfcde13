"""
Custom Exceptions Module
=========================

Domain-specific exceptions for the influxstats library.

Exception Hierarchy:
    InfluxStatsException (base)
    ├── InfluxDBError
    │   ├── InfluxConnectionError
    │   ├── InfluxQueryError
    │   └── InfluxWriteError
    ├── BufferFullError
    ├── MalformedRowError
    ├── EmptySeriesError
    ├── MarshalError
    └── ValidationError

Usage:
    from influxstats.core.exceptions import InfluxConnectionError

    try:
        client.write_points()
    except InfluxConnectionError as e:
        logger.error(f"InfluxDB unreachable: {e.message}")
"""

from typing import Optional, Dict, Any


# =================================================================
# BASE EXCEPTION
# =================================================================

class InfluxStatsException(Exception):
    """
    Base exception for all influxstats errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        self.message = message
        self.details = details or {}
        self.error_code = error_code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for reporting."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details
        }


# =================================================================
# INFLUXDB EXCEPTIONS
# =================================================================

class InfluxDBError(InfluxStatsException):
    """InfluxDB operation error."""
    pass


class InfluxConnectionError(InfluxDBError):
    """InfluxDB transport error (unreachable host, timeout, refused connection)."""

    def __init__(self, url: str, reason: str):
        super().__init__(
            message=f"Failed to connect to InfluxDB at {url}: {reason}",
            details={"url": url, "reason": reason},
            error_code="INFLUXDB_CONNECTION_FAILED"
        )


class InfluxQueryError(InfluxDBError):
    """InfluxDB query execution error."""

    def __init__(self, query: str, reason: str):
        super().__init__(
            message=f"Query failed: {reason}",
            details={"query": query[:100] + "..." if len(query) > 100 else query, "reason": reason},
            error_code="INFLUXDB_QUERY_FAILED"
        )


class InfluxWriteError(InfluxDBError):
    """InfluxDB write operation error."""

    def __init__(self, database: str, reason: str):
        super().__init__(
            message=f"Write failed for database '{database}': {reason}",
            details={"database": database, "reason": reason},
            error_code="INFLUXDB_WRITE_FAILED"
        )


# =================================================================
# BUFFER & CONVERSION EXCEPTIONS
# =================================================================

class BufferFullError(InfluxStatsException):
    """Point buffer is at capacity and the overflow policy is 'raise'."""

    def __init__(self, capacity: int, measurement: str):
        super().__init__(
            message=f"Point buffer full ({capacity} points), dropped point for '{measurement}'",
            details={"capacity": capacity, "measurement": measurement},
            error_code="BUFFER_FULL"
        )


class MalformedRowError(InfluxStatsException):
    """A result row has a timestamp or value that cannot be parsed."""

    def __init__(self, series: str, row: int, column: str, value: Any):
        super().__init__(
            message=f"Malformed value in series '{series}' row {row} column '{column}': {value!r}",
            details={"series": series, "row": row, "column": column, "value": str(value)},
            error_code="MALFORMED_ROW"
        )


class EmptySeriesError(InfluxStatsException):
    """Statistics were requested on a zero-length value sequence."""

    def __init__(self, dataset: str, field: str):
        super().__init__(
            message=f"Cannot compute statistics on empty series '{field}' of dataset '{dataset}'",
            details={"dataset": dataset, "field": field},
            error_code="EMPTY_SERIES"
        )


class MarshalError(InfluxStatsException):
    """A rejected write batch could not be serialized for diagnostics."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Failed to marshal point batch: {reason}",
            details={"reason": reason},
            error_code="MARSHAL_FAILED"
        )


# =================================================================
# VALIDATION EXCEPTIONS
# =================================================================

class ValidationError(InfluxStatsException):
    """Data validation error."""

    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(
            message=f"Validation failed for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
            error_code="VALIDATION_FAILED"
        )
