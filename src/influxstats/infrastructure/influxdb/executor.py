"""
Query Executor Interface
========================

Abstract transport consumed by the InfluxClient façade. Implementations
connect, authenticate and run statements; they raise InfluxDBError
subclasses instead of returning error values.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence

from influxstats.domain.points import TimeSeriesPoint
from influxstats.infrastructure.influxdb.converters import RawResult


class Consistency(str, Enum):
    """Write consistency level (honored by clustered deployments)."""
    ANY = "any"
    ONE = "one"
    QUORUM = "quorum"
    ALL = "all"


@dataclass(frozen=True)
class PingResult:
    """Round-trip latency in seconds and the server version header."""
    latency: float
    version: str


class QueryExecutor(ABC):
    """Abstract interface for an InfluxQL-speaking database."""

    @abstractmethod
    def create_database(self, name: str) -> None:
        """Create a database."""
        pass

    @abstractmethod
    def drop_database(self, name: str) -> None:
        """Drop a database."""
        pass

    @abstractmethod
    def list_databases(self) -> List[str]:
        """Names of all databases."""
        pass

    @abstractmethod
    def query(self, command: str, database: str) -> RawResult:
        """Run a statement and return its series blocks."""
        pass

    @abstractmethod
    def write(
        self,
        points: Sequence[TimeSeriesPoint],
        database: str,
        retention_policy: str,
        consistency: Consistency,
    ) -> None:
        """Write a batch of points."""
        pass

    @abstractmethod
    def ping(self) -> PingResult:
        """Check the server is reachable."""
        pass
