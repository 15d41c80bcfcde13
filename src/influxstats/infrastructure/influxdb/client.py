"""
InfluxDB Client Module
======================

QueryExecutor implementation for the InfluxDB HTTP API (/query, /write,
/ping). Works with InfluxDB 1.x and with the v1 compatibility endpoints of
InfluxDB 2.x.

Provides:
- Lazy HTTP connection management
- Line protocol encoding through influxdb-client Point objects
- Token or username/password authentication
- Structured error handling

Usage:
    from influxstats.infrastructure.influxdb.client import get_influxdb_executor

    executor = get_influxdb_executor()
    series = executor.query('SELECT "load" FROM "cpu"', "metrics")
"""

from typing import Any, Dict, List, Optional, Sequence
import logging
import time

import httpx
from influxdb_client import Point

from influxstats.core.config import settings
from influxstats.core.exceptions import (
    InfluxConnectionError,
    InfluxQueryError,
    InfluxWriteError
)
from influxstats.core.logging_config import log_influx_call
from influxstats.domain.points import Precision, TimeSeriesPoint
from influxstats.infrastructure.influxdb.converters import RawResult
from influxstats.infrastructure.influxdb.executor import Consistency, PingResult, QueryExecutor
from influxstats.infrastructure.influxdb.queries import (
    create_database_query,
    drop_database_query,
    show_databases_query
)

logger = logging.getLogger(__name__)


def to_influx_point(point: TimeSeriesPoint) -> Point:
    """Build an influxdb-client Point from a buffered point."""
    influx_point = Point(point.measurement)

    for key, value in point.tags.items():
        influx_point.tag(key, value)

    for key, value in point.fields.items():
        influx_point.field(key, value)

    influx_point.time(point.timestamp, point.precision.write_precision)
    return influx_point


class InfluxDBExecutor(QueryExecutor):
    """
    HTTP executor for InfluxQL statements and line protocol writes.

    Each call is a single request: nothing is retried here.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        token: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: Optional[float] = None,
        verify_ssl: Optional[bool] = None,
        transport: Optional[httpx.BaseTransport] = None
    ):
        """
        Initialize the executor.

        Args:
            url: InfluxDB URL (defaults to settings.INFLUXDB_URL)
            token: Authentication token (defaults to settings.INFLUXDB_TOKEN)
            username: InfluxDB 1.x user (defaults to settings.INFLUXDB_USERNAME)
            password: InfluxDB 1.x password (defaults to settings.INFLUXDB_PASSWORD)
            timeout: Request timeout in seconds
            verify_ssl: Verify TLS certificates
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.url = (url or settings.INFLUXDB_URL).rstrip("/")
        self.token = token if token is not None else settings.INFLUXDB_TOKEN
        self.username = username if username is not None else settings.INFLUXDB_USERNAME
        self.password = password if password is not None else settings.INFLUXDB_PASSWORD
        self.timeout = timeout if timeout is not None else settings.influxdb_timeout_seconds
        self.verify_ssl = settings.INFLUXDB_VERIFY_SSL if verify_ssl is None else verify_ssl

        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def client(self) -> httpx.Client:
        """Get or create the HTTP client (lazy loading)."""
        if self._client is None:
            auth = None
            if self.username and not self.token:
                auth = (self.username, self.password)

            self._client = httpx.Client(
                base_url=self.url,
                timeout=self.timeout,
                verify=self.verify_ssl,
                headers=self._get_headers(),
                auth=auth,
                transport=self._transport
            )
            logger.info(f"✅ InfluxDB executor ready: {self.url}")

        return self._client

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Token {self.token}"
        return headers

    def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, str]] = None,
        data: Optional[Dict[str, str]] = None,
        content: Optional[bytes] = None
    ) -> httpx.Response:
        """
        Send one request.

        Raises:
            InfluxConnectionError: If the server cannot be reached
        """
        started = time.perf_counter()
        try:
            response = self.client.request(method, endpoint, params=params, data=data, content=content)
        except httpx.RequestError as e:
            logger.error(f"❌ InfluxDB request error: {method} {endpoint}: {e}")
            raise InfluxConnectionError(self.url, str(e)) from e

        log_influx_call(
            logger,
            method=method,
            endpoint=endpoint,
            status_code=response.status_code,
            elapsed_ms=(time.perf_counter() - started) * 1000
        )
        return response

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200] or f"HTTP {response.status_code}"
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return response.text[:200]

    def query(self, command: str, database: str) -> RawResult:
        """
        Execute an InfluxQL statement and return all series blocks.

        Raises:
            InfluxConnectionError: If the server cannot be reached
            InfluxQueryError: If the server rejects the statement
        """
        params = {"db": database} if database else {}
        response = self._request("POST", "/query", params=params, data={"q": command})

        if response.status_code >= 400:
            raise InfluxQueryError(command, self._error_message(response))

        try:
            body = response.json()
        except ValueError as e:
            raise InfluxQueryError(command, f"invalid JSON response: {e}") from e

        if body.get("error"):
            raise InfluxQueryError(command, str(body["error"]))

        series: List[Dict[str, Any]] = []
        for statement in body.get("results") or []:
            if statement.get("error"):
                raise InfluxQueryError(command, str(statement["error"]))
            series.extend(statement.get("series") or [])

        logger.debug(f"📊 Query returned {len(series)} series")
        return series

    def create_database(self, name: str) -> None:
        self.query(create_database_query(name), "")
        logger.info(f"✅ Database created: {name}")

    def drop_database(self, name: str) -> None:
        self.query(drop_database_query(name), "")
        logger.info(f"🗑️ Database dropped: {name}")

    def list_databases(self) -> List[str]:
        databases = []
        for block in self.query(show_databases_query(), ""):
            for row in block.get("values") or []:
                databases.append(str(row[0]))
        return databases

    def write(
        self,
        points: Sequence[TimeSeriesPoint],
        database: str,
        retention_policy: str = "",
        consistency: Consistency = Consistency.ONE
    ) -> None:
        """
        Write points as line protocol, one request per timestamp precision.

        Raises:
            InfluxConnectionError: If the server cannot be reached
            InfluxWriteError: If the server rejects the batch
        """
        batches: Dict[Precision, List[str]] = {}
        for point in points:
            batches.setdefault(point.precision, []).append(to_influx_point(point).to_line_protocol())

        for precision, lines in batches.items():
            params = {
                "db": database,
                "precision": precision.value,
                "consistency": Consistency(consistency).value
            }
            if retention_policy:
                params["rp"] = retention_policy

            response = self._request("POST", "/write", params=params, content="\n".join(lines).encode("utf-8"))
            if response.status_code >= 400:
                raise InfluxWriteError(database, self._error_message(response))

            logger.info(f"✅ Wrote {len(lines)} points to {database}")

    def ping(self) -> PingResult:
        """
        Round-trip to /ping.

        Raises:
            InfluxConnectionError: If the server cannot be reached or is unhealthy
        """
        started = time.perf_counter()
        response = self._request("GET", "/ping")
        latency = time.perf_counter() - started

        if response.status_code >= 400:
            raise InfluxConnectionError(self.url, f"ping returned HTTP {response.status_code}")

        return PingResult(latency=latency, version=response.headers.get("X-Influxdb-Version", "unknown"))

    def close(self):
        """Close the HTTP connection."""
        if self._client:
            self._client.close()
            logger.info("🔒 InfluxDB executor closed")
            self._client = None

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


# Global executor instance (singleton)
_influxdb_executor_instance: Optional[InfluxDBExecutor] = None


def get_influxdb_executor() -> InfluxDBExecutor:
    """
    Get global InfluxDB executor instance (singleton).

    Example:
        >>> executor = get_influxdb_executor()
        >>> executor.ping().version
    """
    global _influxdb_executor_instance

    if _influxdb_executor_instance is None:
        _influxdb_executor_instance = InfluxDBExecutor()
        logger.info("🔧 InfluxDB executor initialized")

    return _influxdb_executor_instance
