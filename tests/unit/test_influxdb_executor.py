"""
Unit Tests for the InfluxDB HTTP Executor
==========================================

Tests InfluxDBExecutor against httpx.MockTransport.

Coverage:
- ✅ /query parameters and series flattening
- ✅ Statement errors
- ✅ Database management statements
- ✅ Line protocol writes grouped by precision
- ✅ Write rejections
- ✅ Ping latency and version
- ✅ Transport errors
- ✅ Authentication headers
"""

import pytest
from datetime import datetime, timezone
from urllib.parse import parse_qs

import httpx

from influxstats.core.exceptions import (
    InfluxConnectionError,
    InfluxQueryError,
    InfluxWriteError
)
from influxstats.domain.points import Precision, TimeSeriesPoint
from influxstats.infrastructure.influxdb.client import InfluxDBExecutor, to_influx_point
from influxstats.infrastructure.influxdb.executor import Consistency


class Recorder:
    """Collects requests and answers with a canned response."""

    def __init__(self, status_code=200, json_body=None, headers=None):
        self.requests = []
        self.status_code = status_code
        self.json_body = json_body if json_body is not None else {"results": [{"statement_id": 0}]}
        self.headers = headers or {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/write" and self.status_code < 400:
            return httpx.Response(204, headers=self.headers)
        if request.url.path == "/ping":
            return httpx.Response(self.status_code, headers=self.headers)
        return httpx.Response(self.status_code, json=self.json_body, headers=self.headers)


def make_executor(recorder, **kwargs) -> InfluxDBExecutor:
    kwargs.setdefault("token", "")
    kwargs.setdefault("username", "")
    kwargs.setdefault("password", "")
    return InfluxDBExecutor(
        url="http://influxdb.test:8086",
        timeout=1.0,
        transport=httpx.MockTransport(recorder),
        **kwargs
    )


def form(request: httpx.Request) -> dict:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


@pytest.mark.unit
class TestQuery:
    """Unit tests for InfluxQL execution."""

    def test_query_flattens_series(self):
        """
        Verifies:
        - the statement is posted as form field q
        - the database is sent as db
        - series of every statement are returned in order
        """
        recorder = Recorder(json_body={
            "results": [
                {"statement_id": 0, "series": [{"name": "cpu", "columns": ["time", "x"], "values": [["t", 1]]}]},
                {"statement_id": 1, "series": [{"name": "mem", "columns": ["time", "y"], "values": [["t", 2]]}]},
            ]
        })
        executor = make_executor(recorder)

        series = executor.query('SELECT "x" FROM "cpu"', "testdb")

        assert [s["name"] for s in series] == ["cpu", "mem"]
        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/query"
        assert request.url.params["db"] == "testdb"
        assert form(request)["q"] == 'SELECT "x" FROM "cpu"'

    def test_empty_statement_result(self):
        executor = make_executor(Recorder())

        assert executor.query("SELECT * FROM nothing", "testdb") == []

    def test_statement_error(self):
        recorder = Recorder(json_body={"results": [{"statement_id": 0, "error": "database not found: nope"}]})
        executor = make_executor(recorder)

        with pytest.raises(InfluxQueryError, match="database not found"):
            executor.query("SELECT * FROM cpu", "nope")

    def test_http_error(self):
        recorder = Recorder(status_code=400, json_body={"error": "error parsing query"})
        executor = make_executor(recorder)

        with pytest.raises(InfluxQueryError, match="error parsing query"):
            executor.query("SELEC", "testdb")

    def test_database_statements(self):
        recorder = Recorder(json_body={
            "results": [{"statement_id": 0, "series": [
                {"name": "databases", "columns": ["name"], "values": [["_internal"], ["testdb"]]}
            ]}]
        })
        executor = make_executor(recorder)

        executor.create_database("testdb")
        executor.drop_database("testdb")
        databases = executor.list_databases()

        statements = [form(r)["q"] for r in recorder.requests]
        assert statements == ['CREATE DATABASE "testdb"', 'DROP DATABASE "testdb"', "SHOW DATABASES"]
        assert "db" not in recorder.requests[0].url.params
        assert databases == ["_internal", "testdb"]


@pytest.mark.unit
class TestWrite:
    """Unit tests for line protocol writes."""

    def test_write_groups_by_precision(self):
        """
        Verifies:
        - one /write request per precision
        - db, rp, precision and consistency parameters
        - body is line protocol
        """
        recorder = Recorder()
        executor = make_executor(recorder)
        ts = datetime(2024, 5, 13, 23, 55, 28, tzinfo=timezone.utc)
        points = [
            TimeSeriesPoint("cpu", ts, {"load": 0.5}, {"host": "web1"}),
            TimeSeriesPoint("cpu", 1715644528000000000, {"load": 0.7}, precision=Precision.NANOSECONDS),
            TimeSeriesPoint("cpu", ts, {"load": 0.9}, {"host": "web2"}),
        ]

        executor.write(points, "testdb", "autogen", Consistency.QUORUM)

        assert len(recorder.requests) == 2
        seconds, nanos = recorder.requests
        assert seconds.url.params["db"] == "testdb"
        assert seconds.url.params["rp"] == "autogen"
        assert seconds.url.params["precision"] == "s"
        assert seconds.url.params["consistency"] == "quorum"
        assert seconds.content.decode().splitlines() == [
            "cpu,host=web1 load=0.5 1715644528",
            "cpu,host=web2 load=0.9 1715644528",
        ]
        assert nanos.url.params["precision"] == "ns"
        assert nanos.content.decode() == "cpu load=0.7 1715644528000000000"

    def test_write_without_retention_policy(self):
        recorder = Recorder()
        executor = make_executor(recorder)

        executor.write([TimeSeriesPoint("cpu", 0, {"load": 1.0})], "testdb", "", Consistency.ONE)

        assert "rp" not in recorder.requests[0].url.params

    def test_write_rejected(self):
        recorder = Recorder(status_code=400, json_body={"error": "field type conflict"})
        executor = make_executor(recorder)

        with pytest.raises(InfluxWriteError, match="field type conflict"):
            executor.write([TimeSeriesPoint("cpu", 0, {"load": 1.0})], "testdb", "", Consistency.ONE)

    def test_string_fields_are_quoted(self):
        line = to_influx_point(TimeSeriesPoint("proc", 1715644528, {"state": "idle"})).to_line_protocol()

        assert line == 'proc state="idle" 1715644528'


@pytest.mark.unit
class TestPingAndTransport:
    """Unit tests for ping, transport errors and authentication."""

    def test_ping(self):
        recorder = Recorder(status_code=204, headers={"X-Influxdb-Version": "1.8.10"})
        executor = make_executor(recorder)

        result = executor.ping()

        assert result.version == "1.8.10"
        assert result.latency >= 0

    def test_unhealthy_ping(self):
        executor = make_executor(Recorder(status_code=503))

        with pytest.raises(InfluxConnectionError):
            executor.ping()

    def test_transport_error_becomes_connection_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        executor = InfluxDBExecutor(url="http://influxdb.test:8086", transport=httpx.MockTransport(refuse))

        with pytest.raises(InfluxConnectionError) as exc_info:
            executor.query("SHOW DATABASES", "")

        assert exc_info.value.details["url"] == "http://influxdb.test:8086"
        assert "connection refused" in exc_info.value.details["reason"]

    def test_token_header(self):
        recorder = Recorder()
        executor = make_executor(recorder, token="s3cret")

        executor.query("SHOW DATABASES", "")

        assert recorder.requests[0].headers["Authorization"] == "Token s3cret"

    def test_basic_auth(self):
        recorder = Recorder()
        executor = make_executor(recorder, username="admin", password="admin")

        executor.query("SHOW DATABASES", "")

        assert recorder.requests[0].headers["Authorization"].startswith("Basic ")

    def test_context_manager_closes_client(self):
        with make_executor(Recorder()) as executor:
            executor.query("SHOW DATABASES", "")
            assert executor._client is not None

        assert executor._client is None
