"""
Pytest Configuration and Shared Fixtures
=========================================

Test setup with a mocked QueryExecutor so no InfluxDB server is needed.
"""
import os
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

# Set test environment variables BEFORE any imports
os.environ["ENVIRONMENT"] = "testing"
os.environ["LOG_LEVEL"] = "ERROR"
os.environ["INFLUXDB_URL"] = "http://influxdb.test:8086"
os.environ["INFLUXDB_DATABASE"] = "testdb"

from influxstats.infrastructure.influxdb.executor import PingResult, QueryExecutor  # noqa: E402
from influxstats.services.influx_client import InfluxClient  # noqa: E402


# =============================================================================
# MOCK FIXTURES FOR EXTERNAL SERVICES
# =============================================================================

@pytest.fixture
def mock_executor():
    """QueryExecutor double returning empty results."""
    mock = MagicMock(spec=QueryExecutor)
    mock.query.return_value = []
    mock.list_databases.return_value = ["_internal", "testdb"]
    mock.ping.return_value = PingResult(latency=0.002, version="1.8.10")
    return mock


@pytest.fixture
def influx_client(mock_executor):
    """InfluxClient wired to the mock executor with a small buffer."""
    return InfluxClient(
        executor=mock_executor,
        database="testdb",
        retention_policy="",
        capacity=3,
        overflow_policy="drop",
        parse_policy="zero_fill",
        label="",
        debug=False,
        retry_attempts=1,
        retry_wait=0
    )


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

@pytest.fixture
def sample_timestamp():
    return datetime(2024, 5, 13, 23, 55, 28, tzinfo=timezone.utc)


@pytest.fixture
def sample_raw_result():
    """Two series blocks as returned by a GROUP BY "host" query."""
    return [
        {
            "name": "cpu",
            "tags": {"host": "server01", "region": "eu"},
            "columns": ["time", "usage_user", "usage_system"],
            "values": [
                ["2024-05-13T23:55:28Z", 3, 10.5],
                ["2024-05-13T23:55:38Z", 1, 11.0],
                ["2024-05-13T23:55:48Z", 4, None],
            ],
        },
        {
            "name": "cpu",
            "tags": {"host": "server02", "region": "us"},
            "columns": ["time", "usage_user", "usage_system"],
            "values": [
                ["2024-05-13T23:55:28Z", 7, 2.0],
            ],
        },
    ]


# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
