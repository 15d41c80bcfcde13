"""
Unit Tests for Settings
========================

Coverage:
- ✅ Defaults and environment overrides
- ✅ Secrets from *_FILE variables
- ✅ repr hides secrets
"""

import pytest

from influxstats.core.config import Settings, get_secret


@pytest.mark.unit
class TestSettings:

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("POINT_BUFFER_CAPACITY", "200")
        monkeypatch.setenv("QUERY_DEBUG", "true")

        settings = Settings(_env_file=None)

        assert settings.POINT_BUFFER_CAPACITY == 200
        assert settings.QUERY_DEBUG is True
        assert settings.INFLUXDB_DATABASE == "testdb"

    def test_timeout_in_seconds(self, monkeypatch):
        monkeypatch.setenv("INFLUXDB_TIMEOUT", "2500")

        assert Settings(_env_file=None).influxdb_timeout_seconds == 2.5

    def test_token_from_file(self, monkeypatch, tmp_path):
        secret = tmp_path / "token"
        secret.write_text("file-token\n")
        monkeypatch.delenv("INFLUXDB_TOKEN", raising=False)
        monkeypatch.setenv("INFLUXDB_TOKEN_FILE", str(secret))

        assert get_secret("influxdb_token_unit_test", "INFLUXDB_TOKEN") == "file-token"
        assert Settings(_env_file=None).INFLUXDB_TOKEN == "file-token"

    def test_missing_secret(self, monkeypatch):
        monkeypatch.delenv("INFLUXSTATS_UNSET_SECRET", raising=False)

        assert get_secret("influxstats_unset_secret") is None

    def test_repr_hides_secrets(self, monkeypatch):
        monkeypatch.setenv("INFLUXDB_TOKEN", "very-secret")

        text = repr(Settings(_env_file=None))

        assert "very-secret" not in text
        assert "influxdb_url=http://influxdb.test:8086" in text
