"""
Core Configuration Module
=========================

Centralized configuration management using Pydantic Settings.
All environment variables are loaded and validated here.

Environment Variables:
- INFLUXDB_URL: InfluxDB HTTP API base URL
- INFLUXDB_TOKEN: Authentication token (InfluxDB 2.x v1-compat or 1.x with auth)
- INFLUXDB_USERNAME / INFLUXDB_PASSWORD: InfluxDB 1.x credentials
- INFLUXDB_DATABASE: Default database for reads and writes
- POINT_BUFFER_CAPACITY: Number of points held before a write is required
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from pathlib import Path
import logging
import os

logger = logging.getLogger(__name__)


def get_secret(secret_name: str, env_var_name: Optional[str] = None) -> Optional[str]:
    """
    Read a secret from Docker Secrets or environment variable.

    Order of precedence:
    1. Docker Secret file at /run/secrets/{secret_name}
    2. Environment variable {ENV_VAR_NAME}_FILE pointing to a file
    3. Environment variable {ENV_VAR_NAME} directly

    Args:
        secret_name: Name of the secret file (without path)
        env_var_name: Environment variable name (if different from secret_name)

    Returns:
        Secret value or None if not found
    """
    if env_var_name is None:
        env_var_name = secret_name.upper()

    secret_path = Path(f"/run/secrets/{secret_name}")
    if secret_path.exists():
        try:
            return secret_path.read_text().strip()
        except OSError as e:
            logger.warning(f"⚠️  Failed to read secret from {secret_path}: {e}")

    file_env_var = f"{env_var_name}_FILE"
    if file_env_var in os.environ:
        file_path = Path(os.environ[file_env_var])
        if file_path.exists():
            try:
                return file_path.read_text().strip()
            except OSError as e:
                logger.warning(f"⚠️  Failed to read secret from {file_path}: {e}")

    return os.environ.get(env_var_name)


class Settings(BaseSettings):
    """Library settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=False
    )

    # =================================================================
    # APPLICATION SETTINGS
    # =================================================================
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # =================================================================
    # INFLUXDB SETTINGS
    # =================================================================
    INFLUXDB_URL: str = "http://localhost:8086"
    INFLUXDB_TOKEN: str = ""  # Loaded from secret when available
    INFLUXDB_USERNAME: str = ""
    INFLUXDB_PASSWORD: str = ""  # Loaded from secret when available
    INFLUXDB_DATABASE: str = "metrics"
    INFLUXDB_RETENTION_POLICY: str = ""
    INFLUXDB_CONSISTENCY: str = "one"  # any, one, quorum, all

    # Connection settings
    INFLUXDB_TIMEOUT: int = 10000  # milliseconds
    INFLUXDB_VERIFY_SSL: bool = True

    # =================================================================
    # BUFFERING & CONVERSION
    # =================================================================
    POINT_BUFFER_CAPACITY: int = 50
    BUFFER_OVERFLOW_POLICY: str = "drop"  # drop or raise
    PARSE_ERROR_POLICY: str = "zero_fill"  # zero_fill or strict
    MEASUREMENT_LABEL: str = ""  # Written measurements become <label>_<measurement>

    # =================================================================
    # DIAGNOSTICS & RESILIENCE
    # =================================================================
    QUERY_DEBUG: bool = False
    RETRY_ATTEMPTS: int = 1  # 1 means no retry

    @property
    def influxdb_timeout_seconds(self) -> float:
        """Timeout in seconds, as httpx expects it."""
        return self.INFLUXDB_TIMEOUT / 1000

    def model_post_init(self, __context) -> None:
        """Load secrets from Docker Secrets after model initialization."""
        influxdb_token = get_secret("influxdb_token", "INFLUXDB_TOKEN")
        if influxdb_token:
            self.INFLUXDB_TOKEN = influxdb_token

        influxdb_password = get_secret("influxdb_password", "INFLUXDB_PASSWORD")
        if influxdb_password:
            self.INFLUXDB_PASSWORD = influxdb_password

    def __repr__(self):
        """Safe representation without exposing secrets."""
        return (
            f"Settings("
            f"env={self.ENVIRONMENT}, "
            f"influxdb_url={self.INFLUXDB_URL}, "
            f"database={self.INFLUXDB_DATABASE}, "
            f"buffer_capacity={self.POINT_BUFFER_CAPACITY})"
        )


# Global settings instance
settings = Settings()
