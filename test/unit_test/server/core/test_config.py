"""Unit tests for server configuration settings model.

Tests verify that the Settings model correctly binds environment variables
from the .env.example file and that all configuration models work as expected.
"""

from pathlib import Path

import pytest

from mortiscope.server.core.config import (
    AuthConfig,
    AWSConfig,
    ConfigurationError,
    CORSConfig,
    DetectionServiceConfig,
    LogfireConfig,
    Settings,
)


@pytest.fixture
def env_example_path() -> Path:
    """Get path to .env.example file."""
    return Path(__file__).resolve().parents[4] / ".env.example"


@pytest.fixture
def env_example_vars(env_example_path: Path) -> dict[str, str]:
    """Parse .env.example file and return environment variables."""
    env_vars = {}
    with open(env_example_path) as f:
        for line in f:
            line = line.strip()
            # Skip comments and empty lines
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, value = line.split("=", 1)
                env_vars[key.strip()] = value.strip()
    return env_vars


class TestSettingsBinding:
    """Test Settings model environment variable binding."""

    def test_server_host_binding(self, env_example_vars: dict[str, str], monkeypatch):
        host = env_example_vars.get("MORTISCOPE_SERVER_HOST", "0.0.0.0")
        monkeypatch.setenv("MORTISCOPE_SERVER_HOST", host)

        settings = Settings()
        assert settings.server_host == host

    def test_server_port_binding(self, env_example_vars: dict[str, str], monkeypatch):
        port = env_example_vars.get("MORTISCOPE_SERVER_PORT", "8000")
        monkeypatch.setenv("MORTISCOPE_SERVER_PORT", port)

        settings = Settings()
        assert settings.server_port == int(port)

    def test_database_url_binding(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///./local.db")

        settings = Settings()
        assert settings.database_url == "sqlite+aiosqlite:///./local.db"

    def test_env_example_covers_grouped_settings(self, env_example_vars: dict[str, str]):
        """Every grouped configuration field is documented in .env.example."""
        for model in (AWSConfig, DetectionServiceConfig, AuthConfig, CORSConfig, LogfireConfig):
            for field in model.model_fields.values():
                assert field.alias in env_example_vars, field.alias


class TestAWSConfig:
    """Test S3 configuration."""

    def test_aws_property(self, monkeypatch):
        monkeypatch.setenv("AWS_BUCKET_NAME", "mortiscope-uploads")
        monkeypatch.setenv("AWS_BUCKET_REGION", "ap-southeast-1")

        aws = Settings().aws
        assert aws.bucket_name == "mortiscope-uploads"
        assert aws.bucket_region == "ap-southeast-1"
        assert aws.require() is aws

    def test_require_missing_bucket(self):
        with pytest.raises(ConfigurationError, match="AWS_BUCKET_NAME"):
            AWSConfig(bucket_region="ap-southeast-1").require()

    def test_require_missing_region(self):
        with pytest.raises(ConfigurationError, match="AWS_BUCKET_REGION"):
            AWSConfig(bucket_name="mortiscope-uploads").require()


class TestDetectionServiceConfig:
    """Test detection service configuration."""

    def test_defaults(self):
        config = DetectionServiceConfig()
        assert config.timeout_seconds == 30 * 60
        assert config.max_retries == 3
        assert config.upload_grace_seconds == 0

    def test_detection_service_property(self, monkeypatch):
        monkeypatch.setenv("DETECTION_SERVICE_URL", "http://detection.test")
        monkeypatch.setenv("DETECTION_SERVICE_API_KEY", "secret")
        monkeypatch.setenv("DETECTION_SERVICE_MAX_RETRIES", "5")

        config = Settings().detection_service
        assert config.url == "http://detection.test"
        assert config.api_key == "secret"
        assert config.max_retries == 5


class TestAuthAndCORSConfig:
    def test_auth_property(self, monkeypatch):
        monkeypatch.setenv("SESSION_TTL_DAYS", "7")

        assert Settings().auth.session_ttl_days == 7

    def test_cors_property(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", '["https://mortiscope.example"]')

        cors = Settings().cors
        assert cors.origins == ["https://mortiscope.example"]
        assert cors.allow_credentials is True


class TestLogfireConfig:
    def test_disabled_by_default(self):
        config = LogfireConfig()

        assert config.enabled is False
        assert config.token is None

    def test_logfire_property(self, monkeypatch):
        monkeypatch.setenv("LOGFIRE_ENABLED", "true")
        monkeypatch.setenv("LOGFIRE_TOKEN", "pylf_test")
        monkeypatch.setenv("LOGFIRE_TRACE_HTTPX", "false")

        config = Settings().logfire
        assert config.enabled is True
        assert config.token == "pylf_test"
        assert config.trace_httpx is False
        assert config.trace_sqlalchemy is True
