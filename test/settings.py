"""
Test Configuration Settings.

Test environment configuration using Pydantic's BaseSettings, loaded from
``test/.env`` when present. Unit tests run against an in-memory SQLite database
and mocked storage / detection service, so every field has a usable default.
"""

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TestDatabaseConfig(BaseModel):
    """Database configuration container for tests."""

    url: str = Field(
        default="sqlite+aiosqlite:///:memory:",
        description="Test database connection URL (defaults to in-memory SQLite)",
    )
    enable_postgres_tests: bool = Field(
        default=False,
        description="Enable PostgreSQL-based tests (requires PostgreSQL running)",
    )


class TestStorageConfig(BaseModel):
    """Object storage values used when building the real S3 wrapper in tests."""

    bucket_name: str = Field(default="mortiscope-test")
    bucket_region: str = Field(default="ap-southeast-1")


class TestSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).parent / ".env"),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    database: TestDatabaseConfig = Field(default_factory=TestDatabaseConfig)
    storage: TestStorageConfig = Field(default_factory=TestStorageConfig)
    detection_service_url: str = Field(default="http://detection.test")


test_settings = TestSettings()
