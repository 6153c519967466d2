from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

import httpx
import pytest
from dotenv import load_dotenv

TEST_ROOT = Path(__file__).resolve().parent
# test/.env first, then test/.env.example for defaults
load_dotenv(TEST_ROOT / ".env", override=False)
load_dotenv(TEST_ROOT / ".env.example", override=False)

# The application reads its settings at import time; point it at test resources first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("AWS_BUCKET_NAME", "mortiscope-test")
os.environ.setdefault("AWS_BUCKET_REGION", "ap-southeast-1")
os.environ.setdefault("DETECTION_SERVICE_URL", "http://detection.test")
os.environ.setdefault("ENABLE_FILE_LOGGING", "false")

from test.settings import test_settings  # noqa: E402


@pytest.fixture(scope="session")
def test_config():
    """Fixture providing test configuration from the Pydantic settings model.

    Returns:
        TestSettings: Test configuration with all environment variables loaded
    """
    return test_settings


@pytest.fixture(autouse=True)
def _global_offline_http_guard(monkeypatch: pytest.MonkeyPatch):
    """Block real outbound HTTP; mock transports and the ASGI test client stay allowed."""
    allowed_prefixes: Iterable[str] = (
        "http://mock",
        "https://mock",
        "http://localhost",
        "http://127.0.0.1",
        "http://detection.test",
        "/",
    )

    orig_async_send = httpx.AsyncClient.send

    def _is_allowed(client: httpx.AsyncClient, url_str: str) -> bool:
        if isinstance(client._transport, (httpx.MockTransport, httpx.ASGITransport)):
            return True
        return any(url_str.startswith(p) for p in allowed_prefixes)

    async def offline_async_send(self, request, *args, **kwargs):
        url_str = str(request.url)
        if not _is_allowed(self, url_str):
            raise RuntimeError(f"External HTTP blocked by global offline guard (async): {url_str}")
        return await orig_async_send(self, request, *args, **kwargs)

    monkeypatch.setattr(httpx.AsyncClient, "send", offline_async_send, raising=True)
