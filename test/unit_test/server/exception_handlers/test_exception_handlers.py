"""
Unit tests for server exception handlers.

Tests cover service errors, request validation messages declared per route
and the global handler for unexpected exceptions.
"""

import json
from unittest.mock import Mock, patch

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel, field_validator

from mortiscope.core.errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    ServiceFailureError,
    UnauthorizedError,
)
from mortiscope.server.exception_handlers import invalid_input, setup_exception_handlers
from mortiscope.server.exception_handlers.global_handler import (
    global_exception_handler,
    service_error_handler,
)


class _Payload(BaseModel):
    name: str
    age: int

    @field_validator("name")
    @classmethod
    def capitalized(cls, value: str) -> str:
        if not value[:1].isupper():
            raise ValueError("Start with a capital letter.")
        return value


def _build_app() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)

    @app.post("/plain")
    async def plain(payload: _Payload):
        return {"ok": True}

    @app.post("/worded", openapi_extra=invalid_input("Invalid details."))
    async def worded(payload: _Payload):
        return {"ok": True}

    @app.post("/first", openapi_extra=invalid_input("Invalid details.", use_first_error=True))
    async def first(payload: _Payload):
        return {"ok": True}

    @app.get("/missing")
    async def missing():
        raise NotFoundError("Case not found.")

    @app.get("/broken")
    async def broken():
        raise RuntimeError("boom")

    return app


@pytest.fixture
async def handler_client():
    app = _build_app()
    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False), base_url="http://localhost"
    ) as client:
        yield client


class TestServiceErrors:
    """Test suite for the MortiScopeError hierarchy and its handler."""

    @pytest.mark.parametrize(
        "error_cls, status_code",
        [
            (InvalidInputError, 400),
            (UnauthorizedError, 401),
            (NotFoundError, 404),
            (ConflictError, 409),
            (ServiceFailureError, 500),
        ],
    )
    def test_status_codes(self, error_cls, status_code):
        assert error_cls("x").status_code == status_code

    def test_to_dict_omits_empty_details(self):
        assert InvalidInputError("Invalid input.").to_dict() == {"success": False, "error": "Invalid input."}

    def test_to_dict_includes_details(self):
        body = InvalidInputError("Invalid input.", details={"name": ["Required."]}).to_dict()
        assert body["details"] == {"name": ["Required."]}

    @pytest.mark.asyncio
    async def test_handler_uses_error_status(self):
        request = Mock(spec=Request)
        request.method = "GET"
        request.url.path = "/api/v1/cases/x"

        response = await service_error_handler(request, NotFoundError("Case not found."))

        assert response.status_code == 404
        assert json.loads(response.body) == {"success": False, "error": "Case not found."}

    @pytest.mark.asyncio
    async def test_handler_logs_failures_as_errors(self):
        request = Mock(spec=Request)
        request.method = "POST"
        request.url.path = "/api/v1/cases"

        with patch("mortiscope.server.exception_handlers.global_handler.logger") as mock_logger:
            await service_error_handler(request, ServiceFailureError("An unexpected error occurred."))

            mock_logger.error.assert_called_once()
            mock_logger.info.assert_not_called()

    @pytest.mark.asyncio
    async def test_raised_service_error_reaches_client(self, handler_client):
        response = await handler_client.get("/missing")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Case not found."}


class TestRequestValidationHandler:
    """Test suite for per-route invalid input messages."""

    @pytest.mark.asyncio
    async def test_default_message(self, handler_client):
        response = await handler_client.post("/plain", json={"name": "Ana"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Invalid input provided."
        assert "age" in body["details"]

    @pytest.mark.asyncio
    async def test_route_message(self, handler_client):
        response = await handler_client.post("/worded", json={"name": "ana", "age": 3})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid details."

    @pytest.mark.asyncio
    async def test_first_error_replaces_message(self, handler_client):
        response = await handler_client.post("/first", json={"name": "ana", "age": 3})

        body = response.json()
        assert body["error"] == "Start with a capital letter."
        assert body["details"] == {"name": ["Start with a capital letter."]}

    @pytest.mark.asyncio
    async def test_invalid_json_body(self, handler_client):
        response = await handler_client.post(
            "/worded", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid details."

    def test_invalid_input_extension(self):
        assert invalid_input("Invalid input.") == {"x-invalid-input-message": "Invalid input."}
        assert invalid_input("Invalid input.", use_first_error=True)["x-invalid-input-use-first-error"] is True


class TestGlobalExceptionHandler:
    """Test suite for global exception handler."""

    @pytest.fixture
    def mock_request(self):
        """Create a mock request object."""
        request = Mock(spec=Request)
        request.method = "GET"
        request.url.path = "/api/v1/test"
        request.query_params = {}
        request.client = Mock()
        request.client.host = "127.0.0.1"
        return request

    @pytest.mark.asyncio
    async def test_exception_handler_logs_error(self, mock_request):
        """Test that exception handler logs errors."""
        exc = ValueError("Test error")

        with patch("mortiscope.server.exception_handlers.global_handler.logger") as mock_logger:
            await global_exception_handler(mock_request, exc)

            mock_logger.error.assert_called_once()
            call_args = mock_logger.error.call_args
            assert "Unhandled exception" in call_args[0][0]
            assert call_args[1]["extra"]["error_type"] == "ValueError"
            assert call_args[1]["extra"]["client"] == "127.0.0.1"

    @pytest.mark.asyncio
    async def test_exception_handler_response_body(self, mock_request):
        exc = RuntimeError("Test error")

        with patch("mortiscope.server.exception_handlers.global_handler.logger"):
            response = await global_exception_handler(mock_request, exc)

        assert isinstance(response, JSONResponse)
        assert response.status_code == 500
        body = json.loads(response.body.decode())
        assert body["success"] is False
        assert body["error"] == "Internal server error"
        assert body["error_id"] == id(exc)
        assert body["error_type"] == "RuntimeError"

    @pytest.mark.asyncio
    async def test_exception_handler_without_client(self, mock_request):
        mock_request.client = None

        with patch("mortiscope.server.exception_handlers.global_handler.logger") as mock_logger:
            await global_exception_handler(mock_request, RuntimeError("x"))

            assert mock_logger.error.call_args[1]["extra"]["client"] == "unknown"

    @pytest.mark.asyncio
    async def test_unhandled_exception_reaches_client_as_500(self, handler_client):
        response = await handler_client.get("/broken")

        assert response.status_code == 500
        assert response.json()["error_type"] == "RuntimeError"
