"""
Request validation errors.

Each endpoint words an invalid payload its own way. Routes declare that wording
with ``openapi_extra=invalid_input(...)``; the handler reads it back from the
matched route and answers ``{"success": false, "error": ..., "details": {field: [messages]}}``.
"""

from typing import Any, Dict, List

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mortiscope.core.logging_config import get_logger

logger = get_logger(__name__)

MESSAGE_KEY = "x-invalid-input-message"
FIRST_ERROR_KEY = "x-invalid-input-use-first-error"
DEFAULT_MESSAGE = "Invalid input provided."

_VALUE_ERROR_PREFIX = "Value error, "


def invalid_input(message: str, use_first_error: bool = False) -> Dict[str, Any]:
    """
    OpenAPI extension declaring how a route reports an invalid payload.

    Args:
        message: The error message (the fallback when ``use_first_error`` is set)
        use_first_error: Report the first field message instead, when there is one
    """
    extra: Dict[str, Any] = {MESSAGE_KEY: message}
    if use_first_error:
        extra[FIRST_ERROR_KEY] = True
    return extra


def _clean(message: str) -> str:
    if message.startswith(_VALUE_ERROR_PREFIX):
        return message[len(_VALUE_ERROR_PREFIX) :]
    return message


def field_errors(exc: RequestValidationError) -> Dict[str, List[str]]:
    """Group validation messages by dotted field path, without the body/query prefix."""
    details: Dict[str, List[str]] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        details.setdefault(".".join(loc) or "_root", []).append(_clean(error.get("msg", "")))
    return details


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    route = request.scope.get("route")
    extra = getattr(route, "openapi_extra", None) or {}
    details = field_errors(exc)

    message = extra.get(MESSAGE_KEY, DEFAULT_MESSAGE)
    if extra.get(FIRST_ERROR_KEY):
        first = next((msgs[0] for msgs in details.values() if msgs), None)
        message = first or message

    logger.info(f"Invalid input for {request.method} {request.url.path}: {details}")
    return JSONResponse(status_code=400, content={"success": False, "error": message, "details": details})
