"""
Service error hierarchy.

Every operation of the service layer reports an expected failure by raising one of
these exceptions. Each carries the user-facing ``message`` and the HTTP status the
API layer answers with; ``details`` optionally holds field-level validation errors.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class MortiScopeError(Exception):
    """Base class for expected, user-facing failures."""

    status_code: int = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class InvalidInputError(MortiScopeError):
    status_code = 400


class UnauthorizedError(MortiScopeError):
    status_code = 401


class ForbiddenError(MortiScopeError):
    status_code = 403


class NotFoundError(MortiScopeError):
    status_code = 404


class ConflictError(MortiScopeError):
    status_code = 409


class ServiceFailureError(MortiScopeError):
    status_code = 500
