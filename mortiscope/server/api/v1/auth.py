"""
Authentication endpoints.

Email/password sign-up and sign-in issue a bearer session token; every other
endpoint resolves the caller from ``Authorization: Bearer <token>``.
"""

from __future__ import annotations

from fastapi import APIRouter, status

from mortiscope.core.errors import UnauthorizedError
from mortiscope.core.logging_config import get_logger
from mortiscope.core.models.io import ActionResult
from mortiscope.core.models.io.auth import AuthTokenResponse, SignInRequest, SignUpRequest, UserRead
from mortiscope.server.exception_handlers import invalid_input
from mortiscope.server.services.auth import AuthService, to_user_read
from mortiscope.server.services.deps import ClientInfoDep, CurrentUser, GeoLookupDep, SessionDep, TokenDep

logger = get_logger(__name__)

router = APIRouter(tags=["auth"])


@router.post(
    "/sign-up",
    response_model=AuthTokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sign Up",
    description="Register a new account with email and password and open a session for it.",
    responses={
        201: {"description": "Account created, session token issued"},
        400: {"description": "Invalid details"},
        409: {"description": "Email already registered"},
    },
    openapi_extra=invalid_input("Invalid details.", use_first_error=True),
)
async def sign_up(
    payload: SignUpRequest,
    session: SessionDep,
    client: ClientInfoDep,
    geo_lookup: GeoLookupDep,
) -> AuthTokenResponse:
    """
    Create an account.

    - **name**: 2 to 50 characters, every word capitalized.
    - **email**: A well-formed address, unique across accounts.
    - **password** / **confirm_password**: 12 to 128 characters mixing upper and lower
      case letters, digits and symbols.
    """
    return await AuthService(session, geo_lookup).sign_up(payload, client.user_agent, client.ip_address)


@router.post(
    "/sign-in",
    response_model=AuthTokenResponse,
    summary="Sign In",
    description="Exchange email and password for a session token valid for 30 days.",
    responses={
        200: {"description": "Session token issued"},
        400: {"description": "Invalid credentials provided"},
        401: {"description": "Invalid email or password"},
    },
    openapi_extra=invalid_input("Invalid credentials provided."),
)
async def sign_in(
    payload: SignInRequest,
    session: SessionDep,
    client: ClientInfoDep,
    geo_lookup: GeoLookupDep,
) -> AuthTokenResponse:
    return await AuthService(session, geo_lookup).sign_in(payload, client.user_agent, client.ip_address)


@router.post(
    "/sign-out",
    response_model=ActionResult,
    summary="Sign Out",
    description="Revoke the session behind the bearer token.",
    responses={401: {"description": "No session token supplied"}},
)
async def sign_out(session: SessionDep, token: TokenDep) -> ActionResult:
    if not token:
        raise UnauthorizedError("Unauthorized")
    await AuthService(session).sign_out(token)
    return ActionResult(message="Signed out.")


@router.get(
    "/me",
    response_model=UserRead,
    summary="Current User",
    description="Return the account behind the bearer token.",
    responses={401: {"description": "Missing, unknown or expired token"}},
)
async def me(user: CurrentUser) -> UserRead:
    return to_user_read(user)
