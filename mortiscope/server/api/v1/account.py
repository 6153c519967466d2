"""
Account endpoints: profile, password and signed-in devices.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter

from mortiscope.core.models.io import ActionResult
from mortiscope.core.models.io.account import (
    ChangePasswordRequest,
    ProfileUpdate,
    RevokeAllSessionsRequest,
    RevokeAllSessionsResponse,
    UserSessionRead,
    VerifyPasswordRequest,
    VerifyPasswordResponse,
)
from mortiscope.core.models.io.auth import UserRead
from mortiscope.server.exception_handlers import invalid_input
from mortiscope.server.services.account import AccountService
from mortiscope.server.services.auth import to_user_read
from mortiscope.server.services.deps import CurrentUser, GeoLookupDep, SessionDep, TokenDep
from mortiscope.server.services.sessions import SessionService

router = APIRouter(tags=["account"])


@router.get(
    "/profile",
    response_model=UserRead,
    summary="Get Profile",
    description="Return the caller's profile.",
)
async def get_profile(user: CurrentUser, session: SessionDep) -> UserRead:
    return to_user_read(await AccountService(session).get_profile(user.id))


@router.patch(
    "/profile",
    response_model=UserRead,
    summary="Update Profile",
    description="Update name, professional title, institution or location. An empty title or institution clears it.",
    responses={400: {"description": "Invalid name or incomplete location"}},
    openapi_extra=invalid_input("Invalid fields provided.", use_first_error=True),
)
async def update_profile(payload: ProfileUpdate, user: CurrentUser, session: SessionDep) -> UserRead:
    """
    Update the caller's profile.

    Only the fields present in the body are touched. A location must name the region,
    province, city and barangay together.
    """
    return to_user_read(await AccountService(session).update_profile(user.id, payload))


@router.post(
    "/password",
    response_model=ActionResult,
    summary="Change Password",
    description="Replace the caller's password after checking the current one.",
    responses={400: {"description": "Invalid fields, provider account or wrong current password"}},
    openapi_extra=invalid_input("Invalid fields provided."),
)
async def change_password(payload: ChangePasswordRequest, user: CurrentUser, session: SessionDep) -> ActionResult:
    await AccountService(session).change_password(user.id, payload)
    return ActionResult(message="Password updated successfully.")


@router.post(
    "/password/verify",
    response_model=VerifyPasswordResponse,
    summary="Verify Password",
    description="Check a password against the caller's current one.",
)
async def verify_password(
    payload: VerifyPasswordRequest, user: CurrentUser, session: SessionDep
) -> VerifyPasswordResponse:
    valid = await AccountService(session).verify_current_password(user.id, payload.password)
    return VerifyPasswordResponse(valid=valid)


@router.get(
    "/sessions",
    response_model=List[UserSessionRead],
    summary="List Sessions",
    description="The caller's unexpired sessions, most recently active first.",
)
async def list_sessions(user: CurrentUser, session: SessionDep) -> List[UserSessionRead]:
    rows = await SessionService(session).get_user_sessions(user.id)
    return [UserSessionRead.model_validate(row) for row in rows]


@router.get(
    "/sessions/current",
    response_model=Optional[UserSessionRead],
    summary="Current Session",
    description="The session behind the bearer token.",
)
async def current_session(user: CurrentUser, session: SessionDep, token: TokenDep) -> Optional[UserSessionRead]:
    row = await SessionService(session).get_current_session(token or "")
    return UserSessionRead.model_validate(row) if row else None


@router.delete(
    "/sessions/{session_id}",
    response_model=ActionResult,
    summary="Revoke Session",
    description="Sign one of the caller's devices out. Revoking the calling session signs the caller out.",
    responses={404: {"description": "Session not found"}},
)
async def revoke_session(
    session_id: str,
    user: CurrentUser,
    session: SessionDep,
    token: TokenDep,
    geo_lookup: GeoLookupDep,
) -> ActionResult:
    signed_out = await SessionService(session, geo_lookup).revoke_session(user.id, session_id, token)
    return ActionResult(message="Session revoked.", data={"signed_out": signed_out})


@router.post(
    "/sessions/revoke-all",
    response_model=RevokeAllSessionsResponse,
    summary="Revoke All Sessions",
    description="Sign every device out, optionally keeping the calling session.",
)
async def revoke_all_sessions(
    payload: RevokeAllSessionsRequest, user: CurrentUser, session: SessionDep, token: TokenDep
) -> RevokeAllSessionsResponse:
    count = await SessionService(session).revoke_all_sessions(user.id, token, payload.keep_current)
    return RevokeAllSessionsResponse(revoked_count=count)
