"""
Authentication service.

Accounts sign in with email and password and receive an opaque bearer token
backed by a ``user_sessions`` row. Every authenticated request resolves the
user from that token and refreshes the session's last activity.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mortiscope.core.database.base import utc_now
from mortiscope.core.database.entities.users import User
from mortiscope.core.database.repositories import UserRepository, UserSessionRepository
from mortiscope.core.errors import ConflictError, ServiceFailureError, UnauthorizedError
from mortiscope.core.logging_config import get_logger
from mortiscope.core.models.io.auth import AuthTokenResponse, SignInRequest, SignUpRequest, UserRead
from mortiscope.core.security import generate_session_token, hash_password, verify_password
from mortiscope.core.user_agent import GeoLookup, no_geo_lookup
from mortiscope.server.core.config import settings

from .sessions import SessionService

logger = get_logger(__name__)


def to_user_read(user: User) -> UserRead:
    read = UserRead.model_validate(user)
    read.has_password = bool(user.password_hash)
    return read


class AuthService:
    """Sign-up, sign-in, sign-out and token resolution."""

    def __init__(self, session: AsyncSession, geo_lookup: GeoLookup = no_geo_lookup) -> None:
        self.session = session
        self.users = UserRepository(session)
        self.user_sessions = UserSessionRepository(session)
        self.geo_lookup = geo_lookup

    async def sign_up(self, payload: SignUpRequest, user_agent: str = "", ip_address: str = "") -> AuthTokenResponse:
        if await self.users.get_by_email(payload.email) is not None:
            raise ConflictError("This email is already registered.")

        user = User(name=payload.name, email=payload.email, password_hash=hash_password(payload.password))
        try:
            await self.users.create(user)
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictError("This email is already registered.") from e
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Sign-up failed for {payload.email}: {e}", exc_info=True)
            raise ServiceFailureError("An unexpected error occurred.") from e

        logger.info(f"User registered: {user.id}")
        return await self._issue_token(user, user_agent, ip_address)

    async def sign_in(self, payload: SignInRequest, user_agent: str = "", ip_address: str = "") -> AuthTokenResponse:
        user = await self.users.get_by_email(payload.email)
        if user is None or not verify_password(payload.password, user.password_hash):
            logger.info("Sign-in rejected: invalid email or password")
            raise UnauthorizedError("Invalid email or password.")
        return await self._issue_token(user, user_agent, ip_address)

    async def _issue_token(self, user: User, user_agent: str, ip_address: str) -> AuthTokenResponse:
        auth = settings.auth
        token = generate_session_token(auth.session_token_bytes)
        sessions = SessionService(self.session, self.geo_lookup)
        row = await sessions.track_session(user.id, token, user_agent, ip_address)
        row.expires_at = utc_now() + timedelta(days=auth.session_ttl_days)
        await self.user_sessions.update(row)
        await sessions.mark_current_session(token, user.id)
        return AuthTokenResponse(access_token=token, expires_at=row.expires_at, user=to_user_read(user))

    async def sign_out(self, token: str) -> None:
        row = await self.user_sessions.get_by_token(token)
        if row is not None:
            await self.user_sessions.delete(row.id)

    async def resolve_user(self, token: str) -> Optional[User]:
        """User owning an unexpired session ``token``; refreshes the session's activity."""
        row = await self.user_sessions.get_active_by_token(token)
        if row is None:
            return None
        user = await self.users.get_by_id(row.user_id)
        if user is not None:
            await SessionService(self.session).update_session_activity(token)
        return user
