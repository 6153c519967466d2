"""
User session repository implementation.

Data access for signed-in devices: token lookup, device matching and the
"current session" flag.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..base import utc_now
from ..entities.user_sessions import UserSession
from .base import SQLModelRepository


class UserSessionRepository(SQLModelRepository[UserSession]):
    """Repository for user session data access operations using SQLModel."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, UserSession)

    async def get_by_token(self, token: str) -> Optional[UserSession]:
        stmt = select(UserSession).where(UserSession.session_token == token)
        return await self._first(stmt)

    async def get_active_by_token(self, token: str, now: Optional[datetime] = None) -> Optional[UserSession]:
        """Get the session for ``token`` unless it has expired."""
        stmt = select(UserSession).where(
            (UserSession.session_token == token) & (UserSession.expires_at > (now or utc_now()))
        )
        return await self._first(stmt)

    async def find_device_session(
        self, user_id: str, browser_name: str, os_name: str, ip_address: str
    ) -> Optional[UserSession]:
        """Most recently active session of the same user on the same device."""
        stmt = (
            select(UserSession)
            .where(
                (UserSession.user_id == user_id)
                & (UserSession.browser_name == browser_name)
                & (UserSession.os_name == os_name)
                & (UserSession.ip_address == ip_address)
            )
            .order_by(UserSession.last_active_at.desc())  # type: ignore[attr-defined]
        )
        return await self._first(stmt)

    async def list_active_for_user(self, user_id: str, now: Optional[datetime] = None) -> List[UserSession]:
        """Unexpired sessions of a user, most recently active first."""
        stmt = (
            select(UserSession)
            .where((UserSession.user_id == user_id) & (UserSession.expires_at > (now or utc_now())))
            .order_by(UserSession.last_active_at.desc())  # type: ignore[attr-defined]
        )
        return await self._all(stmt)

    async def touch(self, token: str) -> int:
        """Refresh ``last_active_at`` of the session holding ``token``."""
        stmt = update(UserSession).where(UserSession.session_token == token).values(last_active_at=utc_now())
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount or 0

    async def set_current(self, token: str, user_id: str) -> None:
        """Flag the session holding ``token`` as the only current session of the user."""
        await self.session.execute(
            update(UserSession).where(UserSession.user_id == user_id).values(is_current_session=False)
        )
        await self.session.execute(
            update(UserSession)
            .where((UserSession.user_id == user_id) & (UserSession.session_token == token))
            .values(is_current_session=True)
        )
        await self.session.commit()

    async def delete_for_user(self, user_id: str, keep_token: Optional[str] = None) -> int:
        """Delete every session of a user, optionally sparing one token."""
        stmt = delete(UserSession).where(UserSession.user_id == user_id)
        if keep_token is not None:
            stmt = stmt.where(UserSession.session_token != keep_token)
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount or 0
