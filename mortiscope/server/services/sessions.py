"""
Session tracking service.

Each sign-in is recorded as a device entry: browser, operating system, device,
client address and (when a resolver is configured) coarse geo location. A
returning device re-uses its entry instead of piling up new rows.
"""

from __future__ import annotations

from datetime import timedelta
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from mortiscope.core.database.base import utc_now
from mortiscope.core.database.entities.user_sessions import UserSession
from mortiscope.core.database.repositories import UserSessionRepository
from mortiscope.core.errors import NotFoundError, ServiceFailureError
from mortiscope.core.logging_config import get_logger
from mortiscope.core.user_agent import (
    GeoLocation,
    GeoLookup,
    no_geo_lookup,
    normalize_ip_address,
    parse_user_agent,
)
from mortiscope.server.core.config import settings

logger = get_logger(__name__)


class SessionService:
    def __init__(self, session: AsyncSession, geo_lookup: GeoLookup = no_geo_lookup) -> None:
        self.session = session
        self.user_sessions = UserSessionRepository(session)
        self.geo_lookup = geo_lookup

    def _lookup(self, ip_address: str) -> GeoLocation:
        try:
            return self.geo_lookup(ip_address) or GeoLocation()
        except Exception as e:
            logger.warning(f"Geo lookup failed for {ip_address}: {e}")
            return GeoLocation()

    async def track_session(self, user_id: str, token: str, user_agent: str, ip_address: str) -> UserSession:
        """
        Record the device behind ``token``.

        - A known token has its activity, address, geo data and browser version refreshed.
        - A known device (same user, browser, OS and address) is re-pointed to the
          new token and its expiry is extended.
        - Otherwise a new, non-current session row is inserted.
        """
        try:
            parsed = parse_user_agent(user_agent)
            ip = normalize_ip_address(ip_address or "")
            geo = self._lookup(ip)
            now = utc_now()
            ttl = timedelta(days=settings.auth.session_ttl_days)

            row = await self.user_sessions.get_by_token(token)
            if row is None:
                row = await self.user_sessions.find_device_session(user_id, parsed.browser_name, parsed.os_name, ip)
                if row is not None:
                    row.session_token = token
                    row.expires_at = now + ttl
            if row is not None:
                row.last_active_at = now
                row.user_agent = user_agent
                row.ip_address = ip
                row.browser_version = parsed.browser_version
                row.country, row.region, row.city, row.timezone = geo.country, geo.region, geo.city, geo.timezone
                return await self.user_sessions.update(row)

            row = UserSession(
                user_id=user_id,
                session_token=token,
                browser_name=parsed.browser_name,
                browser_version=parsed.browser_version,
                os_name=parsed.os_name,
                os_version=parsed.os_version,
                device_type=parsed.device_type,
                device_vendor=parsed.device_vendor,
                device_model=parsed.device_model,
                user_agent=user_agent,
                ip_address=ip,
                country=geo.country,
                region=geo.region,
                city=geo.city,
                timezone=geo.timezone,
                is_current_session=False,
                last_active_at=now,
                expires_at=now + ttl,
            )
            return await self.user_sessions.create(row)
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to track session for user {user_id}: {e}", exc_info=True)
            raise ServiceFailureError("Failed to track session") from e

    async def update_session_activity(self, token: str) -> None:
        await self.user_sessions.touch(token)

    async def mark_current_session(self, token: str, user_id: str) -> None:
        await self.user_sessions.set_current(token, user_id)

    async def get_user_sessions(self, user_id: str) -> List[UserSession]:
        return await self.user_sessions.list_active_for_user(user_id)

    async def get_current_session(self, token: str) -> Optional[UserSession]:
        return await self.user_sessions.get_active_by_token(token)

    async def revoke_session(self, user_id: str, session_id: str, current_token: Optional[str] = None) -> bool:
        """
        Revoke one of the user's sessions.

        Returns:
            True when the revoked session is the calling one (the caller is now signed out).
        """
        row = await self.user_sessions.get_by_id(session_id)
        if row is None or row.user_id != user_id:
            raise NotFoundError("Session not found")
        was_current = current_token is not None and row.session_token == current_token
        try:
            await self.user_sessions.delete(row.id)
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to revoke session {session_id}: {e}", exc_info=True)
            raise ServiceFailureError("Failed to revoke session") from e
        logger.info(f"Session {session_id} revoked by user {user_id}")
        return was_current

    async def revoke_all_sessions(self, user_id: str, current_token: Optional[str], keep_current: bool = True) -> int:
        keep = current_token if keep_current else None
        count = await self.user_sessions.delete_for_user(user_id, keep_token=keep)
        logger.info(f"Revoked {count} session(s) of user {user_id}")
        return count
