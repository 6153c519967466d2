"""Unit tests for user and user session repositories."""

from __future__ import annotations

from datetime import timedelta

import pytest

from mortiscope.core.database.base import utc_now
from mortiscope.core.database.entities.user_sessions import UserSession
from mortiscope.core.database.repositories import UserRepository, UserSessionRepository


class TestUserRepository:
    async def test_get_by_email_ignores_case(self, in_memory_session, user):
        repository = UserRepository(in_memory_session)

        assert (await repository.get_by_email("  Maria.Santos@Example.com ")).id == user.id
        assert await repository.get_by_email("nobody@example.com") is None


class TestUserSessionRepository:
    """Tests for UserSessionRepository operations."""

    @pytest.fixture
    def repository(self, in_memory_session):
        return UserSessionRepository(in_memory_session)

    async def _session(self, repository, user, token, **values) -> UserSession:
        fields = {"browser_name": "Chrome", "os_name": "Windows", "ip_address": "10.0.0.1"}
        fields.update(values)
        fields.setdefault("expires_at", utc_now() + timedelta(days=30))
        return await repository.create(UserSession(user_id=user.id, session_token=token, **fields))

    async def test_expired_sessions_are_inactive(self, repository, user):
        await self._session(repository, user, "live")
        await self._session(repository, user, "stale", expires_at=utc_now() - timedelta(minutes=1))

        assert (await repository.get_active_by_token("live")).session_token == "live"
        assert await repository.get_active_by_token("stale") is None
        assert (await repository.get_by_token("stale")).session_token == "stale"
        assert [s.session_token for s in await repository.list_active_for_user(user.id)] == ["live"]

    async def test_find_device_session(self, repository, user):
        await self._session(repository, user, "old", last_active_at=utc_now() - timedelta(days=2))
        await self._session(repository, user, "recent")
        await self._session(repository, user, "phone", browser_name="Safari", os_name="iOS")

        found = await repository.find_device_session(user.id, "Chrome", "Windows", "10.0.0.1")

        assert found.session_token == "recent"
        assert await repository.find_device_session(user.id, "Firefox", "Linux", "10.0.0.1") is None

    async def test_set_current(self, repository, in_memory_session, user):
        first = await self._session(repository, user, "first", is_current_session=True)
        second = await self._session(repository, user, "second")

        await repository.set_current("second", user.id)

        assert (await in_memory_session.get(UserSession, first.id, populate_existing=True)).is_current_session is False
        assert (await in_memory_session.get(UserSession, second.id, populate_existing=True)).is_current_session is True

    async def test_touch(self, repository, in_memory_session, user):
        stale = utc_now() - timedelta(hours=3)
        created = await self._session(repository, user, "token", last_active_at=stale)

        assert await repository.touch("token") == 1
        refreshed = await in_memory_session.get(UserSession, created.id, populate_existing=True)
        assert refreshed.last_active_at > stale

    async def test_delete_for_user_keeps_token(self, repository, user):
        for token in ("a", "b", "c"):
            await self._session(repository, user, token)

        assert await repository.delete_for_user(user.id, keep_token="b") == 2
        assert [s.session_token for s in await repository.list_active_for_user(user.id)] == ["b"]
        assert await repository.delete_for_user(user.id) == 1
