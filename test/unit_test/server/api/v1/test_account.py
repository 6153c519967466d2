"""
Unit tests for the account endpoints: profile, password and sessions.
"""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

ACCOUNT = "/api/v1/account"
TEST_PASSWORD = "Correct-Horse-42"
NEW_PASSWORD = "Battery-Staple-77"
FIREFOX_LINUX = "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"


class TestProfile:
    async def test_get_profile(self, client: AsyncClient, auth_headers):
        response = await client.get(f"{ACCOUNT}/profile", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["email"] == "ana.cruz@example.com"

    async def test_profile_requires_sign_in(self, client: AsyncClient):
        response = await client.get(f"{ACCOUNT}/profile")

        assert response.status_code == 401

    async def test_update_profile(self, client: AsyncClient, auth_headers):
        response = await client.patch(
            f"{ACCOUNT}/profile",
            headers=auth_headers,
            json={
                "name": "Ana Dela Cruz",
                "professional_title": "Forensic Entomologist",
                "institution": "UP Diliman",
                "location": {
                    "region": "NCR",
                    "province": "Metro Manila",
                    "city": "Quezon City",
                    "barangay": "Diliman",
                },
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Ana Dela Cruz"
        assert data["professional_title"] == "Forensic Entomologist"
        assert data["location_barangay"] == "Diliman"

    async def test_empty_title_clears_it(self, client: AsyncClient, auth_headers):
        await client.patch(f"{ACCOUNT}/profile", headers=auth_headers, json={"professional_title": "Pathologist"})

        response = await client.patch(f"{ACCOUNT}/profile", headers=auth_headers, json={"professional_title": "  "})

        assert response.json()["professional_title"] is None
        assert response.json()["name"] == "Ana Cruz"

    async def test_invalid_name(self, client: AsyncClient, auth_headers):
        response = await client.patch(f"{ACCOUNT}/profile", headers=auth_headers, json={"name": "ana"})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid name provided."

    async def test_incomplete_location(self, client: AsyncClient, auth_headers):
        response = await client.patch(
            f"{ACCOUNT}/profile", headers=auth_headers, json={"location": {"region": "NCR", "city": "Quezon City"}}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Please provide a complete location (region, province, city, and barangay)."

    async def test_title_too_long(self, client: AsyncClient, auth_headers):
        response = await client.patch(
            f"{ACCOUNT}/profile", headers=auth_headers, json={"professional_title": "x" * 101}
        )

        assert response.status_code == 400
        assert "professional_title" in response.json()["details"]


class TestPassword:
    async def test_change_password(self, client: AsyncClient, auth_headers):
        response = await client.post(
            f"{ACCOUNT}/password",
            headers=auth_headers,
            json={"current_password": TEST_PASSWORD, "new_password": NEW_PASSWORD, "repeat_password": NEW_PASSWORD},
        )
        assert response.status_code == 200

        response = await client.post(
            "/api/v1/auth/sign-in", json={"email": "ana.cruz@example.com", "password": NEW_PASSWORD}
        )
        assert response.status_code == 200

    async def test_change_password_wrong_current(self, client: AsyncClient, auth_headers):
        response = await client.post(
            f"{ACCOUNT}/password",
            headers=auth_headers,
            json={"current_password": "Wrong-Horse-42", "new_password": NEW_PASSWORD},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Incorrect current password."

    async def test_change_password_weak_new_password(self, client: AsyncClient, auth_headers):
        response = await client.post(
            f"{ACCOUNT}/password",
            headers=auth_headers,
            json={"current_password": TEST_PASSWORD, "new_password": "weak"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid fields provided."

    async def test_change_password_same_as_current(self, client: AsyncClient, auth_headers):
        response = await client.post(
            f"{ACCOUNT}/password",
            headers=auth_headers,
            json={"current_password": TEST_PASSWORD, "new_password": TEST_PASSWORD},
        )

        assert response.status_code == 400
        assert response.json()["details"]["_root"] == [
            "New password must be different from the current password."
        ]

    @pytest.mark.parametrize("password, valid", [(TEST_PASSWORD, True), ("Wrong-Horse-42", False)])
    async def test_verify_password(self, client: AsyncClient, auth_headers, password, valid):
        response = await client.post(f"{ACCOUNT}/password/verify", headers=auth_headers, json={"password": password})

        assert response.status_code == 200
        assert response.json() == {"valid": valid}


class TestSessions:
    async def test_list_sessions(self, client: AsyncClient, auth_headers):
        response = await client.get(f"{ACCOUNT}/sessions", headers=auth_headers)

        assert response.status_code == 200
        sessions = response.json()
        assert len(sessions) == 1
        assert sessions[0]["browser_name"] == "Chrome"
        assert sessions[0]["os_name"] == "Windows"
        assert sessions[0]["is_current_session"] is True

    async def test_current_session(self, client: AsyncClient, auth_headers):
        response = await client.get(f"{ACCOUNT}/sessions/current", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["ip_address"] == "127.0.0.1"

    async def test_second_device_gets_its_own_session(self, client: AsyncClient, auth_headers):
        await client.post(
            "/api/v1/auth/sign-in",
            json={"email": "ana.cruz@example.com", "password": TEST_PASSWORD},
            headers={"User-Agent": FIREFOX_LINUX},
        )

        response = await client.get(f"{ACCOUNT}/sessions", headers=auth_headers)

        assert {s["browser_name"] for s in response.json()} == {"Chrome", "Firefox"}

    async def test_revoke_unknown_session(self, client: AsyncClient, auth_headers):
        response = await client.delete(f"{ACCOUNT}/sessions/unknown", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "Session not found"

    async def test_revoke_own_session_signs_out(self, client: AsyncClient, auth_headers):
        current = (await client.get(f"{ACCOUNT}/sessions/current", headers=auth_headers)).json()

        response = await client.delete(f"{ACCOUNT}/sessions/{current['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"] == {"signed_out": True}
        assert (await client.get(f"{ACCOUNT}/profile", headers=auth_headers)).status_code == 401

    async def test_revoke_all_keeps_current(self, client: AsyncClient, auth_headers):
        await client.post(
            "/api/v1/auth/sign-in",
            json={"email": "ana.cruz@example.com", "password": TEST_PASSWORD},
            headers={"User-Agent": FIREFOX_LINUX},
        )

        response = await client.post(
            f"{ACCOUNT}/sessions/revoke-all", headers=auth_headers, json={"keep_current": True}
        )

        assert response.json() == {"success": True, "revoked_count": 1}
        sessions = (await client.get(f"{ACCOUNT}/sessions", headers=auth_headers)).json()
        assert len(sessions) == 1
