"""
Integration tests for user preference endpoints.
"""

import pytest


PREFS_URL = "/api/v1/users/me/preferences"


class TestPreferences:

    @pytest.mark.api
    def test_requires_session(self, api_client):
        assert api_client.get(PREFS_URL).status_code == 401

    @pytest.mark.api
    def test_get_defaults(self, authenticated_client):
        response = authenticated_client.get(PREFS_URL)

        assert response.status_code == 200
        assert response.json() == {
            "theme": "system",
            "timeFormat": "12h",
            "dateFormat": "MM/DD/YYYY",
            "timezone": "America/Chicago",
        }

    @pytest.mark.api
    def test_patch(self, authenticated_client):
        response = authenticated_client.patch(PREFS_URL, json={"theme": "dark", "timeFormat": "24h"})

        assert response.status_code == 200
        data = response.json()
        assert data["theme"] == "dark"
        assert data["timeFormat"] == "24h"
        assert authenticated_client.get(PREFS_URL).json()["theme"] == "dark"

    @pytest.mark.api
    def test_patch_invalid_value(self, authenticated_client):
        response = authenticated_client.patch(PREFS_URL, json={"theme": "neon"})

        assert response.status_code == 400
        assert "Invalid theme" in response.json()["detail"]

    @pytest.mark.api
    def test_patch_nothing(self, authenticated_client):
        response = authenticated_client.patch(PREFS_URL, json={})

        assert response.status_code == 400

    @pytest.mark.api
    def test_patch_for_deleted_user(self, api_client, session_issuer):
        """A session whose user is gone is unauthenticated for reads and writes alike."""
        from slotbook.db import Role
        from slotbook.services import AuthorizedIdentity
        ghost = AuthorizedIdentity(
            user_id="ghost",
            phone_number="+15550002222",
            name="Ghost",
            role=Role.CLIENT,
            setup_complete=True
        )
        api_client.headers["Authorization"] = f"Bearer {session_issuer.issue(ghost)}"

        assert api_client.get(PREFS_URL).status_code == 401
        response = api_client.patch(PREFS_URL, json={"theme": "dark"})

        assert response.status_code == 401
        assert response.json()["detail"] == "User not found"
