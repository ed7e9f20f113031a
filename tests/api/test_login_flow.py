"""
End-to-end login flow: request a code, sign in, finish setup.
"""

import pytest


class TestLoginFlow:

    @pytest.mark.api
    def test_first_login_then_setup(self, api_client, services):
        sent = api_client.post("/api/v1/auth/send-code", json={"phone": "(414) 861-6375"})
        assert sent.status_code == 200
        normalized = sent.json()["normalized"]
        assert normalized == "+14148616375"

        rejected = api_client.post("/api/v1/auth/verify", json={"phoneNumber": "4148616375", "code": "000000"})
        assert rejected.status_code == 401
        assert services.users.get_by_phone(normalized) is None

        signed_in = api_client.post("/api/v1/auth/verify", json={"phoneNumber": "4148616375", "code": "123456"})
        assert signed_in.status_code == 200
        user = signed_in.json()["user"]
        assert user["role"] == "CLIENT"
        assert user["name"] == "User 6375"
        assert user["isNewUser"] is True

        api_client.headers["Authorization"] = f"Bearer {signed_in.json()['access_token']}"
        setup = api_client.post("/api/v1/setup/complete", json={"name": "Dana"})
        assert setup.status_code == 200

        api_client.headers["Authorization"] = f"Bearer {setup.json()['access_token']}"
        session = api_client.get("/api/v1/auth/session").json()
        assert session["setupComplete"] is True
        assert session["id"] == user["id"]

    @pytest.mark.api
    def test_code_cannot_be_replayed(self, api_client):
        body = {"phoneNumber": "4148616375", "code": "123456"}
        api_client.post("/api/v1/auth/send-code", json={"phone": "4148616375"})

        assert api_client.post("/api/v1/auth/verify", json=body).status_code == 200
        assert api_client.post("/api/v1/auth/verify", json=body).status_code == 401

    @pytest.mark.api
    def test_returning_user_keeps_identity(self, api_client, services):
        api_client.post("/api/v1/auth/send-code", json={"phone": "4148616375"})
        first = api_client.post("/api/v1/auth/verify", json={"phoneNumber": "4148616375", "code": "123456"})

        api_client.post("/api/v1/auth/send-code", json={"phone": "+1 414 861 6375"})
        second = api_client.post("/api/v1/auth/verify", json={"phoneNumber": "+14148616375", "code": "123456"})

        assert second.status_code == 200
        assert second.json()["user"]["id"] == first.json()["user"]["id"]
        assert second.json()["user"]["isNewUser"] is False
