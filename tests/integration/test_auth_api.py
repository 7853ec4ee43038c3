"""
Integration Tests: /register, /login, /logout and the auth gate
"""

from __future__ import annotations

import pytest

from docvault.models.document import Document
from docvault.models.session import AuthSession


@pytest.mark.integration
class TestRegister:

    async def test_register(self, client):
        resp = await client.post("/register", json={"email": "alice@example.com", "password": "secret1"})
        assert resp.status_code == 200
        assert resp.json() == {"message": "Account created!", "success": True}

    async def test_register_twice_conflicts(self, client):
        body = {"email": "alice@example.com", "password": "secret1"}
        await client.post("/register", json=body)
        resp = await client.post("/register", json=body)
        assert resp.status_code == 409
        assert resp.json()["success"] is False

    @pytest.mark.parametrize("body", [
        {"email": "email-invalido", "password": "secret1"},
        {"email": "bob@example.com", "password": "12345"},
        {"email": "bob@example.com", "password": "x" * 33},
        {"email": "bob@example.com"},
    ])
    async def test_invalid_body(self, client, body):
        resp = await client.post("/register", json=body)
        assert resp.status_code == 400
        assert resp.json()["success"] is False


@pytest.mark.integration
class TestLogin:

    async def test_login_returns_40_char_session(self, client):
        await client.post("/register", json={"email": "alice@example.com", "password": "secret1"})
        resp = await client.post("/login", json={"email": "alice@example.com", "password": "secret1"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert len(body["session"]) == 40

    async def test_wrong_password_and_unknown_email_are_distinct(self, client):
        await client.post("/register", json={"email": "alice@example.com", "password": "secret1"})

        wrong = await client.post("/login", json={"email": "alice@example.com", "password": "secret2"})
        unknown = await client.post("/login", json={"email": "carol@example.com", "password": "secret1"})

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json()["message"] == "AUTH_INVALID_PASSWORD"
        assert unknown.json()["message"] == "AUTH_INVALID_KEY_ID"

    async def test_unified_credential_message(self, client, settings):
        settings.unify_credential_errors = True
        await client.post("/register", json={"email": "alice@example.com", "password": "secret1"})

        wrong = await client.post("/login", json={"email": "alice@example.com", "password": "secret2"})
        unknown = await client.post("/login", json={"email": "carol@example.com", "password": "secret1"})

        assert wrong.json()["message"] == unknown.json()["message"] == "Invalid credentials"


@pytest.mark.integration
class TestAuthGate:

    async def test_missing_token(self, client):
        resp = await client.get("/getDocuments")
        assert resp.status_code == 401
        assert resp.headers["WWW-Authenticate"] == "Bearer"

    async def test_garbage_token(self, client):
        resp = await client.get("/getDocuments", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401

    async def test_non_bearer_scheme(self, client, login):
        headers = await login()
        token = headers["Authorization"].split(" ", 1)[1]
        resp = await client.get("/getDocuments", headers={"Authorization": f"Basic {token}"})
        assert resp.status_code == 401

    async def test_valid_token(self, client, login):
        resp = await client.get("/getDocuments", headers=await login())
        assert resp.status_code == 200
        assert resp.json() == {"docs": [], "success": True}

    async def test_expired_session_stops_the_chain(self, client, login, db, invoice_pdf):
        headers = await login()
        db.query(AuthSession).update({"active_expires": 0, "idle_expires": 0})
        db.commit()

        resp = await client.post(
            "/uploadDocument", headers=headers,
            files={"document": ("invoice.pdf", invoice_pdf, "application/pdf")},
        )

        assert resp.status_code == 401
        assert db.query(Document).count() == 0
        assert db.query(AuthSession).count() == 0

    async def test_logout_destroys_session(self, client, login):
        headers = await login()
        assert (await client.post("/logout", headers=headers)).status_code == 200
        assert (await client.get("/getDocuments", headers=headers)).status_code == 401

    async def test_public_paths(self, client):
        assert (await client.get("/health")).status_code == 200
        assert (await client.get("/")).status_code == 200
