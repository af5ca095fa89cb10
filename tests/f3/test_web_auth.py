"""Tests for register/login/logout/user endpoints (F3)."""

import asyncio

from portal.core import auth


def _register(client, **overrides):
    payload = {"username": "ana", "password": "secret123"}
    payload.update(overrides)
    return client.post("/api/register", json=payload)


class TestRegister:
    def test_register_creates_student(self, client):
        response = _register(client, email="ana@example.com", first_name="Ana")
        assert response.status_code == 201
        data = response.json()
        assert data["username"] == "ana"
        assert data["role"] == "student"
        assert data["first_name"] == "Ana"
        assert "password" not in data
        assert "password_hash" not in data

    def test_register_ignores_role(self, client):
        response = _register(client, role="admin")
        assert response.status_code == 201
        assert response.json()["role"] == "student"

    def test_register_duplicate(self, client):
        _register(client)
        response = _register(client)
        assert response.status_code == 409

    def test_register_weak_password(self, client):
        response = _register(client, password="123")
        assert response.status_code == 400
        assert "at least 6" in response.json()["detail"]

    def test_register_invalid_email(self, client):
        response = _register(client, email="not-an-email")
        assert response.status_code == 400
        assert "email" in response.json()["detail"].lower()

    def test_register_missing_fields(self, client):
        response = client.post("/api/register", json={"username": "ana"})
        assert response.status_code == 422


class TestLogin:
    def test_login_returns_token_and_user(self, client):
        _register(client)
        response = client.post(
            "/api/login", data={"username": "ana", "password": "secret123"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["access_token"]
        assert data["token_type"] == "bearer"
        assert data["user"]["username"] == "ana"

    def test_login_wrong_password(self, client):
        _register(client)
        response = client.post(
            "/api/login", data={"username": "ana", "password": "nope-nope"}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    def test_login_unknown_user(self, client):
        response = client.post(
            "/api/login", data={"username": "ghost", "password": "secret123"}
        )
        assert response.status_code == 401

    def test_hashing_runs_off_the_event_loop(self, client, monkeypatch):
        on_loop = []

        def recording(func):
            def wrapper(*args):
                try:
                    asyncio.get_running_loop()
                    on_loop.append(True)
                except RuntimeError:
                    on_loop.append(False)
                return func(*args)

            return wrapper

        monkeypatch.setattr(auth, "hash_password", recording(auth.hash_password))
        monkeypatch.setattr(auth, "verify_password", recording(auth.verify_password))

        assert _register(client).status_code == 201
        response = client.post(
            "/api/login", data={"username": "ana", "password": "secret123"}
        )

        assert response.status_code == 200
        assert on_loop == [False, False]


class TestCurrentUser:
    def test_user_requires_token(self, client):
        response = client.get("/api/user")
        assert response.status_code == 401

    def test_user_with_token(self, client, login_headers):
        _register(client)
        headers = login_headers("ana", "secret123")

        response = client.get("/api/user", headers=headers)

        assert response.status_code == 200
        assert response.json()["username"] == "ana"

    def test_invalid_token(self, client):
        response = client.get("/api/user", headers={"Authorization": "Bearer bogus"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"


class TestLogout:
    def test_logout_revokes_token(self, client, login_headers):
        _register(client)
        headers = login_headers("ana", "secret123")

        response = client.post("/api/logout", headers=headers)
        assert response.status_code == 200

        assert client.get("/api/user", headers=headers).status_code == 401

    def test_logout_requires_token(self, client):
        assert client.post("/api/logout").status_code == 401
