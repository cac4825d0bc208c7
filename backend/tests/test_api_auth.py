"""Tests for authentication API endpoints."""

from fastapi.testclient import TestClient
from jose import jwt

from gamerec.core.config import get_settings
from gamerec.models.user import UserProfile


class TestRegister:
    """Test user registration endpoint."""

    def test_register_success(self, client: TestClient, db):
        """Should register a new user, create a profile and return a token."""
        response = client.post(
            "/auth/register",
            json={"login": "new_player", "password": "secret123"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["user"]["login"] == "new_player"
        assert data["user"]["username"] == "new_player"
        assert "password" not in data["user"]
        assert "password_hash" not in data["user"]
        assert data["token"]

        profile = db.query(UserProfile).filter(UserProfile.user_id == data["user"]["id"]).first()
        assert profile is not None
        assert profile.preferred_language == "ru"

    def test_register_duplicate_login(self, client: TestClient, test_user):
        """Should reject a login that is already taken with 409."""
        response = client.post(
            "/auth/register",
            json={"login": "testuser", "password": "secret123"},
        )

        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["statusCode"] == 409
        assert "taken" in body["message"].lower()

    def test_register_invalid_login(self, client: TestClient):
        """Should reject logins with characters outside [A-Za-z0-9_]."""
        response = client.post(
            "/auth/register",
            json={"login": "bad login!", "password": "secret123"},
        )

        assert response.status_code == 422

    def test_register_short_password(self, client: TestClient):
        """Should reject passwords that are too short."""
        response = client.post(
            "/auth/register",
            json={"login": "shorty", "password": "12345"},
        )

        assert response.status_code == 422


class TestLogin:
    """Test login endpoint."""

    def test_login_success(self, client: TestClient, test_user):
        """Should return the user and a token carrying id, login and username."""
        response = client.post(
            "/auth/login",
            json={"login": "testuser", "password": "testpassword123"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["id"] == test_user.id

        settings = get_settings()
        payload = jwt.decode(data["token"], settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        assert payload["sub"] == str(test_user.id)
        assert payload["login"] == "testuser"
        assert payload["username"] == "testuser"
        assert "exp" in payload

    def test_login_wrong_password(self, client: TestClient, test_user):
        """Should reject wrong password with 401."""
        response = client.post(
            "/auth/login",
            json={"login": "testuser", "password": "wrongpassword"},
        )

        assert response.status_code == 401

    def test_login_unknown_user(self, client: TestClient):
        """Should reject unknown login with 401."""
        response = client.post(
            "/auth/login",
            json={"login": "nobody", "password": "whatever1"},
        )

        assert response.status_code == 401


class TestValidate:
    """Test token validation endpoint."""

    def test_validate_with_token(self, client: TestClient, test_user, auth_headers):
        response = client.get("/auth/validate", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["valid"] is True
        assert data["user"] == {"id": test_user.id, "login": "testuser", "username": "testuser"}

    def test_validate_without_token(self, client: TestClient):
        response = client.get("/auth/validate")

        assert response.status_code == 401

    def test_validate_with_garbage_token(self, client: TestClient, test_user):
        response = client.get("/auth/validate", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    def test_token_from_register_is_usable(self, client: TestClient):
        """A freshly registered user can call protected routes right away."""
        token = client.post(
            "/auth/register",
            json={"login": "fresh", "password": "secret123"},
        ).json()["token"]

        response = client.get("/auth/validate", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["user"]["login"] == "fresh"

    def test_logout(self, client: TestClient):
        response = client.post("/auth/logout")

        assert response.status_code == 200
        assert "message" in response.json()
