"""Tests for user and profile endpoints."""

from fastapi.testclient import TestClient

from gamerec.schemas.auth import UserCreate
from gamerec.services.auth_service import create_user


class TestMe:
    """Test /users/me."""

    def test_get_me(self, client: TestClient, test_user, auth_headers):
        response = client.get("/users/me", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["login"] == "testuser"
        assert data["profile"]["preferred_language"] == "ru"
        assert data["profile"]["total_likes"] == 0

    def test_get_me_requires_auth(self, client: TestClient):
        assert client.get("/users/me").status_code == 401

    def test_update_profile_camel_case(self, client: TestClient, test_user, auth_headers):
        response = client.put(
            "/users/me",
            json={"avatarUrl": "https://cdn.test/me.png", "bio": "Soulslike fan", "preferredLanguage": "en"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["avatar_url"] == "https://cdn.test/me.png"
        assert data["bio"] == "Soulslike fan"
        assert data["preferred_language"] == "en"

    def test_update_username(self, client: TestClient, test_user, auth_headers):
        client.put("/users/me", json={"username": "Geralt"}, headers=auth_headers)

        response = client.get("/users/me", headers=auth_headers)

        assert response.json()["user"]["username"] == "Geralt"
        assert response.json()["user"]["login"] == "testuser"

    def test_update_creates_missing_profile(self, client: TestClient, db, test_user, auth_headers):
        db.delete(test_user.profile)
        db.commit()

        response = client.put("/users/me", json={"bio": "Back again"}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["bio"] == "Back again"
        assert response.json()["preferred_language"] == "ru"


class TestPublicProfile:
    """Test /users/{id} and /users/{id}/stats."""

    def test_public_user(self, client: TestClient, db, test_user):
        test_user.profile.bio = "Hello"
        db.commit()

        response = client.get(f"/users/{test_user.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == test_user.id
        assert data["username"] == "testuser"
        assert data["profile"] == {"avatar_url": None, "bio": "Hello"}
        assert "login" not in data

    def test_unknown_user(self, client: TestClient):
        response = client.get("/users/424242")

        assert response.status_code == 404
        assert response.json()["statusCode"] == 404

    def test_user_stats(self, client: TestClient, db, test_user):
        create_user(db, UserCreate(login="second", password="secret123"))

        response = client.get(f"/users/{test_user.id}/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["userId"] == test_user.id
        assert data["stats"] == {"totalUsers": 2}
