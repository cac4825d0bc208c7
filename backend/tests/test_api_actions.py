"""Tests for recording game actions through the API."""

from fastapi.testclient import TestClient

from gamerec.models.action import UserGameAction
from gamerec.models.game import CachedGame
from gamerec.models.user import UserProfile


def _actions(db, user_id, game_id, action_type=None):
    query = db.query(UserGameAction).filter(
        UserGameAction.user_id == user_id, UserGameAction.game_id == game_id
    )
    if action_type:
        query = query.filter(UserGameAction.action_type == action_type)
    return query.all()


class TestLikeDislike:
    """Test like/dislike/wishlist upserts."""

    def test_like_creates_action_with_snapshots(self, client: TestClient, db, test_user, auth_headers):
        response = client.post("/games/3328/like", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["updated"] is False
        assert data["action"]["action_type"] == "like"
        assert data["action"]["game_name"] == "The Witcher 3: Wild Hunt"
        # Snapshots keep only id and name
        assert data["action"]["genres"] == [{"id": 4, "name": "Action"}, {"id": 5, "name": "RPG"}]
        assert data["action"]["tags"] == [{"id": 36, "name": "Open World"}, {"id": 118, "name": "Story Rich"}]

    def test_like_twice_updates(self, client: TestClient, db, test_user, auth_headers):
        first = client.post("/games/3328/like", headers=auth_headers).json()
        second = client.post("/games/3328/like", headers=auth_headers).json()

        assert second["updated"] is True
        assert second["action"]["id"] == first["action"]["id"]
        assert second["action"]["created_at"] == first["action"]["created_at"]
        assert len(_actions(db, test_user.id, 3328, "like")) == 1

    def test_like_then_dislike_is_exclusive(self, client: TestClient, test_user, auth_headers):
        client.post("/games/3328/like", headers=auth_headers)
        client.post("/games/3328/dislike", headers=auth_headers)

        state = client.get("/games/3328/user-actions", headers=auth_headers).json()
        assert state["disliked"] is True
        assert state["liked"] is False

    def test_dislike_then_like_is_exclusive(self, client: TestClient, test_user, auth_headers):
        client.post("/games/3328/dislike", headers=auth_headers)
        client.post("/games/3328/like", headers=auth_headers)

        state = client.get("/games/3328/user-actions", headers=auth_headers).json()
        assert state["liked"] is True
        assert state["disliked"] is False

    def test_wishlist_does_not_touch_like(self, client: TestClient, test_user, auth_headers):
        client.post("/games/3328/like", headers=auth_headers)
        client.post("/games/3328/wishlist", headers=auth_headers)

        state = client.get("/games/3328/user-actions", headers=auth_headers).json()
        assert state["liked"] is True
        assert state["in_wishlist"] is True

    def test_remove_action(self, client: TestClient, db, test_user, auth_headers):
        client.post("/games/3328/wishlist", headers=auth_headers)

        response = client.delete("/games/3328/wishlist", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert _actions(db, test_user.id, 3328, "wishlist") == []

    def test_remove_missing_action_succeeds(self, client: TestClient, test_user, auth_headers):
        response = client.delete("/games/3328/like", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True}

    def test_like_unknown_game(self, client: TestClient, test_user, auth_headers):
        response = client.post("/games/999999/like", headers=auth_headers)

        assert response.status_code == 404

    def test_actions_require_auth(self, client: TestClient):
        assert client.post("/games/3328/like").status_code == 401
        assert client.delete("/games/3328/like").status_code == 401
        assert client.get("/games/3328/user-actions").status_code == 401

    def test_profile_counters_follow_actions(self, client: TestClient, db, test_user, auth_headers):
        client.post("/games/3328/like", headers=auth_headers)
        client.post("/games/3498/like", headers=auth_headers)
        client.post("/games/3612/dislike", headers=auth_headers)

        db.expire_all()
        profile = db.query(UserProfile).filter(UserProfile.user_id == test_user.id).one()
        assert profile.total_likes == 2
        assert profile.total_dislikes == 1
        assert profile.total_games_added == 3


class TestRating:
    """Test rating upserts."""

    def test_rate_game(self, client: TestClient, test_user, auth_headers):
        response = client.post("/games/3612/rate", json={"rating": 9}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["action"]["rating"] == 9

        state = client.get("/games/3612/user-actions", headers=auth_headers).json()
        assert state["rating"] == 9

    def test_rate_twice_keeps_one_row(self, client: TestClient, db, test_user, auth_headers):
        client.post("/games/3612/rate", json={"rating": 6}, headers=auth_headers)
        response = client.post("/games/3612/rate", json={"rating": 8}, headers=auth_headers)

        assert response.json()["updated"] is True
        rows = _actions(db, test_user.id, 3612, "rate")
        assert len(rows) == 1
        assert rows[0].rating == 8

    def test_rating_out_of_range(self, client: TestClient, test_user, auth_headers):
        assert client.post("/games/3612/rate", json={"rating": 0}, headers=auth_headers).status_code == 422
        assert client.post("/games/3612/rate", json={"rating": 11}, headers=auth_headers).status_code == 422

    def test_delete_rating(self, client: TestClient, test_user, auth_headers):
        client.post("/games/3612/rate", json={"rating": 7}, headers=auth_headers)

        response = client.delete("/games/3612/rate", headers=auth_headers)

        assert response.status_code == 200
        state = client.get("/games/3612/user-actions", headers=auth_headers).json()
        assert state["rating"] is None


class TestStatuses:
    """Test completion and purchase status."""

    def test_default_snapshot(self, client: TestClient, test_user, auth_headers):
        state = client.get("/games/3328/user-actions", headers=auth_headers).json()

        assert state == {
            "liked": False,
            "disliked": False,
            "in_wishlist": False,
            "rating": None,
            "completion_status": "not_played",
            "purchase_status": "not_owned",
        }

    def test_completion_status(self, client: TestClient, test_user, auth_headers):
        response = client.post("/games/3328/status", json={"status": "completed"}, headers=auth_headers)

        assert response.status_code == 200
        action = response.json()["action"]
        assert action["completion_status"] == "completed"
        assert action["purchase_status"] is None

        state = client.get("/games/3328/user-actions", headers=auth_headers).json()
        assert state["completion_status"] == "completed"
        assert state["purchase_status"] == "not_owned"

    def test_purchase_status(self, client: TestClient, test_user, auth_headers):
        client.post("/games/3328/purchase", json={"purchase": "want_to_buy"}, headers=auth_headers)

        state = client.get("/games/3328/user-actions", headers=auth_headers).json()
        assert state["purchase_status"] == "want_to_buy"

    def test_invalid_status(self, client: TestClient, test_user, auth_headers):
        response = client.post("/games/3328/status", json={"status": "finished"}, headers=auth_headers)

        assert response.status_code == 422
        body = response.json()
        assert body["message"] == "Validation failed"
        assert body["errors"]


class TestMyGames:
    """Test GET /users/me/games."""

    def test_groups_actions_by_game(self, client: TestClient, db, test_user, auth_headers):
        client.post("/games/3328/like", headers=auth_headers)
        client.post("/games/3328/rate", json={"rating": 10}, headers=auth_headers)
        client.post("/games/3612/wishlist", headers=auth_headers)
        db.add(
            CachedGame(
                rawg_id=3328,
                name="The Witcher 3: Wild Hunt",
                background_image="https://media.rawg.test/witcher3.jpg",
                rating=4.66,
                metacritic=92,
                genres=[{"id": 4, "name": "Action"}],
                tags=[],
            )
        )
        db.commit()

        response = client.get("/users/me/games", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        games = {game["id"]: game for game in data["games"]}
        assert sorted(a["type"] for a in games[3328]["actions"]) == ["like", "rate"]
        assert games[3328]["metacritic"] == 92
        assert games[3328]["background_image"].endswith("witcher3.jpg")
        # Not cached: no enrichment fields
        assert "metacritic" not in games[3612]
        assert games[3612]["actions"][0]["type"] == "wishlist"
