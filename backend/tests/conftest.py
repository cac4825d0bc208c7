"""
Pytest configuration and fixtures for backend tests.
"""

import os

# In-memory SQLite for the app engine, so background tasks share the test database
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("RAWG_API_KEY", "test-key")

from typing import Generator  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from gamerec.core.database import Base, SessionLocal, engine, get_db  # noqa: E402
from gamerec.main import app  # noqa: E402
from gamerec.models.user import User, UserProfile  # noqa: E402
from gamerec.services.auth_service import create_access_token, get_password_hash  # noqa: E402
from gamerec.services.catalog_client import RawgClient, get_catalog_client  # noqa: E402

CATALOG_BASE_URL = "https://rawg.test/api"

ACTION = {"id": 4, "name": "Action", "slug": "action"}
RPG = {"id": 5, "name": "RPG", "slug": "role-playing-games-rpg"}
INDIE = {"id": 51, "name": "Indie", "slug": "indie"}
OPEN_WORLD = {"id": 36, "name": "Open World", "slug": "open-world"}
STORY = {"id": 118, "name": "Story Rich", "slug": "story-rich"}

SAMPLE_GAMES = [
    {
        "id": 3328,
        "name": "The Witcher 3: Wild Hunt",
        "slug": "the-witcher-3-wild-hunt",
        "released": "2015-05-18",
        "background_image": "https://media.rawg.test/witcher3.jpg",
        "rating": 4.66,
        "rating_top": 5,
        "metacritic": 92,
        "playtime": 46,
        "genres": [ACTION, RPG],
        "tags": [OPEN_WORLD, STORY],
    },
    {
        "id": 3498,
        "name": "Grand Theft Auto V",
        "slug": "grand-theft-auto-v",
        "released": "2013-09-17",
        "background_image": "https://media.rawg.test/gta5.jpg",
        "rating": 4.47,
        "rating_top": 5,
        "metacritic": 92,
        "playtime": 74,
        "genres": [ACTION],
        "tags": [OPEN_WORLD],
    },
    {
        "id": 3612,
        "name": "Hades",
        "slug": "hades",
        "released": "2020-09-17",
        "background_image": "https://media.rawg.test/hades.jpg",
        "rating": 4.4,
        "rating_top": 5,
        "metacritic": 93,
        "playtime": 10,
        "genres": [ACTION, INDIE],
        "tags": [STORY],
    },
]


class FakeCatalog:
    """In-process stand-in for the RAWG API, served through httpx.MockTransport."""

    def __init__(self, games: list[dict]):
        self.games = {game["id"]: dict(game) for game in games}
        self.requests: list[httpx.Request] = []
        self.fail_status: int | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_status is not None:
            return httpx.Response(self.fail_status, json={"error": "upstream failure"})

        path = request.url.path.removeprefix("/api")
        if path == "/games":
            return httpx.Response(200, json=self._list(request.url.params))
        if path.startswith("/games/"):
            game = self.games.get(int(path.rsplit("/", 1)[-1]))
            if game is None:
                return httpx.Response(404, json={"detail": "Not found."})
            return httpx.Response(200, json={**game, "description_raw": f"About {game['name']}"})
        if path == "/genres":
            return httpx.Response(200, json={"count": 3, "results": [ACTION, RPG, INDIE]})
        if path == "/platforms":
            platforms = [{"id": 4, "name": "PC"}, {"id": 187, "name": "PlayStation 5"}]
            return httpx.Response(200, json={"count": 2, "results": platforms})
        return httpx.Response(404, json={"detail": "Not found."})

    def _list(self, params) -> dict:
        results = list(self.games.values())
        if params.get("genres"):
            wanted = {int(g) for g in params["genres"].split(",")}
            results = [g for g in results if wanted & {genre["id"] for genre in g["genres"]}]
        if params.get("ordering") == "-rating":
            results.sort(key=lambda g: g.get("rating") or 0, reverse=True)
        page_size = int(params.get("page_size", 20))
        return {"count": len(results), "next": None, "previous": None, "results": results[:page_size]}

    @property
    def last_params(self) -> dict:
        return dict(self.requests[-1].url.params)

    def client(self) -> RawgClient:
        return RawgClient(
            api_key="test-key",
            base_url=CATALOG_BASE_URL,
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    # Create all tables
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        # Drop all tables after test
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog(SAMPLE_GAMES)


@pytest.fixture(scope="function")
def client(db: Session, catalog: FakeCatalog) -> Generator[TestClient, None, None]:
    """Create a test client with database and catalog overrides."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    async def override_get_catalog_client():
        rawg = catalog.client()
        try:
            yield rawg
        finally:
            await rawg.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_catalog_client] = override_get_catalog_client

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def make_user(db: Session, login: str, password: str = "secret123") -> User:
    user = User(login=login, username=login, password_hash=get_password_hash(password))
    db.add(user)
    db.flush()
    db.add(UserProfile(user_id=user.id, preferred_language="ru"))
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def test_user(db: Session) -> User:
    """Create a test user."""
    return make_user(db, "testuser", "testpassword123")


@pytest.fixture
def test_user_token(test_user: User) -> str:
    """Create an access token for the test user."""
    return create_access_token(test_user)


@pytest.fixture
def auth_headers(test_user_token: str) -> dict:
    """Create authorization headers."""
    return {"Authorization": f"Bearer {test_user_token}"}
