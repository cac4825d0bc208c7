"""
Best-effort local cache of catalog games.

Writes happen off the request path. A failed write is logged and dropped;
the catalog stays the source of truth and nothing here is ever invalidated.
"""

from sqlalchemy.orm import Session

from gamerec.core.database import SessionLocal
from gamerec.core.logging import get_logger
from gamerec.models.game import CachedGame

logger = get_logger(__name__)

CACHED_FIELDS = (
    "name",
    "slug",
    "released",
    "background_image",
    "website",
    "rating",
    "rating_top",
    "metacritic",
    "playtime",
    "genres",
    "tags",
    "platforms",
    "developers",
    "publishers",
)


def get_cached_ids(db: Session, game_ids: list[int]) -> set[int]:
    """Return the subset of catalog ids that have a cache row."""
    if not game_ids:
        return set()
    rows = db.query(CachedGame.rawg_id).filter(CachedGame.rawg_id.in_(game_ids)).all()
    return {row.rawg_id for row in rows}


def get_cached_games(db: Session, game_ids: list[int]) -> dict[int, CachedGame]:
    if not game_ids:
        return {}
    games = db.query(CachedGame).filter(CachedGame.rawg_id.in_(game_ids)).all()
    return {game.rawg_id: game for game in games}


def annotate_cached(db: Session, games: list[dict]) -> list[dict]:
    """Copy each catalog item with an ``is_cached`` flag added."""
    cached = get_cached_ids(db, [g["id"] for g in games if "id" in g])
    return [{**game, "is_cached": game.get("id") in cached} for game in games]


def cache_game(db: Session, game: dict) -> CachedGame:
    """Insert or update the cache row for one catalog game."""
    cached = db.query(CachedGame).filter(CachedGame.rawg_id == game["id"]).first()
    if cached is None:
        cached = CachedGame(rawg_id=game["id"], name=game.get("name") or "")
        db.add(cached)

    for field in CACHED_FIELDS:
        if field in game:
            setattr(cached, field, game[field])

    # Detail responses carry description_raw; list items carry neither
    description = game.get("description_raw") or game.get("description")
    if description:
        cached.description = description

    cached.is_cached = True
    db.commit()
    db.refresh(cached)
    return cached


def cache_games(db: Session, games: list[dict]) -> dict:
    """
    Cache a page of games, one commit per game.

    A failing item is rolled back and counted; the remaining items are
    still written.
    """
    stats = {"cached": 0, "failed": 0}

    for game in games:
        try:
            cache_game(db, game)
            stats["cached"] += 1
        except Exception as e:
            db.rollback()
            stats["failed"] += 1
            logger.warning(
                "Failed to cache game",
                extra={"extra_fields": {"game_id": game.get("id"), "error": str(e)}},
            )

    return stats


def cache_game_in_background(game: dict) -> None:
    """Background task: cache one game in its own session."""
    db = SessionLocal()
    try:
        cache_game(db, game)
    except Exception as e:
        db.rollback()
        logger.error(
            "Background game cache failed",
            extra={"extra_fields": {"game_id": game.get("id"), "error": str(e)}},
        )
    finally:
        db.close()


def cache_games_in_background(games: list[dict]) -> None:
    """Background task: cache a page of games in its own session."""
    db = SessionLocal()
    try:
        stats = cache_games(db, games)
        logger.debug("Cached game page", extra={"extra_fields": stats})
    except Exception as e:
        logger.error(
            "Background page cache failed",
            extra={"extra_fields": {"count": len(games), "error": str(e)}},
        )
    finally:
        db.close()
