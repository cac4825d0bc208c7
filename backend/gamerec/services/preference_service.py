"""
User game actions and the preference data derived from them.

Actions are keyed by (user, game, action type) and recorded as upserts.
Genre and tag snapshots are copied onto each action so that preference
reads never need the catalog or the cache.
"""

from collections import OrderedDict
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from gamerec.core.logging import get_logger
from gamerec.models.action import UserGameAction
from gamerec.models.preference import UserGenrePreference, UserTagPreference
from gamerec.models.user import UserProfile
from gamerec.schemas.game import UserGameActions
from gamerec.services.game_cache_service import get_cached_games

logger = get_logger(__name__)

# like and dislike cancel each other out
OPPOSITE_ACTIONS = {"like": "dislike", "dislike": "like"}

# How many preferences and ratings feed the recommendation scorer
TOP_PREFERENCES = 5
MAX_RATING_HISTORY = 50


def snapshot(items: list | None) -> list[dict]:
    """Reduce catalog genre/tag objects to {id, name}."""
    return [
        {"id": item["id"], "name": item.get("name")}
        for item in items or []
        if isinstance(item, dict) and "id" in item
    ]


def _find_action(db: Session, user_id: int, game_id: int, action_type: str) -> UserGameAction | None:
    return (
        db.query(UserGameAction)
        .filter(
            UserGameAction.user_id == user_id,
            UserGameAction.game_id == game_id,
            UserGameAction.action_type == action_type,
        )
        .first()
    )


def _upsert_action(
    db: Session,
    user_id: int,
    game: dict,
    action_type: str,
    **values,
) -> tuple[UserGameAction, bool]:
    """
    Insert or overwrite the action row for (user, game, type).

    Returns the row and whether an existing row was updated.
    """
    game_id = game.get("rawg_id") or game["id"]
    now = datetime.utcnow()

    action = _find_action(db, user_id, game_id, action_type)
    updated = action is not None
    if action is None:
        action = UserGameAction(
            user_id=user_id,
            game_id=game_id,
            action_type=action_type,
            created_at=now,
        )
        db.add(action)

    action.game_name = game.get("name")
    action.genres = snapshot(game.get("genres"))
    action.tags = snapshot(game.get("tags"))
    action.rating = values.get("rating")
    action.completion_status = values.get("completion_status")
    action.purchase_status = values.get("purchase_status")
    action.updated_at = now

    db.flush()
    _refresh_profile_counters(db, user_id)
    db.commit()
    db.refresh(action)

    logger.info(
        "Game action recorded",
        extra={
            "extra_fields": {
                "user_id": user_id,
                "game_id": game_id,
                "action_type": action_type,
                "updated": updated,
            }
        },
    )
    return action, updated


def record_action(db: Session, user_id: int, game: dict, action_type: str) -> tuple[UserGameAction, bool]:
    """Record like, dislike or wishlist. like and dislike are mutually exclusive."""
    opposite = OPPOSITE_ACTIONS.get(action_type)
    if opposite:
        game_id = game.get("rawg_id") or game["id"]
        db.query(UserGameAction).filter(
            UserGameAction.user_id == user_id,
            UserGameAction.game_id == game_id,
            UserGameAction.action_type == opposite,
        ).delete(synchronize_session=False)

    return _upsert_action(db, user_id, game, action_type)


def record_rating(db: Session, user_id: int, game: dict, rating: int) -> tuple[UserGameAction, bool]:
    return _upsert_action(db, user_id, game, "rate", rating=rating)


def record_completion_status(
    db: Session, user_id: int, game: dict, completion_status: str
) -> tuple[UserGameAction, bool]:
    return _upsert_action(db, user_id, game, "status_change", completion_status=completion_status)


def record_purchase_status(
    db: Session, user_id: int, game: dict, purchase_status: str
) -> tuple[UserGameAction, bool]:
    return _upsert_action(db, user_id, game, "purchase_change", purchase_status=purchase_status)


def remove_action(db: Session, user_id: int, game_id: int, action_type: str) -> bool:
    """Delete an action. Removing a missing action is not an error."""
    deleted = (
        db.query(UserGameAction)
        .filter(
            UserGameAction.user_id == user_id,
            UserGameAction.game_id == game_id,
            UserGameAction.action_type == action_type,
        )
        .delete(synchronize_session=False)
    )
    _refresh_profile_counters(db, user_id)
    db.commit()

    logger.info(
        "Game action removed",
        extra={
            "extra_fields": {
                "user_id": user_id,
                "game_id": game_id,
                "action_type": action_type,
                "deleted": deleted,
            }
        },
    )
    return True


def _refresh_profile_counters(db: Session, user_id: int) -> None:
    profile = db.query(UserProfile).filter(UserProfile.user_id == user_id).first()
    if profile is None:
        return

    counts = dict(
        db.query(UserGameAction.action_type, func.count(UserGameAction.id))
        .filter(UserGameAction.user_id == user_id)
        .group_by(UserGameAction.action_type)
        .all()
    )
    profile.total_likes = counts.get("like", 0)
    profile.total_dislikes = counts.get("dislike", 0)
    profile.total_games_added = (
        db.query(func.count(func.distinct(UserGameAction.game_id)))
        .filter(UserGameAction.user_id == user_id)
        .scalar()
        or 0
    )


def get_user_game_actions(db: Session, user_id: int, game_id: int) -> UserGameActions:
    """Flatten every action a user has on one game into a single snapshot."""
    actions = (
        db.query(UserGameAction)
        .filter(UserGameAction.user_id == user_id, UserGameAction.game_id == game_id)
        .all()
    )

    result = UserGameActions()
    for action in actions:
        if action.action_type == "like":
            result.liked = True
        elif action.action_type == "dislike":
            result.disliked = True
        elif action.action_type == "wishlist":
            result.in_wishlist = True
        elif action.action_type == "rate" and action.rating is not None:
            result.rating = action.rating
        elif action.action_type == "status_change" and action.completion_status:
            result.completion_status = action.completion_status
        elif action.action_type == "purchase_change" and action.purchase_status:
            result.purchase_status = action.purchase_status

    return result


def get_user_games(db: Session, user_id: int) -> list[dict]:
    """
    Group a user's actions by game, enriched from the local cache.

    Games missing from the cache are returned with just id, name and actions.
    """
    actions = (
        db.query(UserGameAction)
        .filter(UserGameAction.user_id == user_id)
        .order_by(UserGameAction.created_at)
        .all()
    )

    games: OrderedDict[int, dict] = OrderedDict()
    for action in actions:
        game = games.setdefault(
            action.game_id,
            {"id": action.game_id, "name": action.game_name, "actions": []},
        )
        game["actions"].append(
            {
                "type": action.action_type,
                "rating": action.rating,
                "completion_status": action.completion_status,
                "purchase_status": action.purchase_status,
                "created_at": action.created_at,
            }
        )

    cached = get_cached_games(db, list(games))
    for game_id, game in games.items():
        detail = cached.get(game_id)
        if detail is None:
            continue
        game["background_image"] = detail.background_image
        game["rating"] = detail.rating
        game["metacritic"] = detail.metacritic
        game["genres"] = detail.genres
        game["tags"] = detail.tags

    return list(games.values())


def get_user_actions(
    db: Session, user_id: int, action_type: str | None = None, limit: int = 50
) -> list[UserGameAction]:
    """Action history, newest first."""
    query = db.query(UserGameAction).filter(UserGameAction.user_id == user_id)
    if action_type:
        query = query.filter(UserGameAction.action_type == action_type)
    return query.order_by(UserGameAction.updated_at.desc(), UserGameAction.id.desc()).limit(limit).all()


def get_user_game_rating(db: Session, user_id: int, game_id: int) -> int | None:
    action = _find_action(db, user_id, game_id, "rate")
    return action.rating if action else None


def get_user_average_rating(db: Session, user_id: int) -> float:
    average = (
        db.query(func.avg(UserGameAction.rating))
        .filter(
            UserGameAction.user_id == user_id,
            UserGameAction.action_type == "rate",
            UserGameAction.rating.isnot(None),
        )
        .scalar()
    )
    return float(average) if average is not None else 0.0


def get_top_genre_preferences(
    db: Session, user_id: int, limit: int = TOP_PREFERENCES
) -> list[UserGenrePreference]:
    return (
        db.query(UserGenrePreference)
        .filter(UserGenrePreference.user_id == user_id)
        .order_by(UserGenrePreference.weight.desc())
        .limit(limit)
        .all()
    )


def get_top_tag_preferences(
    db: Session, user_id: int, limit: int = TOP_PREFERENCES
) -> list[UserTagPreference]:
    return (
        db.query(UserTagPreference)
        .filter(UserTagPreference.user_id == user_id)
        .order_by(UserTagPreference.weight.desc())
        .limit(limit)
        .all()
    )


def get_rating_history(
    db: Session, user_id: int, limit: int = MAX_RATING_HISTORY
) -> list[UserGameAction]:
    return (
        db.query(UserGameAction)
        .filter(UserGameAction.user_id == user_id, UserGameAction.action_type == "rate")
        .limit(limit)
        .all()
    )


def get_user_preferences(db: Session, user_id: int) -> dict:
    """
    Aggregated preferences for a user.

    Aggregation is not computed yet; the preference tables are read by the
    recommender but nothing in this service writes them.
    """
    return {"user_id": user_id, "preferences": {}}
