from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gamerec.core.config import get_settings
from gamerec.core.database import get_db
from gamerec.schemas.game import ActionResponse
from gamerec.schemas.recommendation import GameListResponse, PersonalizedResponse
from gamerec.services import auth_service, preference_service
from gamerec.services.catalog_client import RawgClient, get_catalog_client
from gamerec.services.recommendation_service import REASON_NEW, RecommendationEngine

settings = get_settings()
router = APIRouter()

LimitQuery = Query(settings.DEFAULT_RECOMMENDATIONS_LIMIT, ge=1, le=settings.MAX_RECOMMENDATIONS_LIMIT)


@router.get("/personalized", response_model=PersonalizedResponse)
async def get_personalized(
    limit: int = LimitQuery,
    current_user=Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
    catalog: RawgClient = Depends(get_catalog_client),
):
    """
    Get personalized recommendations for the current user.

    Users with no preferences or ratings yet receive the popular list.
    """
    engine = RecommendationEngine(db=db, user_id=current_user.id, catalog=catalog)
    recommendations = await engine.get_personalized(limit)
    return {
        "success": True,
        "count": len(recommendations),
        "recommendations": recommendations,
        "generatedAt": datetime.utcnow(),
    }


@router.get("/popular", response_model=GameListResponse)
async def get_popular(
    limit: int = LimitQuery,
    db: Session = Depends(get_db),
    catalog: RawgClient = Depends(get_catalog_client),
):
    """Highest rated catalog games (no login required)."""
    engine = RecommendationEngine(db=db, user_id=None, catalog=catalog)
    games = await engine.get_popular(limit)
    return {"success": True, "count": len(games), "games": games}


@router.get("/new", response_model=GameListResponse)
async def get_new(
    limit: int = LimitQuery,
    db: Session = Depends(get_db),
    catalog: RawgClient = Depends(get_catalog_client),
):
    # Same source as popular until release-date ordering is wired up
    engine = RecommendationEngine(db=db, user_id=None, catalog=catalog)
    games = await engine.get_popular(limit, reason=REASON_NEW)
    return {"success": True, "count": len(games), "games": games}


@router.get("/by-genre/{genre_id}", response_model=GameListResponse)
async def get_by_genre(
    genre_id: int,
    limit: int = LimitQuery,
    db: Session = Depends(get_db),
    catalog: RawgClient = Depends(get_catalog_client),
):
    engine = RecommendationEngine(db=db, user_id=None, catalog=catalog)
    games = await engine.get_by_genre(genre_id, limit)
    return {"success": True, "count": len(games), "games": games}


@router.get("/my-preferences")
async def get_my_preferences(
    current_user=Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
):
    return {
        "success": True,
        "data": preference_service.get_user_preferences(db, current_user.id),
    }


@router.get("/my-actions")
async def get_my_actions(
    type: str | None = None,
    limit: int = Query(50, ge=1, le=200),
    current_user=Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
):
    """The current user's action history, newest first."""
    actions = preference_service.get_user_actions(db, current_user.id, type, limit)
    return {
        "success": True,
        "userId": current_user.id,
        "type": type,
        "count": len(actions),
        "actions": [ActionResponse.model_validate(action) for action in actions],
    }
