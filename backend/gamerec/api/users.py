from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from gamerec.core.database import get_db
from gamerec.schemas.auth import UserResponse
from gamerec.schemas.user import ProfileResponse, ProfileUpdate, PublicUser, UserStats
from gamerec.services import auth_service, preference_service, user_service

router = APIRouter()


@router.get("/me")
async def get_my_profile(
    current_user=Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
):
    """Get the current user with their profile."""
    profile = user_service.get_profile(db, current_user.id)
    return {
        "user": UserResponse.model_validate(current_user),
        "profile": ProfileResponse.model_validate(profile) if profile else None,
    }


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    update: ProfileUpdate,
    current_user=Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
):
    """Update username, avatar, bio or language."""
    return user_service.update_profile(db, current_user, update)


@router.get("/me/games")
async def get_my_games(
    current_user=Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
):
    """Every game the current user has acted on, with their actions."""
    games = preference_service.get_user_games(db, current_user.id)
    return {"success": True, "count": len(games), "games": games}


@router.get("/{user_id}", response_model=PublicUser)
async def get_public_user(user_id: int, db: Session = Depends(get_db)):
    """Public view of a user."""
    user = user_service.get_public_user(db, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user


@router.get("/{user_id}/stats", response_model=UserStats)
async def get_user_stats(user_id: int, db: Session = Depends(get_db)):
    stats = user_service.get_user_stats(db, user_id)
    if not stats:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return stats
