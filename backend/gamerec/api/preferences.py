from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gamerec.core.database import get_db
from gamerec.schemas.recommendation import PreferencesResponse
from gamerec.services import auth_service, preference_service

router = APIRouter()


@router.get("/my", response_model=PreferencesResponse)
async def get_my_preferences(
    current_user=Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
):
    """Aggregated genre and tag preferences of the current user."""
    return preference_service.get_user_preferences(db, current_user.id)
