from fastapi import APIRouter

from gamerec.api import auth, games, preferences, recommendations, users

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(games.router, prefix="/games", tags=["games"])
router.include_router(recommendations.router, prefix="/recommendations", tags=["recommendations"])
router.include_router(preferences.router, prefix="/preferences", tags=["preferences"])
