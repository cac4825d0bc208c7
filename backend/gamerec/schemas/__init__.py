from gamerec.schemas.auth import AuthResponse, UserCreate, UserLogin, UserResponse
from gamerec.schemas.game import (
    ActionResult,
    GamePurchaseRequest,
    GameStatusRequest,
    RateGameRequest,
    UserGameActions,
)
from gamerec.schemas.local_library import BackupData, MediaItem, UserData
from gamerec.schemas.recommendation import GameListResponse, PersonalizedResponse
from gamerec.schemas.user import ProfileResponse, ProfileUpdate

__all__ = [
    "AuthResponse",
    "UserCreate",
    "UserLogin",
    "UserResponse",
    "ProfileResponse",
    "ProfileUpdate",
    "RateGameRequest",
    "GameStatusRequest",
    "GamePurchaseRequest",
    "ActionResult",
    "UserGameActions",
    "PersonalizedResponse",
    "GameListResponse",
    "UserData",
    "MediaItem",
    "BackupData",
]
