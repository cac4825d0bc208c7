from gamerec.models.action import UserGameAction
from gamerec.models.game import CachedGame
from gamerec.models.preference import UserGenrePreference, UserTagPreference
from gamerec.models.user import User, UserProfile

__all__ = [
    "User",
    "UserProfile",
    "UserGameAction",
    "UserGenrePreference",
    "UserTagPreference",
    "CachedGame",
]
