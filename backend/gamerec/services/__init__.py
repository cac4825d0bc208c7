from gamerec.services import (
    auth_service,
    game_cache_service,
    preference_service,
    recommendation_service,
    user_service,
)
from gamerec.services.catalog_client import RawgClient, get_catalog_client
from gamerec.services.local_library import LocalLibrary, MediaCache
from gamerec.services.recommendation_service import PersonalizedScorer, RecommendationEngine

__all__ = [
    "auth_service",
    "user_service",
    "game_cache_service",
    "preference_service",
    "recommendation_service",
    # Catalog
    "RawgClient",
    "get_catalog_client",
    # Recommendations
    "PersonalizedScorer",
    "RecommendationEngine",
    # Local library
    "LocalLibrary",
    "MediaCache",
]
