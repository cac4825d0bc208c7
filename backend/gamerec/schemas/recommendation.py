from datetime import datetime
from typing import Any

from pydantic import BaseModel


class PersonalizedResponse(BaseModel):
    success: bool = True
    count: int
    # Catalog items pass through untouched apart from the two annotations
    # personalizedScore and recommendationReason.
    recommendations: list[dict[str, Any]]
    generatedAt: datetime


class GameListResponse(BaseModel):
    success: bool = True
    count: int
    games: list[dict[str, Any]]


class PreferencesResponse(BaseModel):
    user_id: int
    preferences: dict[str, Any]
