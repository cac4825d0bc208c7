from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ProfileUpdate(BaseModel):
    """Accepts both camelCase (frontend) and snake_case field names."""

    model_config = ConfigDict(populate_by_name=True)

    username: str | None = Field(None, min_length=3, max_length=30)
    avatar_url: str | None = Field(None, alias="avatarUrl", max_length=500)
    bio: str | None = Field(None, max_length=500)
    preferred_language: str | None = Field(None, alias="preferredLanguage", max_length=10)


class ProfileResponse(BaseModel):
    user_id: int
    avatar_url: str | None
    bio: str | None
    preferred_language: str
    favorite_genres: list | None
    favorite_tags: list | None
    total_likes: int
    total_dislikes: int
    total_games_added: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PublicProfile(BaseModel):
    avatar_url: str | None = None
    bio: str | None = None


class PublicUser(BaseModel):
    id: int
    username: str
    profile: PublicProfile | None
    created_at: datetime


class UserStats(BaseModel):
    userId: int
    username: str
    joinedAt: datetime
    profile: PublicProfile | None
    stats: dict[str, int]
