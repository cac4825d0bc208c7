"""
Serializable shapes of the local library store.

Field names are camelCase on the wire so files written by the web client
load unchanged; Python code may use either spelling.
"""

import re
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MediaType = Literal["movie", "tv", "person"]

STORE_VERSION = "1.0"

MEDIA_KEY_PATTERN = re.compile(r"^(movie|tv|person)_\d+$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _check_media_keys(keys) -> None:
    bad = [key for key in keys if not MEDIA_KEY_PATTERN.match(key)]
    if bad:
        raise ValueError(f"invalid media keys: {bad}")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RatingEntry(CamelModel):
    value: int = Field(..., ge=1, le=10)
    created_at: datetime
    updated_at: datetime


class NoteEntry(CamelModel):
    content: str
    created_at: datetime
    updated_at: datetime


class FavoriteEntry(CamelModel):
    added_at: datetime


class WatchedEntry(CamelModel):
    watched_at: datetime
    last_watched_at: datetime
    progress: float | None = None


class WatchlistEntry(CamelModel):
    added_at: datetime


class LibraryStats(CamelModel):
    total_favorites: int = 0
    total_watched: int = 0
    total_watchlist: int = 0
    total_ratings: int = 0
    total_notes: int = 0
    average_rating: float | None = None
    last_updated: datetime = Field(default_factory=utcnow)


class UserData(CamelModel):
    ratings: dict[str, RatingEntry] = {}
    notes: dict[str, NoteEntry] = {}
    favorites: dict[str, FavoriteEntry] = {}
    watched: dict[str, WatchedEntry] = {}
    watchlist: dict[str, WatchlistEntry] = {}

    # Insertion-ordered mirrors of the map keys
    favorite_keys: list[str] = []
    watched_keys: list[str] = []
    watchlist_keys: list[str] = []
    rated_keys: list[str] = []
    noted_keys: list[str] = []

    stats: LibraryStats = Field(default_factory=LibraryStats)
    version: str = STORE_VERSION

    @field_validator("ratings", "notes", "favorites", "watched", "watchlist")
    @classmethod
    def check_map_keys(cls, value: dict) -> dict:
        _check_media_keys(value)
        return value

    @field_validator("favorite_keys", "watched_keys", "watchlist_keys", "rated_keys", "noted_keys")
    @classmethod
    def check_key_lists(cls, value: list[str]) -> list[str]:
        _check_media_keys(value)
        return value


class MediaItem(CamelModel):
    """A cached catalog item. Any extra catalog fields are kept verbatim."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: int
    type: MediaType
    cached_at: datetime = Field(default_factory=utcnow)


class BackupData(CamelModel):
    media_cache: dict[str, MediaItem] = {}
    user_data: UserData = Field(default_factory=UserData)
    version: str = STORE_VERSION
    exported_at: datetime = Field(default_factory=utcnow)
