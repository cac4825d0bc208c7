"""
Local library: a file-backed store of one user's media ratings, notes,
favorites, watched items and watchlist, plus a cache of the media items
themselves.

Entries are keyed ``"<mediaType>_<id>"`` (e.g. ``"movie_550"``). Each map
has an insertion-ordered key list alongside it, and the stats block is
recomputed after every mutation.
"""

import json
from datetime import timedelta, timezone
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from gamerec.core.logging import get_logger
from gamerec.schemas.local_library import (
    STORE_VERSION,
    BackupData,
    FavoriteEntry,
    LibraryStats,
    MediaItem,
    MediaType,
    NoteEntry,
    RatingEntry,
    UserData,
    WatchedEntry,
    WatchlistEntry,
    utcnow,
)

logger = get_logger(__name__)

MEDIA_TYPES = ("movie", "tv", "person")
CACHE_MAX_AGE = timedelta(days=30)

# map name -> key list name
KEY_LISTS = {
    "favorites": "favorite_keys",
    "watched": "watched_keys",
    "watchlist": "watchlist_keys",
    "ratings": "rated_keys",
    "notes": "noted_keys",
}

# action name accepted by media_with_actions -> key list name
ACTION_KEY_LISTS = {
    "favorite": "favorite_keys",
    "watched": "watched_keys",
    "watchlist": "watchlist_keys",
    "rating": "rated_keys",
    "note": "noted_keys",
}


class LibraryError(Exception):
    """A library or backup file could not be read."""


def media_key(media_id: int, media_type: MediaType) -> str:
    if media_type not in MEDIA_TYPES:
        raise ValueError(f"Unknown media type: {media_type}")
    return f"{media_type}_{media_id}"


def parse_media_key(key: str) -> tuple[int, str]:
    media_type, _, media_id = key.partition("_")
    return int(media_id), media_type


def _add_key(keys: list[str], key: str) -> None:
    if key not in keys:
        keys.append(key)


def _remove_key(keys: list[str], key: str) -> None:
    if key in keys:
        keys.remove(key)


def _merge_keys(current: list[str], imported: Iterable[str]) -> list[str]:
    merged = list(current)
    seen = set(merged)
    for key in imported:
        if key not in seen:
            merged.append(key)
            seen.add(key)
    return merged


def _read_json(path: str | Path) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise LibraryError(f"{path} is not valid JSON: {e}") from e


def _write_json(path: str | Path, payload: str) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_suffix(target.suffix + ".tmp")
    tmp.write_text(payload, encoding="utf-8")
    tmp.replace(target)


def migrate_user_data(payload: dict) -> dict:
    """
    Bring an older payload up to the current shape.

    Version 0 files stored only the maps; their key lists are derived from
    the map keys.
    """
    migrated = dict(payload)
    for map_name, list_name in KEY_LISTS.items():
        alias = to_camel(list_name)
        if alias not in migrated and list_name not in migrated:
            migrated[alias] = list((migrated.get(map_name) or {}).keys())
    migrated["version"] = STORE_VERSION
    return migrated


class LocalLibrary:
    """
    One user's local library.

    Mutations update the in-memory state; call ``save`` to persist it.
    """

    def __init__(self, data: UserData | None = None):
        self.data = data or UserData()
        self.update_stats()

    # Persistence

    @classmethod
    def load(cls, path: str | Path) -> "LocalLibrary":
        """Load a library file; a missing file gives an empty library."""
        if not Path(path).exists():
            return cls()

        payload = _read_json(path)
        if not isinstance(payload, dict):
            raise LibraryError(f"{path} is not a library document")
        try:
            data = UserData.model_validate(migrate_user_data(payload))
        except ValidationError as e:
            raise LibraryError(f"{path} is not a valid library file: {e}") from e

        logger.debug("Library loaded", extra={"extra_fields": {"path": str(path)}})
        return cls(data)

    def save(self, path: str | Path) -> None:
        _write_json(path, self.data.model_dump_json(by_alias=True, indent=2))

    # Ratings

    def set_rating(self, media_id: int, media_type: MediaType, value: int) -> None:
        key = media_key(media_id, media_type)
        now = utcnow()
        existing = self.data.ratings.get(key)
        self.data.ratings[key] = RatingEntry(
            value=max(1, min(10, int(value))),
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        _add_key(self.data.rated_keys, key)
        self.update_stats()

    def get_rating(self, media_id: int, media_type: MediaType) -> int | None:
        entry = self.data.ratings.get(media_key(media_id, media_type))
        return entry.value if entry else None

    def remove_rating(self, media_id: int, media_type: MediaType) -> None:
        key = media_key(media_id, media_type)
        self.data.ratings.pop(key, None)
        _remove_key(self.data.rated_keys, key)
        self.update_stats()

    def has_rating(self, media_id: int, media_type: MediaType) -> bool:
        return media_key(media_id, media_type) in self.data.ratings

    # Notes

    def set_note(self, media_id: int, media_type: MediaType, content: str) -> None:
        """Store a trimmed note. Blank content removes the note."""
        content = content.strip()
        if not content:
            self.remove_note(media_id, media_type)
            return

        key = media_key(media_id, media_type)
        now = utcnow()
        existing = self.data.notes.get(key)
        self.data.notes[key] = NoteEntry(
            content=content,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        _add_key(self.data.noted_keys, key)
        self.update_stats()

    def get_note(self, media_id: int, media_type: MediaType) -> str | None:
        entry = self.data.notes.get(media_key(media_id, media_type))
        return entry.content if entry else None

    def remove_note(self, media_id: int, media_type: MediaType) -> None:
        key = media_key(media_id, media_type)
        self.data.notes.pop(key, None)
        _remove_key(self.data.noted_keys, key)
        self.update_stats()

    def has_note(self, media_id: int, media_type: MediaType) -> bool:
        return media_key(media_id, media_type) in self.data.notes

    # Favorites, watched, watchlist

    def toggle_favorite(self, media_id: int, media_type: MediaType) -> bool:
        """Returns True if the item is a favorite after the toggle."""
        key = media_key(media_id, media_type)
        if key in self.data.favorites:
            del self.data.favorites[key]
            _remove_key(self.data.favorite_keys, key)
            added = False
        else:
            self.data.favorites[key] = FavoriteEntry(added_at=utcnow())
            _add_key(self.data.favorite_keys, key)
            added = True
        self.update_stats()
        return added

    def is_favorite(self, media_id: int, media_type: MediaType) -> bool:
        return media_key(media_id, media_type) in self.data.favorites

    def toggle_watched(self, media_id: int, media_type: MediaType) -> bool:
        key = media_key(media_id, media_type)
        if key in self.data.watched:
            del self.data.watched[key]
            _remove_key(self.data.watched_keys, key)
            added = False
        else:
            now = utcnow()
            self.data.watched[key] = WatchedEntry(watched_at=now, last_watched_at=now)
            _add_key(self.data.watched_keys, key)
            added = True
        self.update_stats()
        return added

    def is_watched(self, media_id: int, media_type: MediaType) -> bool:
        return media_key(media_id, media_type) in self.data.watched

    def toggle_watchlist(self, media_id: int, media_type: MediaType) -> bool:
        key = media_key(media_id, media_type)
        if key in self.data.watchlist:
            del self.data.watchlist[key]
            _remove_key(self.data.watchlist_keys, key)
            added = False
        else:
            self.data.watchlist[key] = WatchlistEntry(added_at=utcnow())
            _add_key(self.data.watchlist_keys, key)
            added = True
        self.update_stats()
        return added

    def is_in_watchlist(self, media_id: int, media_type: MediaType) -> bool:
        return media_key(media_id, media_type) in self.data.watchlist

    # Listings

    def all_ratings(self) -> list[dict]:
        return [
            {"id": media_id, "type": media_type, "rating": entry.value, "updatedAt": entry.updated_at}
            for (media_id, media_type), entry in self._entries(self.data.ratings)
        ]

    def all_notes(self) -> list[dict]:
        return [
            {"id": media_id, "type": media_type, "content": entry.content, "updatedAt": entry.updated_at}
            for (media_id, media_type), entry in self._entries(self.data.notes)
        ]

    def all_favorites(self) -> list[dict]:
        return [
            {"id": media_id, "type": media_type, "addedAt": entry.added_at}
            for (media_id, media_type), entry in self._entries(self.data.favorites)
        ]

    def all_watched(self) -> list[dict]:
        return [
            {"id": media_id, "type": media_type, "lastWatchedAt": entry.last_watched_at}
            for (media_id, media_type), entry in self._entries(self.data.watched)
        ]

    def all_watchlist(self) -> list[dict]:
        return [
            {"id": media_id, "type": media_type, "addedAt": entry.added_at}
            for (media_id, media_type), entry in self._entries(self.data.watchlist)
        ]

    def ratings_by_type(self, media_type: MediaType) -> list[dict]:
        return [
            {"id": item["id"], "rating": item["rating"], "updatedAt": item["updatedAt"]}
            for item in self.all_ratings()
            if item["type"] == media_type
        ]

    def notes_by_type(self, media_type: MediaType) -> list[dict]:
        return [
            {"id": item["id"], "content": item["content"], "updatedAt": item["updatedAt"]}
            for item in self.all_notes()
            if item["type"] == media_type
        ]

    def media_with_actions(self, actions: Iterable[str]) -> list[str]:
        """Keys that carry any of the given actions, without duplicates."""
        keys: list[str] = []
        for action in actions:
            list_name = ACTION_KEY_LISTS.get(action)
            if list_name is None:
                raise ValueError(f"Unknown action: {action}")
            keys = _merge_keys(keys, getattr(self.data, list_name))
        return keys

    def has_any_action(self, media_id: int, media_type: MediaType) -> bool:
        key = media_key(media_id, media_type)
        return any(key in getattr(self.data, map_name) for map_name in KEY_LISTS)

    @staticmethod
    def _entries(entries: dict) -> list:
        return [(parse_media_key(key), entry) for key, entry in entries.items()]

    # Stats

    def update_stats(self) -> LibraryStats:
        ratings = [entry.value for entry in self.data.ratings.values()]
        self.data.stats = LibraryStats(
            total_favorites=len(self.data.favorite_keys),
            total_watched=len(self.data.watched_keys),
            total_watchlist=len(self.data.watchlist_keys),
            total_ratings=len(ratings),
            total_notes=len(self.data.noted_keys),
            average_rating=sum(ratings) / len(ratings) if ratings else None,
            last_updated=utcnow(),
        )
        return self.data.stats

    @property
    def stats(self) -> LibraryStats:
        return self.data.stats

    # Clearing

    def clear(self) -> None:
        self.data = UserData()
        self.update_stats()

    def clear_ratings(self) -> None:
        self._clear("ratings")

    def clear_notes(self) -> None:
        self._clear("notes")

    def clear_favorites(self) -> None:
        self._clear("favorites")

    def clear_watched(self) -> None:
        self._clear("watched")

    def clear_watchlist(self) -> None:
        self._clear("watchlist")

    def _clear(self, map_name: str) -> None:
        setattr(self.data, map_name, {})
        setattr(self.data, KEY_LISTS[map_name], [])
        self.update_stats()

    # Import / export

    def import_data(self, imported: UserData | dict) -> None:
        """
        Merge another library into this one.

        Imported entries replace entries with the same key; key lists are
        appended without duplicates, keeping existing order first.
        """
        if isinstance(imported, dict):
            try:
                imported = UserData.model_validate(migrate_user_data(imported))
            except ValidationError as e:
                raise LibraryError(f"Invalid library data: {e}") from e

        for map_name, list_name in KEY_LISTS.items():
            merged = {**getattr(self.data, map_name), **getattr(imported, map_name)}
            setattr(self.data, map_name, merged)
            setattr(
                self.data,
                list_name,
                _merge_keys(getattr(self.data, list_name), getattr(imported, list_name)),
            )

        self.update_stats()
        logger.info(
            "Library data imported",
            extra={"extra_fields": {"ratings": len(self.data.ratings), "notes": len(self.data.notes)}},
        )

    def export_data(self) -> UserData:
        return self.data.model_copy(deep=True)


def detect_media_type(item: dict) -> str:
    """Guess whether a catalog item is a movie, a TV show or a person."""
    if item.get("media_type") in MEDIA_TYPES:
        return item["media_type"]
    if item.get("title") is not None:
        return "movie"
    if item.get("name") is not None:
        if "first_air_date" in item or "number_of_seasons" in item:
            return "tv"
        if "known_for_department" in item or "gender" in item:
            return "person"
    return "movie"


class MediaCache:
    """Cached media items keyed like the library."""

    def __init__(self, items: dict[str, MediaItem] | None = None):
        self.items: dict[str, MediaItem] = dict(items or {})

    @classmethod
    def load(cls, path: str | Path) -> "MediaCache":
        if not Path(path).exists():
            return cls()

        payload = _read_json(path)
        try:
            items = {key: MediaItem.model_validate(value) for key, value in payload.items()}
        except (AttributeError, ValidationError) as e:
            raise LibraryError(f"{path} is not a valid media cache file: {e}") from e
        return cls(items)

    def save(self, path: str | Path) -> None:
        payload = {key: item.model_dump(mode="json", by_alias=True) for key, item in self.items.items()}
        _write_json(path, json.dumps(payload, ensure_ascii=False, indent=2))

    def add(self, item: dict, media_type: MediaType | None = None) -> str:
        """Cache one item and return its key."""
        media_type = media_type or detect_media_type(item)
        key = media_key(item["id"], media_type)
        self.items[key] = MediaItem.model_validate({**item, "type": media_type, "cachedAt": utcnow()})
        return key

    def add_many(self, items: Iterable[dict]) -> list[str]:
        now = utcnow()
        keys = []
        for item in items:
            media_type = detect_media_type(item)
            key = media_key(item["id"], media_type)
            self.items[key] = MediaItem.model_validate({**item, "type": media_type, "cachedAt": now})
            keys.append(key)
        return keys

    def get(self, media_id: int, media_type: MediaType) -> dict | None:
        item = self.items.get(media_key(media_id, media_type))
        return item.model_dump(by_alias=True) if item else None

    def is_in_cache(self, media_id: int, media_type: MediaType) -> bool:
        return media_key(media_id, media_type) in self.items

    def get_many(self, refs: Iterable[tuple[int, MediaType]]) -> list[dict]:
        """Cached items for (id, type) pairs; missing pairs are skipped."""
        found = []
        for media_id, media_type in refs:
            item = self.get(media_id, media_type)
            if item is not None:
                found.append(item)
        return found

    def clear_old(self, max_age: timedelta = CACHE_MAX_AGE) -> int:
        """Drop items cached longer ago than max_age. Returns how many went."""
        cutoff = utcnow() - max_age
        stale = [key for key, item in self.items.items() if _aware(item.cached_at) <= cutoff]
        for key in stale:
            del self.items[key]
        return len(stale)

    def clear(self) -> None:
        self.items = {}

    def __len__(self) -> int:
        return len(self.items)


def _aware(value):
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def export_backup(library: LocalLibrary, cache: MediaCache) -> BackupData:
    return BackupData(
        media_cache=dict(cache.items),
        user_data=library.export_data(),
        version=STORE_VERSION,
        exported_at=utcnow(),
    )


def import_backup(
    payload: BackupData | dict, library: LocalLibrary, cache: MediaCache
) -> None:
    """Merge a backup document into an existing library and cache."""
    if isinstance(payload, dict):
        payload = dict(payload)
        user_data = payload.get("userData", payload.get("user_data"))
        if isinstance(user_data, dict):
            payload["userData"] = migrate_user_data(user_data)
            payload.pop("user_data", None)
        try:
            payload = BackupData.model_validate(payload)
        except ValidationError as e:
            raise LibraryError(f"Invalid backup document: {e}") from e

    cache.items.update(payload.media_cache)
    library.import_data(payload.user_data)


def save_backup(path: str | Path, library: LocalLibrary, cache: MediaCache) -> None:
    _write_json(path, export_backup(library, cache).model_dump_json(by_alias=True, indent=2))


def load_backup(path: str | Path, library: LocalLibrary, cache: MediaCache) -> None:
    payload = _read_json(path)
    if not isinstance(payload, dict):
        raise LibraryError(f"{path} is not a backup document")
    import_backup(payload, library, cache)
