"""
Recommendation service.

Ranks catalog games for a user from three signals:

1. Genre affinity: average weight of the user's matching genre preferences
2. Tag affinity: same over tag preferences
3. Rating similarity: how close the game is (by genre/tag overlap) to games
   the user rated, weighted by how much they liked them

Users with no preferences and no ratings get the popular list instead.
"""

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from gamerec.core.logging import get_context_logger
from gamerec.models.action import UserGameAction
from gamerec.models.preference import UserGenrePreference, UserTagPreference
from gamerec.services import preference_service
from gamerec.services.catalog_client import RawgClient

# Contribution factors
GENRE_FACTOR = 0.4
TAG_FACTOR = 0.3
SIMILARITY_FACTOR = 0.3

# Jaccard mix inside the similarity term
GENRE_SIMILARITY_SHARE = 0.6
TAG_SIMILARITY_SHARE = 0.4

NEUTRAL_WEIGHT = 1.0
NEUTRAL_RATING_WEIGHT = 0.5
DEFAULT_GAME_RATING = 5.0

REASON_WEIGHT_THRESHOLD = 1.8
MIN_SCORE = 4.0
MAX_RESULTS = 20

# Genre prefs above this weight narrow the catalog query
QUERY_GENRE_THRESHOLD = 1.5
QUERY_GENRE_COUNT = 2

REASON_GENRE = 'вам нравится жанр "{name}"'
REASON_TAG = 'вы любите "{name}"'
REASON_PREFIX = "Рекомендуем, потому что "
REASON_JOINER = " и "
REASON_FALLBACK = "Популярная игра в ваших любимых категориях"
REASON_POPULAR = "Популярная игра с высоким рейтингом"
REASON_NEW = "Новая популярная игра"


def _ids(items: list | None) -> set:
    return {item["id"] for item in items or [] if isinstance(item, dict) and "id" in item}


def jaccard(a: set, b: set) -> float:
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def game_similarity(game: dict, rated_genres: list | None, rated_tags: list | None) -> float:
    """Overlap between a candidate and a rated game, in [0, 1]."""
    genre_sim = jaccard(_ids(game.get("genres")), _ids(rated_genres))
    tag_sim = jaccard(_ids(game.get("tags")), _ids(rated_tags))
    return GENRE_SIMILARITY_SHARE * genre_sim + TAG_SIMILARITY_SHARE * tag_sim


def normalized_rating(rating: int | float | None) -> float:
    """Map a 1-10 rating onto [0, 1]; anything else counts as neutral."""
    if rating is None or rating < 1 or rating > 10:
        return NEUTRAL_RATING_WEIGHT
    return (rating - 1) / 9


def popular_item(game: dict, reason: str = REASON_POPULAR) -> dict:
    return {
        **game,
        "personalizedScore": game.get("rating") or DEFAULT_GAME_RATING,
        "recommendationReason": reason,
    }


@dataclass
class PersonalizedScorer:
    """
    Scores candidates against one user's preferences and rating history.

    Preferences are expected sorted by weight descending. Inputs are never
    modified; each scored candidate is a copy with ``personalizedScore`` and
    ``recommendationReason`` added.
    """

    genre_prefs: list[UserGenrePreference] = field(default_factory=list)
    tag_prefs: list[UserTagPreference] = field(default_factory=list)
    user_ratings: list[UserGameAction] = field(default_factory=list)

    def __post_init__(self):
        # First preference wins when ids repeat
        self._genre_by_id: dict[int, Any] = {}
        for pref in self.genre_prefs:
            self._genre_by_id.setdefault(pref.genre_id, pref)
        self._tag_by_id: dict[int, Any] = {}
        for pref in self.tag_prefs:
            self._tag_by_id.setdefault(pref.tag_id, pref)

    @property
    def is_cold_start(self) -> bool:
        return not (self.genre_prefs or self.tag_prefs or self.user_ratings)

    def rank(self, candidates: list[dict]) -> list[dict]:
        """Score, drop anything under MIN_SCORE, sort best first, cap at MAX_RESULTS."""
        scored = [
            {
                **game,
                "personalizedScore": self.score(game),
                "recommendationReason": self.reason(game),
            }
            for game in candidates
        ]
        kept = [game for game in scored if game["personalizedScore"] >= MIN_SCORE]
        kept.sort(key=lambda game: game["personalizedScore"], reverse=True)
        return kept[:MAX_RESULTS]

    def score(self, game: dict) -> float:
        score = game.get("rating") or DEFAULT_GAME_RATING

        genre_weights = self._matched_weights(game.get("genres"), self._genre_by_id)
        if genre_weights:
            score += (sum(genre_weights) / len(genre_weights) - NEUTRAL_WEIGHT) * GENRE_FACTOR

        tag_weights = self._matched_weights(game.get("tags"), self._tag_by_id)
        if tag_weights:
            score += (sum(tag_weights) / len(tag_weights) - NEUTRAL_WEIGHT) * TAG_FACTOR

        if self.user_ratings:
            score += self.similarity_score(game) * SIMILARITY_FACTOR

        return score

    def similarity_score(self, game: dict) -> float:
        """Rating-weighted mean similarity to the user's rated games."""
        total_similarity = 0.0
        total_weight = 0.0

        for rated in self.user_ratings:
            weight = normalized_rating(rated.rating)
            total_similarity += game_similarity(game, rated.genres, rated.tags) * weight
            total_weight += weight

        if total_weight <= 0:
            return 0.0
        return total_similarity / total_weight

    def reason(self, game: dict) -> str:
        clauses = []

        for genre in game.get("genres") or []:
            pref = self._genre_by_id.get(genre.get("id"))
            if pref is not None and pref.weight > REASON_WEIGHT_THRESHOLD:
                clauses.append(REASON_GENRE.format(name=pref.genre_name))

        for tag in game.get("tags") or []:
            pref = self._tag_by_id.get(tag.get("id"))
            if pref is not None and pref.weight > REASON_WEIGHT_THRESHOLD:
                clauses.append(REASON_TAG.format(name=pref.tag_name))

        if not clauses:
            return REASON_FALLBACK
        return REASON_PREFIX + REASON_JOINER.join(clauses[:2])

    @staticmethod
    def _matched_weights(items: list | None, prefs_by_id: dict) -> list[float]:
        weights = []
        for item in items or []:
            pref = prefs_by_id.get(item.get("id"))
            if pref is not None:
                weights.append(pref.weight)
        return weights


@dataclass
class RecommendationEngine:
    """
    Builds recommendation lists for one user.

    Preferences and rating history come from the database; candidates come
    from the catalog and are scored with PersonalizedScorer.
    """

    db: Session
    user_id: int | None
    catalog: RawgClient

    def __post_init__(self):
        self.log = get_context_logger(__name__, user_id=self.user_id)

    async def get_personalized(self, limit: int = 20) -> list[dict]:
        genre_prefs = preference_service.get_top_genre_preferences(self.db, self.user_id)
        tag_prefs = preference_service.get_top_tag_preferences(self.db, self.user_id)
        user_ratings = preference_service.get_rating_history(self.db, self.user_id)

        scorer = PersonalizedScorer(genre_prefs, tag_prefs, user_ratings)
        if scorer.is_cold_start:
            self.log.info("Cold start, serving popular games")
            return await self.get_popular(limit)

        page = await self.catalog.list_games(**self._candidate_query(genre_prefs, limit))
        recommendations = scorer.rank(page["results"])

        self.log.info(
            "Personalized recommendations generated",
            extra={
                "extra_fields": {
                    "candidates": len(page["results"]),
                    "returned": len(recommendations),
                }
            },
        )
        return recommendations

    async def get_popular(self, limit: int = 20, reason: str = REASON_POPULAR) -> list[dict]:
        page = await self.catalog.list_games(page_size=limit, ordering="-rating")
        return [popular_item(game, reason) for game in page["results"]]

    async def get_by_genre(self, genre_id: int, limit: int = 20) -> list[dict]:
        page = await self.catalog.list_games(
            page_size=limit, ordering="-rating", genres=str(genre_id)
        )
        return [popular_item(game) for game in page["results"]]

    @staticmethod
    def _candidate_query(genre_prefs: list, limit: int) -> dict:
        query: dict[str, Any] = {"page_size": limit}
        top_genres = [
            pref.genre_id for pref in genre_prefs if pref.weight > QUERY_GENRE_THRESHOLD
        ][:QUERY_GENRE_COUNT]
        if top_genres:
            query["genres"] = ",".join(str(genre_id) for genre_id in top_genres)
        return query


async def get_personalized_recommendations(
    db: Session, user_id: int, catalog: RawgClient, limit: int = 20
) -> list[dict]:
    """Convenience function to get personalized recommendations."""
    engine = RecommendationEngine(db=db, user_id=user_id, catalog=catalog)
    return await engine.get_personalized(limit)
