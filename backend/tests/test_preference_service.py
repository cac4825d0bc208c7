"""Tests for rating lookups in the preference service."""

import pytest

from gamerec.services import preference_service

WITCHER = {"id": 3328, "name": "The Witcher 3: Wild Hunt", "genres": [{"id": 5, "name": "RPG"}]}
HADES = {"id": 3612, "name": "Hades", "tags": [{"id": 118, "name": "Story Rich"}]}


class TestRatingLookups:
    """Test per-game and average ratings."""

    def test_missing_rating(self, db, test_user):
        assert preference_service.get_user_game_rating(db, test_user.id, 3328) is None

    def test_game_rating(self, db, test_user):
        preference_service.record_rating(db, test_user.id, WITCHER, 9)

        assert preference_service.get_user_game_rating(db, test_user.id, 3328) == 9
        assert preference_service.get_user_game_rating(db, test_user.id, 3612) is None

    def test_average_without_ratings(self, db, test_user):
        # A like carries no rating and must not count
        preference_service.record_action(db, test_user.id, WITCHER, "like")

        assert preference_service.get_user_average_rating(db, test_user.id) == 0.0

    def test_average_of_two_ratings(self, db, test_user):
        preference_service.record_rating(db, test_user.id, WITCHER, 9)
        preference_service.record_rating(db, test_user.id, HADES, 6)

        assert preference_service.get_user_average_rating(db, test_user.id) == pytest.approx(7.5)

    def test_rerating_replaces_value_in_average(self, db, test_user):
        preference_service.record_rating(db, test_user.id, WITCHER, 2)
        preference_service.record_rating(db, test_user.id, WITCHER, 8)
        preference_service.record_rating(db, test_user.id, HADES, 6)

        assert preference_service.get_user_average_rating(db, test_user.id) == pytest.approx(7.0)
