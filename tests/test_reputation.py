"""
tests/test_reputation.py — Trust Score & Points Formulas
==========================================================
"""

from __future__ import annotations

import pytest

from skillswap.engine.reputation import (
    MAX_TRUST_SCORE,
    MIN_TRUST_SCORE,
    POINTS_BY_RATING,
    next_trust_score,
    points_for_rating,
)


# ===========================================================================
# next_trust_score
# ===========================================================================
class TestNextTrustScore:
    @pytest.mark.parametrize(
        "current, rating, expected",
        [
            (100, 5, 100),
            (100, 1, 76),
            (0, 1, 6),
            (0, 5, 30),
            (50, 3, 53),
            (76, 4, 77),
        ],
    )
    def test_known_values(self, current, rating, expected):
        assert next_trust_score(current, rating) == expected

    def test_rounds_half_up(self):
        # 15 * 0.7 + 20 * 0.3 = 16.5; banker's rounding would give 16.
        assert next_trust_score(15, 1) == 17
        # 5 * 0.7 + 20 * 0.3 = 9.5
        assert next_trust_score(5, 1) == 10

    def test_clamps_out_of_range_input(self):
        assert next_trust_score(150, 5) == MAX_TRUST_SCORE
        assert next_trust_score(-50, 1) == MIN_TRUST_SCORE

    @pytest.mark.parametrize("current", range(0, 101))
    def test_stays_in_range_and_monotonic_in_rating(self, current):
        scores = [next_trust_score(current, r) for r in range(1, 6)]
        assert all(MIN_TRUST_SCORE <= s <= MAX_TRUST_SCORE for s in scores)
        assert scores == sorted(scores)

    def test_moves_toward_scaled_rating(self):
        # Each new score lies between the old score and rating * 20.
        for current in (0, 40, 60, 100):
            for rating in range(1, 6):
                target = rating * 20
                new = next_trust_score(current, rating)
                assert min(current, target) <= new <= max(current, target)

    def test_run_of_five_star_ratings_reaches_trusted(self):
        score = 0
        for _ in range(7):
            score = next_trust_score(score, 5)
        assert score >= 90

    def test_returns_int(self):
        assert isinstance(next_trust_score(33, 3), int)


# ===========================================================================
# points_for_rating
# ===========================================================================
class TestPointsForRating:
    def test_exact_table(self):
        assert [points_for_rating(r) for r in (5, 4, 3, 2, 1)] == [10, 8, 5, 2, 1]
        assert POINTS_BY_RATING == {5: 10, 4: 8, 3: 5, 2: 2, 1: 1}

    @pytest.mark.parametrize("rating", [0, 6, -1, 100])
    def test_out_of_range_is_zero(self, rating):
        assert points_for_rating(rating) == 0

    def test_never_negative(self):
        assert all(points_for_rating(r) >= 0 for r in range(-5, 10))
