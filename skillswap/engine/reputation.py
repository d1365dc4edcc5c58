"""
skillswap.engine.reputation — Trust Score & Points Formulas
=============================================================

Pure calculation, no database I/O.

Trust score is a recency-weighted average: each new rating (1–5, scaled to
20–100) is blended at 30% against the 70%-weighted prior score, so a
single rating moves the score only a little while a run of ratings shifts
it steadily.

Points follow a front-loaded table rather than a linear curve: a 5-star
rating is worth twice a 3-star one.
"""

from __future__ import annotations

__all__ = [
    "MAX_TRUST_SCORE",
    "MIN_TRUST_SCORE",
    "POINTS_BY_RATING",
    "next_trust_score",
    "points_for_rating",
]

MIN_TRUST_SCORE = 0
MAX_TRUST_SCORE = 100

# Weights expressed in tenths: 0.7 prior, 0.3 new rating (rating * 20).
_PRIOR_WEIGHT_TENTHS = 7
_RATING_WEIGHT_TENTHS = 3
_RATING_SCALE = 20

POINTS_BY_RATING: dict[int, int] = {
    5: 10,
    4: 8,
    3: 5,
    2: 2,
    1: 1,
}


def next_trust_score(current: int, rating: int) -> int:
    """Return the trust score after receiving *rating*.

    ``round(current * 0.7 + rating * 20 * 0.3)``, rounded half-up and
    computed in integer tenths so no float drift creeps in.  The result is
    clamped to ``[0, 100]`` in case *current* or *rating* arrive malformed.

    >>> next_trust_score(100, 5)
    100
    >>> next_trust_score(0, 1)
    6
    """
    tenths = (
        current * _PRIOR_WEIGHT_TENTHS
        + rating * _RATING_SCALE * _RATING_WEIGHT_TENTHS
    )
    rounded = (tenths + 5) // 10
    return max(MIN_TRUST_SCORE, min(MAX_TRUST_SCORE, rounded))


def points_for_rating(rating: int) -> int:
    """Points awarded to the rated user; 0 for anything outside 1–5."""
    return POINTS_BY_RATING.get(rating, 0)
