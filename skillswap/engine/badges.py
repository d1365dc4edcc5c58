"""
skillswap.engine.badges — Badge Rule Evaluation
================================================

Registry of threshold rules.  Each rule is a pure predicate over a
:class:`BadgeStats` snapshot; rules are independent of each other and not
ordered.  A badge is identified by its name: once a name is in the user's
set it is never awarded again.

This module is pure calculation — no database I/O.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Inputs / outputs
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class BadgeStats:
    """Snapshot of the user state the rules look at.

    Parameters
    ----------
    points : Total accumulated points.
    trust_score : Current trust score (0–100).
    skills_offered_count : Number of skills in the offered list.
    badge_names : Names of badges the user already holds.
    """

    points: int = 0
    trust_score: int = 0
    skills_offered_count: int = 0
    badge_names: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True, slots=True)
class Badge:
    name: str
    description: str
    icon: str
    earned_at: datetime


@dataclass(frozen=True, slots=True)
class BadgeRule:
    name: str
    description: str
    icon: str
    qualifies: Callable[[BadgeStats], bool]


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------
FIRST_SWAP_POINTS = 10
TRUSTED_USER_SCORE = 90
SKILL_MASTER_SKILLS = 5
COMMUNITY_HELPER_POINTS = 100

BADGE_RULES: tuple[BadgeRule, ...] = (
    BadgeRule(
        name="First Swap",
        description="Completed your first skill swap",
        icon="\U0001f3af",  # 🎯
        qualifies=lambda s: s.points >= FIRST_SWAP_POINTS,
    ),
    BadgeRule(
        name="Trusted User",
        description="Maintained a high trust score",
        icon="\u2b50",  # ⭐
        qualifies=lambda s: s.trust_score >= TRUSTED_USER_SCORE,
    ),
    BadgeRule(
        name="Skill Master",
        description="Offered 5 or more skills",
        icon="\U0001f3c6",  # 🏆
        qualifies=lambda s: s.skills_offered_count >= SKILL_MASTER_SKILLS,
    ),
    BadgeRule(
        name="Community Helper",
        description="Earned 100+ points helping others",
        icon="\U0001f91d",  # 🤝
        qualifies=lambda s: s.points >= COMMUNITY_HELPER_POINTS,
    ),
)


# ---------------------------------------------------------------------------
# Main check function
# ---------------------------------------------------------------------------
def evaluate_badges(
    stats: BadgeStats,
    *,
    rules: tuple[BadgeRule, ...] = BADGE_RULES,
    now: datetime | None = None,
) -> list[Badge]:
    """Return the badges *stats* newly qualifies for.

    Badges whose name is already in ``stats.badge_names`` are skipped, so
    running this twice on unchanged input yields nothing the second time.
    """
    earned_at = now or datetime.now(UTC)
    newly_earned: list[Badge] = []

    for rule in rules:
        if rule.name in stats.badge_names:
            continue
        if rule.qualifies(stats):
            newly_earned.append(Badge(
                name=rule.name,
                description=rule.description,
                icon=rule.icon,
                earned_at=earned_at,
            ))
            logger.debug("Badge rule matched: %s", rule.name)

    return newly_earned
