"""
onlytalk.constants — Shared Constants & the Leveling Formula
=============================================================

Single source of truth for the level formula.  Import from here instead of
re-deriving levels in services or routes.

Two divisors are in use and are kept apart on purpose: activity paths
(likes, check-ins, new posts and comments) level users every 30 points,
while reward and profile paths level every 100.  Whichever path last
touched a user decides the stored level.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Level divisors, tagged by call site
# ---------------------------------------------------------------------------
ACTIVITY_LEVEL_DIVISOR = 30
"""Like/unlike credit, check-in, post and comment creation."""

PROFILE_LEVEL_DIVISOR = 100
"""Reward recipient, profile fetch, shop purchase."""

MIN_LEVEL = 1


# ---------------------------------------------------------------------------
# Leveling formula
# ---------------------------------------------------------------------------
def level_for_points(points: int, divisor: int) -> int:
    """Level for a point total: ``floor(points / divisor) + 1``, never below 1."""
    if divisor <= 0:
        raise ValueError(f"Level divisor must be positive, got {divisor}")
    return max(MIN_LEVEL, points // divisor + 1)


# ---------------------------------------------------------------------------
# Reward limits
# ---------------------------------------------------------------------------
REWARD_MIN_POINTS = 1
REWARD_MAX_POINTS = 1000
REWARD_MESSAGE_MAX_LENGTH = 100

REWARD_TARGET_TYPES: frozenset[str] = frozenset({"post", "comment"})


# ---------------------------------------------------------------------------
# Leaderboards / pagination
# ---------------------------------------------------------------------------
LEADERBOARD_DEFAULT_LIMIT = 50
LEADERBOARD_MAX_LIMIT = 100
