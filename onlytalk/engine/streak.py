"""
onlytalk.engine.streak — Daily Check-in Streak Calculation
===========================================================

Pure calculation — no DB I/O.  The check-in service feeds in whether a
record exists for yesterday and persists what comes out.

A streak continues only from *yesterday*; any gap of one or more missed
days resets it to 1.  There is no partial credit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

__all__ = [
    "STREAK_TIERS",
    "BASE_CHECKIN_POINTS",
    "CheckinResult",
    "CheckinStatus",
    "next_streak",
    "points_for_streak",
    "yesterday_of",
]

BASE_CHECKIN_POINTS = 10

# (minimum consecutive days, points), ascending; highest met tier wins
STREAK_TIERS: tuple[tuple[int, int], ...] = (
    (7, 20),
    (30, 50),
    (100, 100),
)


# ---------------------------------------------------------------------------
# Results returned to callers
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class CheckinResult:
    date: date
    consecutive_days: int
    points_earned: int


@dataclass(frozen=True, slots=True)
class CheckinStatus:
    checked_in_today: bool
    consecutive_days: int
    today_checkin: CheckinResult | None = None


# ---------------------------------------------------------------------------
# Calculation
# ---------------------------------------------------------------------------
def yesterday_of(day: date) -> date:
    return day - timedelta(days=1)


def next_streak(yesterday_streak: int | None) -> int:
    """Streak length for today given yesterday's (``None`` if no record)."""
    if yesterday_streak is None:
        return 1
    return yesterday_streak + 1


def points_for_streak(consecutive_days: int) -> int:
    """Bonus for a check-in on day *consecutive_days* of a streak.

    Thresholds are tested independently in ascending order so the last one
    met wins: 1–6 → 10, 7–29 → 20, 30–99 → 50, 100+ → 100.
    """
    points = BASE_CHECKIN_POINTS
    for threshold, tier_points in STREAK_TIERS:
        if consecutive_days >= threshold:
            points = tier_points
    return points
