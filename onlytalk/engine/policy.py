"""
onlytalk.engine.policy — Points per Action
===========================================

The fixed accrual table.  Every balance change the forum makes on its own
(as opposed to a user-chosen reward amount or a shop price) comes from
here, so the numbers live in exactly one place.
"""

from __future__ import annotations

from onlytalk.database.models import LedgerReason

__all__ = ["POINTS_FOR", "REGISTRATION_BONUS", "like_delta"]

# ---------------------------------------------------------------------------
# Fixed deltas per ledger reason
# ---------------------------------------------------------------------------
POINTS_FOR: dict[LedgerReason, int] = {
    LedgerReason.REGISTER: 10,
    LedgerReason.POST_CREATED: 5,
    LedgerReason.COMMENT_CREATED: 2,
    LedgerReason.LIKE_RECEIVED: 1,
    LedgerReason.LIKE_REVOKED: -1,
    # CHECKIN is tiered, see onlytalk.engine.streak
    # REWARD_* and SHOP_PURCHASE amounts are chosen per call
}

REGISTRATION_BONUS = POINTS_FOR[LedgerReason.REGISTER]


def like_delta(
    author_id: int,
    acting_user_id: int,
    *,
    is_like: bool,
    target_kind: str,
) -> int:
    """Points the author of a liked post/comment gains (or loses).

    * Liking your own content never moves points.
    * Liking someone else's post or comment credits the author by 1.
    * Unliking a post debits the author by 1.
    * Unliking a comment leaves the author's balance alone.
    """
    if author_id == acting_user_id:
        return 0
    if is_like:
        return POINTS_FOR[LedgerReason.LIKE_RECEIVED]
    if target_kind == "post":
        return POINTS_FOR[LedgerReason.LIKE_REVOKED]
    return 0
