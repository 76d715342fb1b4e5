"""
onlytalk.services.reward_service — Peer Reward Transfer
========================================================

Moves points from a member to the author of a post or comment they
appreciated.  The whole transfer is one transaction:

1. Resolve the recipient (author of the target)   → NotFoundError
2. Refuse self-rewards                            → SelfRewardError
3. Lock sender + recipient rows (ascending id)
4. Check the sender's balance                     → InsufficientPointsError
5. Debit sender, credit recipient (ledger journal rows for both)
6. Insert the immutable Reward row and the recipient's notification
7. Recalculate the recipient's level (profile divisor)

A failure at any step rolls back every write, so a rejected reward never
debits the sender.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from onlytalk.constants import (
    PROFILE_LEVEL_DIVISOR,
    REWARD_MAX_POINTS,
    REWARD_MESSAGE_MAX_LENGTH,
    REWARD_MIN_POINTS,
    REWARD_TARGET_TYPES,
)
from onlytalk.database.engine import get_session
from onlytalk.database.models import Comment, LedgerReason, NotificationType, Post, Reward
from onlytalk.errors import (
    InsufficientPointsError,
    NotFoundError,
    SelfRewardError,
    ValidationError,
)
from onlytalk.services.ledger import BalanceLedger
from onlytalk.services.notification_service import display_name, insert_notification

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RewardReceipt:
    id: int
    points: int
    from_user_id: int
    to_user_id: int


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------
def find_post_author(session: Session, post_id: int) -> int | None:
    return session.scalar(select(Post.author_id).where(Post.id == post_id))


def find_comment_author(session: Session, comment_id: int) -> int | None:
    return session.scalar(select(Comment.author_id).where(Comment.id == comment_id))


def insert_reward(
    session: Session,
    from_user_id: int,
    to_user_id: int,
    points: int,
    related_type: str,
    related_id: int,
    message: str | None,
) -> Reward:
    reward = Reward(
        from_user_id=from_user_id,
        to_user_id=to_user_id,
        points=points,
        related_type=related_type,
        related_id=related_id,
        message=message,
    )
    session.add(reward)
    return reward


def validate_reward_request(related_type: str, points: int, message: str | None) -> None:
    """Reject out-of-range amounts, unknown targets and overlong messages."""
    if related_type not in REWARD_TARGET_TYPES:
        raise ValidationError("related_type must be 'post' or 'comment'")
    if not REWARD_MIN_POINTS <= points <= REWARD_MAX_POINTS:
        raise ValidationError(
            f"Reward must be between {REWARD_MIN_POINTS} and {REWARD_MAX_POINTS} points"
        )
    if message is not None and len(message) > REWARD_MESSAGE_MAX_LENGTH:
        raise ValidationError(
            f"Message must be at most {REWARD_MESSAGE_MAX_LENGTH} characters"
        )


# ---------------------------------------------------------------------------
# Transfer
# ---------------------------------------------------------------------------
def send_reward(
    engine: Engine,
    from_user_id: int,
    related_type: str,
    related_id: int,
    points: int,
    message: str | None = None,
) -> RewardReceipt:
    """Transfer *points* from the sender to the author of the target.

    Raises
    ------
    ValidationError, NotFoundError, SelfRewardError, InsufficientPointsError
    """
    message = message or None
    validate_reward_request(related_type, points, message)

    with get_session(engine) as session:
        if related_type == "post":
            to_user_id = find_post_author(session, related_id)
            if to_user_id is None:
                raise NotFoundError("Post not found")
        else:
            to_user_id = find_comment_author(session, related_id)
            if to_user_id is None:
                raise NotFoundError("Comment not found")

        if to_user_id == from_user_id:
            raise SelfRewardError()

        ledger = BalanceLedger(session)
        users = ledger.lock_users(from_user_id, to_user_id)
        sender = users.get(from_user_id)
        if sender is None:
            raise NotFoundError("User not found")
        if to_user_id not in users:
            raise NotFoundError("Recipient not found")
        if sender.points < points:
            raise InsufficientPointsError(balance=sender.points, required=points)

        ledger.adjust(
            from_user_id, -points, LedgerReason.REWARD_SENT,
            related_type=related_type, related_id=related_id, floor=0,
        )
        ledger.adjust(
            to_user_id, points, LedgerReason.REWARD_RECEIVED,
            related_type=related_type, related_id=related_id,
        )

        reward = insert_reward(
            session, from_user_id, to_user_id, points, related_type, related_id, message,
        )
        session.flush()

        sender_name = display_name(session, from_user_id)
        content = f"{sender_name} rewarded you {points} points"
        if message:
            content += f": {message}"
        insert_notification(
            session,
            to_user_id,
            NotificationType.REWARD,
            "Reward received",
            content,
            related_id=related_id,
            related_type=related_type,
        )

        ledger.recalculate_level(to_user_id, PROFILE_LEVEL_DIVISOR)

        receipt = RewardReceipt(
            id=reward.id,
            points=points,
            from_user_id=from_user_id,
            to_user_id=to_user_id,
        )

    logger.info(
        "Reward %s: %s → %s, %d pts on %s %s",
        receipt.id, from_user_id, to_user_id, points, related_type, related_id,
    )
    return receipt


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------
def list_rewards(
    engine: Engine,
    user_id: int,
    *,
    direction: str = "received",
    limit: int = 20,
    offset: int = 0,
) -> list[Reward]:
    """Rewards the user sent or received, newest first."""
    if direction not in ("sent", "received"):
        raise ValidationError("direction must be 'sent' or 'received'")
    column = Reward.from_user_id if direction == "sent" else Reward.to_user_id

    with Session(engine, expire_on_commit=False) as session:
        rows = session.scalars(
            select(Reward)
            .where(column == user_id)
            .order_by(Reward.created_at.desc(), Reward.id.desc())
            .offset(offset)
            .limit(limit)
        ).all()
        return list(rows)
