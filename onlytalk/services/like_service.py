"""
onlytalk.services.like_service — Like Toggles & Author Credit
==============================================================

A like is a toggle per (user, target): the first call records it, the
second removes it.  The target's ``likes`` counter and the author's
balance move in the same transaction as the join row, so a like can never
be double-credited.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import Engine, delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from onlytalk.constants import ACTIVITY_LEVEL_DIVISOR
from onlytalk.database.engine import get_session
from onlytalk.database.models import (
    Comment,
    CommentLike,
    LedgerReason,
    NotificationType,
    Post,
    PostLike,
)
from onlytalk.engine.policy import like_delta
from onlytalk.errors import ConflictError, NotFoundError
from onlytalk.services.ledger import BalanceLedger
from onlytalk.services.notification_service import display_name, insert_notification

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LikeToggle:
    liked: bool
    likes: int


def apply_like_delta(
    session: Session,
    target_author_id: int,
    acting_user_id: int,
    is_like: bool,
    target_kind: str,
    target_id: int | None = None,
) -> int:
    """Credit or debit the author of a liked target; returns the delta.

    Self-likes are a no-op.  Any change triggers a level recalculation with
    the activity divisor.
    """
    delta = like_delta(
        target_author_id, acting_user_id, is_like=is_like, target_kind=target_kind,
    )
    if delta:
        reason = LedgerReason.LIKE_RECEIVED if delta > 0 else LedgerReason.LIKE_REVOKED
        BalanceLedger(session).apply(
            target_author_id,
            delta,
            reason,
            divisor=ACTIVITY_LEVEL_DIVISOR,
            related_type=target_kind,
            related_id=target_id,
        )
    return delta


def _flush_like(session: Session) -> None:
    try:
        session.flush()
    except IntegrityError:
        raise ConflictError("Like already recorded") from None


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------
def toggle_post_like(engine: Engine, user_id: int, post_id: int) -> LikeToggle:
    """Like the post, or remove the caller's existing like."""
    with get_session(engine) as session:
        post = session.get(Post, post_id)
        if post is None:
            raise NotFoundError("Post not found")

        existing = session.scalar(
            select(PostLike).where(PostLike.post_id == post_id, PostLike.user_id == user_id)
        )
        if existing is not None:
            session.execute(
                delete(PostLike).where(PostLike.post_id == post_id, PostLike.user_id == user_id)
            )
            session.execute(
                update(Post).where(Post.id == post_id).values(likes=Post.likes - 1)
            )
            apply_like_delta(session, post.author_id, user_id, False, "post", post_id)
            liked = False
        else:
            session.add(PostLike(post_id=post_id, user_id=user_id))
            _flush_like(session)
            session.execute(
                update(Post).where(Post.id == post_id).values(likes=Post.likes + 1)
            )
            if apply_like_delta(session, post.author_id, user_id, True, "post", post_id):
                insert_notification(
                    session,
                    post.author_id,
                    NotificationType.LIKE,
                    "New like",
                    f"{display_name(session, user_id)} liked your post",
                    related_id=post_id,
                    related_type="post",
                )
            liked = True

        likes = session.scalar(select(Post.likes).where(Post.id == post_id)) or 0

    logger.debug("User %s %s post %s", user_id, "liked" if liked else "unliked", post_id)
    return LikeToggle(liked=liked, likes=likes)


def is_post_liked(engine: Engine, user_id: int, post_id: int) -> bool:
    with Session(engine) as session:
        return session.scalar(
            select(PostLike.id).where(PostLike.post_id == post_id, PostLike.user_id == user_id)
        ) is not None


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------
def toggle_comment_like(engine: Engine, user_id: int, comment_id: int) -> LikeToggle:
    """Like the comment, or remove the caller's existing like.

    Removing a comment like does not debit the author.
    """
    with get_session(engine) as session:
        comment = session.get(Comment, comment_id)
        if comment is None:
            raise NotFoundError("Comment not found")

        existing = session.scalar(
            select(CommentLike).where(
                CommentLike.comment_id == comment_id, CommentLike.user_id == user_id,
            )
        )
        if existing is not None:
            session.execute(
                delete(CommentLike).where(
                    CommentLike.comment_id == comment_id, CommentLike.user_id == user_id,
                )
            )
            session.execute(
                update(Comment).where(Comment.id == comment_id).values(likes=Comment.likes - 1)
            )
            apply_like_delta(session, comment.author_id, user_id, False, "comment", comment_id)
            liked = False
        else:
            session.add(CommentLike(comment_id=comment_id, user_id=user_id))
            _flush_like(session)
            session.execute(
                update(Comment).where(Comment.id == comment_id).values(likes=Comment.likes + 1)
            )
            apply_like_delta(session, comment.author_id, user_id, True, "comment", comment_id)
            liked = True

        likes = session.scalar(select(Comment.likes).where(Comment.id == comment_id)) or 0

    return LikeToggle(liked=liked, likes=likes)
