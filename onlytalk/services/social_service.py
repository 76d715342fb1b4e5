"""
onlytalk.services.social_service — Favorites & Follows
=======================================================

Both are toggles over a unique join row.  Follow toggles notify the
followed user; favorites are private and notify nobody.  Neither moves
points.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import Engine, delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from onlytalk.database.engine import get_session
from onlytalk.database.models import Favorite, Follow, NotificationType, Post, User
from onlytalk.errors import ConflictError, NotFoundError, SelfFollowError
from onlytalk.services.notification_service import display_name, insert_notification

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FollowStats:
    following: int
    followers: int


# ---------------------------------------------------------------------------
# Favorites
# ---------------------------------------------------------------------------
def toggle_favorite(engine: Engine, user_id: int, post_id: int) -> bool:
    """Bookmark the post, or remove the bookmark.  Returns the new state."""
    with get_session(engine) as session:
        if session.get(Post, post_id) is None:
            raise NotFoundError("Post not found")

        removed = session.execute(
            delete(Favorite).where(Favorite.post_id == post_id, Favorite.user_id == user_id)
        ).rowcount
        if removed:
            return False

        session.add(Favorite(post_id=post_id, user_id=user_id))
        try:
            session.flush()
        except IntegrityError:
            raise ConflictError("Favorite already recorded") from None
        return True


def is_favorited(engine: Engine, user_id: int, post_id: int) -> bool:
    with Session(engine) as session:
        return session.scalar(
            select(Favorite.id).where(Favorite.post_id == post_id, Favorite.user_id == user_id)
        ) is not None


def list_favorites(
    engine: Engine, user_id: int, *, limit: int = 20, offset: int = 0,
) -> tuple[list[Post], int]:
    """The user's bookmarked posts, most recently bookmarked first."""
    with Session(engine, expire_on_commit=False) as session:
        total = session.scalar(
            select(func.count()).select_from(Favorite).where(Favorite.user_id == user_id)
        ) or 0
        rows = session.scalars(
            select(Post)
            .join(Favorite, Favorite.post_id == Post.id)
            .options(selectinload(Post.author), selectinload(Post.category))
            .where(Favorite.user_id == user_id)
            .order_by(Favorite.created_at.desc(), Favorite.id.desc())
            .offset(offset)
            .limit(limit)
        ).all()
        return list(rows), total


# ---------------------------------------------------------------------------
# Follows
# ---------------------------------------------------------------------------
def toggle_follow(engine: Engine, follower_id: int, following_id: int) -> bool:
    """Follow *following_id*, or unfollow if already following.

    Returns ``True`` when the edge exists afterwards.
    """
    if follower_id == following_id:
        raise SelfFollowError("You cannot follow yourself")

    with get_session(engine) as session:
        if session.get(User, following_id) is None:
            raise NotFoundError("User not found")

        removed = session.execute(
            delete(Follow).where(
                Follow.follower_id == follower_id, Follow.following_id == following_id,
            )
        ).rowcount
        name = display_name(session, follower_id)

        if removed:
            insert_notification(
                session,
                following_id,
                NotificationType.UNFOLLOW,
                "Lost a follower",
                f"{name} unfollowed you",
                related_id=follower_id,
                related_type="user",
            )
            following = False
        else:
            session.add(Follow(follower_id=follower_id, following_id=following_id))
            try:
                session.flush()
            except IntegrityError:
                raise ConflictError("Already following") from None
            insert_notification(
                session,
                following_id,
                NotificationType.FOLLOW,
                "New follower",
                f"{name} started following you",
                related_id=follower_id,
                related_type="user",
            )
            following = True

    logger.debug(
        "User %s %s user %s", follower_id, "followed" if following else "unfollowed", following_id,
    )
    return following


def is_following(engine: Engine, follower_id: int, following_id: int) -> bool:
    with Session(engine) as session:
        return session.scalar(
            select(Follow.id).where(
                Follow.follower_id == follower_id, Follow.following_id == following_id,
            )
        ) is not None


def list_following(engine: Engine, user_id: int, *, limit: int = 20, offset: int = 0) -> list[User]:
    """Users that *user_id* follows, newest edge first."""
    with Session(engine, expire_on_commit=False) as session:
        rows = session.scalars(
            select(User)
            .join(Follow, Follow.following_id == User.id)
            .where(Follow.follower_id == user_id)
            .order_by(Follow.created_at.desc(), Follow.id.desc())
            .offset(offset)
            .limit(limit)
        ).all()
        return list(rows)


def list_followers(engine: Engine, user_id: int, *, limit: int = 20, offset: int = 0) -> list[User]:
    """Users following *user_id*, newest edge first."""
    with Session(engine, expire_on_commit=False) as session:
        rows = session.scalars(
            select(User)
            .join(Follow, Follow.follower_id == User.id)
            .where(Follow.following_id == user_id)
            .order_by(Follow.created_at.desc(), Follow.id.desc())
            .offset(offset)
            .limit(limit)
        ).all()
        return list(rows)


def follow_stats(engine: Engine, user_id: int) -> FollowStats:
    with Session(engine) as session:
        following = session.scalar(
            select(func.count()).select_from(Follow).where(Follow.follower_id == user_id)
        ) or 0
        followers = session.scalar(
            select(func.count()).select_from(Follow).where(Follow.following_id == user_id)
        ) or 0
        return FollowStats(following=following, followers=followers)
