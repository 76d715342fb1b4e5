"""
onlytalk.services.content_service — Posts, Comments & Search
=============================================================

Creating a post or comment credits the author through the ledger in the
same transaction as the insert.  Edits and deletes are ownership-checked:
authors may touch their own content, admins may delete anything.

Hot posts are ranked by ``views * 0.1 + likes * 2 + comments * 1.5`` over
a trailing window (``hot_posts_window_days`` in config.yaml).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy import Engine, func, or_, select, update
from sqlalchemy.orm import Session, selectinload

from onlytalk.constants import ACTIVITY_LEVEL_DIVISOR
from onlytalk.database.engine import get_session
from onlytalk.database.models import (
    Category,
    Comment,
    LedgerReason,
    NotificationType,
    Post,
    User,
)
from onlytalk.engine.policy import POINTS_FOR
from onlytalk.errors import NotFoundError, PermissionDeniedError, ValidationError
from onlytalk.services.ledger import BalanceLedger
from onlytalk.services.notification_service import display_name, insert_notification

logger = logging.getLogger(__name__)

HOT_SCORE_VIEW_WEIGHT = 0.1
HOT_SCORE_LIKE_WEIGHT = 2.0
HOT_SCORE_COMMENT_WEIGHT = 1.5


@dataclass(frozen=True, slots=True)
class PostPage:
    items: list[Post]
    total: int
    page: int
    page_size: int


def _comment_count(post_id_column):
    return (
        select(func.count(Comment.id))
        .where(Comment.post_id == post_id_column)
        .correlate(Post)
        .scalar_subquery()
    )


def _check_owner_or_admin(session: Session, owner_id: int, user_id: int, action: str) -> None:
    if owner_id == user_id:
        return
    user = session.get(User, user_id)
    if user is None or not user.is_admin:
        raise PermissionDeniedError(f"You can only {action} your own content")


# ---------------------------------------------------------------------------
# Posts: reads
# ---------------------------------------------------------------------------
def list_posts(
    engine: Engine,
    *,
    category_id: int | None = None,
    page: int = 1,
    page_size: int = 20,
) -> PostPage:
    """Pinned posts first, then newest first."""
    page = max(1, page)
    with Session(engine, expire_on_commit=False) as session:
        query = select(Post)
        if category_id is not None:
            query = query.where(Post.category_id == category_id)

        total = session.scalar(select(func.count()).select_from(query.subquery())) or 0
        rows = session.scalars(
            query.options(selectinload(Post.author), selectinload(Post.category))
            .order_by(Post.is_pinned.desc(), Post.created_at.desc(), Post.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        ).all()
        return PostPage(items=list(rows), total=total, page=page, page_size=page_size)


def hot_posts(engine: Engine, *, window_days: int = 7, limit: int = 10) -> list[Post]:
    """Highest-scoring posts created within the last *window_days*."""
    since = datetime.now(UTC) - timedelta(days=window_days)
    score = (
        Post.views * HOT_SCORE_VIEW_WEIGHT
        + Post.likes * HOT_SCORE_LIKE_WEIGHT
        + _comment_count(Post.id) * HOT_SCORE_COMMENT_WEIGHT
    )
    with Session(engine, expire_on_commit=False) as session:
        rows = session.scalars(
            select(Post)
            .options(selectinload(Post.author), selectinload(Post.category))
            .where(Post.created_at >= since)
            .order_by(score.desc(), Post.id.desc())
            .limit(limit)
        ).all()
        return list(rows)


def get_post(engine: Engine, post_id: int, *, count_view: bool = True) -> Post:
    """Load one post, bumping its view counter."""
    with get_session(engine) as session:
        if count_view:
            result = session.execute(
                update(Post).where(Post.id == post_id).values(views=Post.views + 1)
            )
            if not result.rowcount:
                raise NotFoundError("Post not found")
        post = session.scalar(
            select(Post)
            .options(selectinload(Post.author), selectinload(Post.category))
            .where(Post.id == post_id)
            .execution_options(populate_existing=True)
        )
        if post is None:
            raise NotFoundError("Post not found")
        return post


def search_posts(engine: Engine, keyword: str, *, page: int = 1, page_size: int = 20) -> PostPage:
    """Case-insensitive substring match on title and content."""
    keyword = keyword.strip()
    if not keyword:
        raise ValidationError("Search keyword is required")
    page = max(1, page)
    pattern = f"%{keyword}%"
    with Session(engine, expire_on_commit=False) as session:
        query = select(Post).where(or_(Post.title.ilike(pattern), Post.content.ilike(pattern)))
        total = session.scalar(select(func.count()).select_from(query.subquery())) or 0
        rows = session.scalars(
            query.options(selectinload(Post.author), selectinload(Post.category))
            .order_by(Post.created_at.desc(), Post.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        ).all()
        return PostPage(items=list(rows), total=total, page=page, page_size=page_size)


# ---------------------------------------------------------------------------
# Posts: writes
# ---------------------------------------------------------------------------
def create_post(
    engine: Engine,
    author_id: int,
    *,
    title: str,
    content: str,
    category_id: int | None = None,
) -> Post:
    """Insert the post and credit the author's creation bonus."""
    with get_session(engine) as session:
        if session.get(User, author_id) is None:
            raise NotFoundError("User not found")
        if category_id is not None and session.get(Category, category_id) is None:
            raise NotFoundError("Category not found")

        post = Post(title=title, content=content, author_id=author_id, category_id=category_id)
        session.add(post)
        session.flush()

        BalanceLedger(session).apply(
            author_id,
            POINTS_FOR[LedgerReason.POST_CREATED],
            LedgerReason.POST_CREATED,
            divisor=ACTIVITY_LEVEL_DIVISOR,
            related_type="post",
            related_id=post.id,
        )
        session.refresh(post)

    logger.info("User %s created post %s", author_id, post.id)
    return post


def update_post(
    engine: Engine,
    user_id: int,
    post_id: int,
    *,
    title: str | None = None,
    content: str | None = None,
    category_id: int | None = None,
) -> Post:
    with get_session(engine) as session:
        post = session.get(Post, post_id)
        if post is None:
            raise NotFoundError("Post not found")
        if post.author_id != user_id:
            raise PermissionDeniedError("You can only edit your own posts")

        if title is not None:
            post.title = title
        if content is not None:
            post.content = content
        if category_id is not None:
            if session.get(Category, category_id) is None:
                raise NotFoundError("Category not found")
            post.category_id = category_id
        session.flush()
        session.refresh(post)
        return post


def delete_post(engine: Engine, user_id: int, post_id: int) -> None:
    """Delete a post (author or admin).  Points already earned stay."""
    with get_session(engine) as session:
        post = session.get(Post, post_id)
        if post is None:
            raise NotFoundError("Post not found")
        _check_owner_or_admin(session, post.author_id, user_id, "delete")
        session.delete(post)
    logger.info("Post %s deleted by user %s", post_id, user_id)


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------
def list_comments(engine: Engine, post_id: int) -> list[Comment]:
    """All comments on a post, oldest first."""
    with Session(engine, expire_on_commit=False) as session:
        if session.get(Post, post_id) is None:
            raise NotFoundError("Post not found")
        rows = session.scalars(
            select(Comment)
            .options(selectinload(Comment.author))
            .where(Comment.post_id == post_id)
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        ).all()
        return list(rows)


def create_comment(
    engine: Engine,
    author_id: int,
    post_id: int,
    content: str,
    *,
    parent_id: int | None = None,
) -> Comment:
    """Insert a comment, credit the author and notify whoever it answers.

    A reply notifies the parent comment's author; a top-level comment
    notifies the post's author.  Nobody is notified about their own
    activity.
    """
    with get_session(engine) as session:
        post = session.get(Post, post_id)
        if post is None:
            raise NotFoundError("Post not found")
        if post.is_locked:
            raise PermissionDeniedError("Post is locked")

        parent = None
        if parent_id is not None:
            parent = session.get(Comment, parent_id)
            if parent is None or parent.post_id != post_id:
                raise NotFoundError("Parent comment not found")

        comment = Comment(
            content=content, post_id=post_id, author_id=author_id, parent_id=parent_id,
        )
        session.add(comment)
        session.flush()

        BalanceLedger(session).apply(
            author_id,
            POINTS_FOR[LedgerReason.COMMENT_CREATED],
            LedgerReason.COMMENT_CREATED,
            divisor=ACTIVITY_LEVEL_DIVISOR,
            related_type="comment",
            related_id=comment.id,
        )

        name = display_name(session, author_id)
        if parent is not None and parent.author_id != author_id:
            insert_notification(
                session,
                parent.author_id,
                NotificationType.REPLY,
                "New reply",
                f"{name} replied to your comment",
                related_id=post_id,
                related_type="post",
            )
        elif parent is None and post.author_id != author_id:
            insert_notification(
                session,
                post.author_id,
                NotificationType.COMMENT,
                "New comment",
                f"{name} commented on your post",
                related_id=post_id,
                related_type="post",
            )
        session.flush()
        session.refresh(comment)

    logger.info("User %s commented on post %s", author_id, post_id)
    return comment


def update_comment(engine: Engine, user_id: int, comment_id: int, content: str) -> Comment:
    with get_session(engine) as session:
        comment = session.get(Comment, comment_id)
        if comment is None:
            raise NotFoundError("Comment not found")
        if comment.author_id != user_id:
            raise PermissionDeniedError("You can only edit your own comments")
        comment.content = content
        session.flush()
        session.refresh(comment)
        return comment


def delete_comment(engine: Engine, user_id: int, comment_id: int) -> None:
    with get_session(engine) as session:
        comment = session.get(Comment, comment_id)
        if comment is None:
            raise NotFoundError("Comment not found")
        _check_owner_or_admin(session, comment.author_id, user_id, "delete")
        session.delete(comment)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------
def list_categories(engine: Engine) -> list[Category]:
    with Session(engine, expire_on_commit=False) as session:
        return list(session.scalars(select(Category).order_by(Category.id)).all())


def get_category(engine: Engine, category_id: int) -> Category:
    with Session(engine, expire_on_commit=False) as session:
        category = session.get(Category, category_id)
        if category is None:
            raise NotFoundError("Category not found")
        return category
