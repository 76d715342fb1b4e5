"""
onlytalk.services.notification_service — Inbox Entries
=======================================================

Notifications are side-effect rows written inside the same transaction as
the action that caused them (like, reward, follow, reply), plus read-side
helpers for the inbox endpoints.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, func, select, update
from sqlalchemy.orm import Session

from onlytalk.database.engine import get_session
from onlytalk.database.models import Notification, NotificationType, User
from onlytalk.errors import NotFoundError

logger = logging.getLogger(__name__)


def display_name(session: Session, user_id: int) -> str:
    """Username for notification text, ``"Someone"`` if the user is gone."""
    name = session.scalar(select(User.username).where(User.id == user_id))
    return name or "Someone"


def insert_notification(
    session: Session,
    user_id: int,
    type_: NotificationType,
    title: str,
    content: str | None = None,
    related_id: int | None = None,
    related_type: str | None = None,
) -> Notification:
    """Queue a notification row in the caller's transaction."""
    notification = Notification(
        user_id=user_id,
        type=type_.value,
        title=title,
        content=content,
        related_id=related_id,
        related_type=related_type,
    )
    session.add(notification)
    return notification


# ---------------------------------------------------------------------------
# Inbox reads / mark-as-read
# ---------------------------------------------------------------------------
def list_notifications(
    engine: Engine,
    user_id: int,
    *,
    unread_only: bool = False,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[Notification], int, int]:
    """Return ``(page, total, unread_count)`` for the user's inbox."""
    with Session(engine, expire_on_commit=False) as session:
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))

        total = session.scalar(
            select(func.count()).select_from(query.subquery())
        ) or 0
        unread = session.scalar(
            select(func.count()).select_from(Notification).where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
        ) or 0
        rows = session.scalars(
            query.order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(offset)
            .limit(limit)
        ).all()
        return list(rows), total, unread


def mark_read(engine: Engine, user_id: int, notification_id: int) -> None:
    with get_session(engine) as session:
        notification = session.get(Notification, notification_id)
        if notification is None or notification.user_id != user_id:
            raise NotFoundError("Notification not found")
        notification.is_read = True


def mark_all_read(engine: Engine, user_id: int) -> int:
    """Mark every unread notification read; returns how many changed."""
    with get_session(engine) as session:
        result = session.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        return result.rowcount or 0
