"""
onlytalk.api.serializers — ORM rows → JSON dicts
=================================================

Services return detached ORM objects; relationships are only touched when
the service eager-loaded them (``with_author=True``).
"""

from __future__ import annotations

from datetime import date, datetime

from onlytalk.database.models import (
    Category,
    Comment,
    Notification,
    Post,
    Reward,
    ShopItem,
    User,
    UserBadge,
)
from onlytalk.engine.streak import CheckinResult


def _iso(value: datetime | date | None) -> str | None:
    return value.isoformat() if value else None


def author_dict(u: User) -> dict:
    return {"id": u.id, "username": u.username, "avatar": u.avatar, "level": u.level}


def user_dict(u: User, *, private: bool = False) -> dict:
    data = {
        "id": u.id,
        "username": u.username,
        "avatar": u.avatar,
        "bio": u.bio,
        "role": u.role,
        "points": u.points,
        "level": u.level,
        "created_at": _iso(u.created_at),
    }
    if private:
        data["email"] = u.email
    return data


def category_dict(c: Category) -> dict:
    return {"id": c.id, "name": c.name, "description": c.description}


def post_dict(p: Post, *, with_author: bool = True) -> dict:
    data = {
        "id": p.id,
        "title": p.title,
        "content": p.content,
        "author_id": p.author_id,
        "category_id": p.category_id,
        "views": p.views,
        "likes": p.likes,
        "is_pinned": p.is_pinned,
        "is_locked": p.is_locked,
        "created_at": _iso(p.created_at),
    }
    if with_author:
        data["author"] = author_dict(p.author)
        data["category"] = category_dict(p.category) if p.category else None
    return data


def comment_dict(c: Comment, *, with_author: bool = True) -> dict:
    data = {
        "id": c.id,
        "content": c.content,
        "post_id": c.post_id,
        "author_id": c.author_id,
        "parent_id": c.parent_id,
        "likes": c.likes,
        "created_at": _iso(c.created_at),
    }
    if with_author:
        data["author"] = author_dict(c.author)
    return data


def notification_dict(n: Notification) -> dict:
    return {
        "id": n.id,
        "type": n.type,
        "title": n.title,
        "content": n.content,
        "related_id": n.related_id,
        "related_type": n.related_type,
        "is_read": n.is_read,
        "created_at": _iso(n.created_at),
    }


def reward_dict(r: Reward) -> dict:
    return {
        "id": r.id,
        "from_user_id": r.from_user_id,
        "to_user_id": r.to_user_id,
        "points": r.points,
        "related_type": r.related_type,
        "related_id": r.related_id,
        "message": r.message,
        "created_at": _iso(r.created_at),
    }


def checkin_dict(c: CheckinResult) -> dict:
    return {
        "date": c.date.isoformat(),
        "consecutive_days": c.consecutive_days,
        "points_earned": c.points_earned,
    }


def shop_item_dict(i: ShopItem) -> dict:
    return {
        "id": i.id,
        "name": i.name,
        "description": i.description,
        "price": i.price,
        "item_type": i.item_type,
        "item_value": i.item_value,
        "icon": i.icon,
    }


def badge_dict(b: UserBadge) -> dict:
    return {
        "badge_name": b.badge_name,
        "badge_icon": b.badge_icon,
        "obtained_at": _iso(b.obtained_at),
    }
