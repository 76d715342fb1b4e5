"""
onlytalk.services.user_service — Accounts & Profiles
=====================================================

Registration credits the starting bonus through the ledger, so a new
member's first journal row is ``REGISTER +10``.  Passwords are hashed with
argon2id.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import argon2
from sqlalchemy import Engine, func, or_, select
from sqlalchemy.orm import Session

from onlytalk.constants import (
    ACTIVITY_LEVEL_DIVISOR,
    LEADERBOARD_DEFAULT_LIMIT,
    LEADERBOARD_MAX_LIMIT,
    PROFILE_LEVEL_DIVISOR,
)
from onlytalk.database.engine import get_session
from onlytalk.database.models import Comment, LedgerReason, Post, User, UserRole
from onlytalk.engine.policy import REGISTRATION_BONUS
from onlytalk.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from onlytalk.services.ledger import BalanceLedger

logger = logging.getLogger(__name__)

_hasher = argon2.PasswordHasher(
    time_cost=2,
    memory_cost=65536,  # 64 MB
    parallelism=1,
    hash_len=32,
    salt_len=16,
    type=argon2.Type.ID,
)


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------
def hash_password(password: str) -> str:
    return _hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """True if *password* matches.  Never raises on mismatch."""
    try:
        return _hasher.verify(password_hash, password)
    except argon2.exceptions.VerifyMismatchError:
        return False
    except argon2.exceptions.InvalidHashError:
        return False


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------
def register_user(
    engine: Engine,
    *,
    username: str,
    email: str,
    password: str,
    role: UserRole = UserRole.USER,
) -> User:
    """Create a member and credit the registration bonus.

    Raises
    ------
    ConflictError
        If the username or email is already taken.
    """
    with get_session(engine) as session:
        taken = session.scalar(
            select(User.id).where(or_(User.username == username, User.email == email))
        )
        if taken is not None:
            raise ConflictError("Username or email already exists")

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            role=role.value,
            points=0,
            level=1,
        )
        session.add(user)
        session.flush()

        BalanceLedger(session).apply(
            user.id,
            REGISTRATION_BONUS,
            LedgerReason.REGISTER,
            divisor=ACTIVITY_LEVEL_DIVISOR,
        )
        session.refresh(user)

    logger.info("Registered user %s (%s)", user.id, username)
    return user


def authenticate(engine: Engine, login: str, password: str) -> User:
    """Resolve a username *or* email plus password to a user."""
    with get_session(engine) as session:
        user = session.scalar(
            select(User).where(or_(User.username == login, User.email == login))
        )
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid username or password")

        if _hasher.check_needs_rehash(user.password_hash):
            user.password_hash = hash_password(password)
        return user


def get_profile(engine: Engine, user_id: int) -> User:
    """Load the user, re-syncing ``level`` with the profile divisor."""
    with get_session(engine) as session:
        ledger = BalanceLedger(session)
        if ledger.recalculate_level(user_id, PROFILE_LEVEL_DIVISOR) is None:
            raise NotFoundError("User not found")
        user = session.get(User, user_id)
        session.flush()
        session.refresh(user)
        return user


def update_profile(
    engine: Engine,
    user_id: int,
    *,
    avatar: str | None = None,
    bio: str | None = None,
) -> User:
    with get_session(engine) as session:
        user = session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        if avatar is not None:
            user.avatar = avatar
        if bio is not None:
            user.bio = bio
        session.flush()
        session.refresh(user)
        return user


# ---------------------------------------------------------------------------
# Leaderboards
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    id: int
    username: str
    points: int
    level: int
    avatar: str | None
    post_count: int
    comment_count: int


def leaderboard(
    engine: Engine,
    *,
    order: str = "points",
    limit: int = LEADERBOARD_DEFAULT_LIMIT,
    offset: int = 0,
) -> list[LeaderboardEntry]:
    """Rank users by ``points`` (ties by level) or ``level`` (ties by points).

    *limit* is clamped to ``LEADERBOARD_MAX_LIMIT``.  Read-only: levels are
    reported as stored.
    """
    if order == "points":
        ordering = (User.points.desc(), User.level.desc(), User.id.asc())
    elif order == "level":
        ordering = (User.level.desc(), User.points.desc(), User.id.asc())
    else:
        raise ValidationError("order must be 'points' or 'level'")
    limit = max(1, min(limit, LEADERBOARD_MAX_LIMIT))
    offset = max(0, offset)

    post_count = (
        select(func.count(Post.id)).where(Post.author_id == User.id).scalar_subquery()
    )
    comment_count = (
        select(func.count(Comment.id)).where(Comment.author_id == User.id).scalar_subquery()
    )
    with Session(engine) as session:
        rows = session.execute(
            select(
                User.id, User.username, User.points, User.level, User.avatar,
                post_count.label("post_count"), comment_count.label("comment_count"),
            )
            .order_by(*ordering)
            .offset(offset)
            .limit(limit)
        ).all()
        return [LeaderboardEntry(*row) for row in rows]
