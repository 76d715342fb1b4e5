"""Initial OnlyTalk schema

Revision ID: 5c1e0a7d9b42
Revises:
Create Date: 2026-10-18 09:12:31.402118

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '5c1e0a7d9b42'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(),
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(),
    )


def _user_fk(name: str = "user_id") -> sa.Column:
    return sa.Column(
        name, sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
    )


def upgrade() -> None:
    """Create every table, including the ledger journal."""

    # --- accounts & content ---
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(20), nullable=False, unique=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("avatar", sa.String(500), nullable=True),
        sa.Column("role", sa.String(20), nullable=True),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("points", sa.Integer, nullable=False),
        sa.Column("level", sa.Integer, nullable=False),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint("level >= 1", name="ck_users_level_positive"),
    )
    op.create_index("ix_users_points_desc", "users", ["points"])
    op.create_index("ix_users_level_desc", "users", ["level"])

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        _created_at(),
    )

    op.create_table(
        "posts",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        _user_fk("author_id"),
        sa.Column(
            "category_id", sa.Integer,
            sa.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("views", sa.Integer, nullable=True),
        sa.Column("likes", sa.Integer, nullable=True),
        sa.Column("is_pinned", sa.Boolean, nullable=True),
        sa.Column("is_locked", sa.Boolean, nullable=True),
        _created_at(),
        _updated_at(),
    )
    op.create_index("ix_posts_created_at", "posts", ["created_at"])
    op.create_index("ix_posts_views", "posts", ["views"])
    op.create_index("ix_posts_likes", "posts", ["likes"])

    op.create_table(
        "comments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column(
            "post_id", sa.Integer,
            sa.ForeignKey("posts.id", ondelete="CASCADE"), nullable=False,
        ),
        _user_fk("author_id"),
        sa.Column(
            "parent_id", sa.Integer,
            sa.ForeignKey("comments.id", ondelete="CASCADE"), nullable=True,
        ),
        sa.Column("likes", sa.Integer, nullable=True),
        _created_at(),
        _updated_at(),
    )
    op.create_index("ix_comments_post_id", "comments", ["post_id"])

    # --- join tables ---
    op.create_table(
        "post_likes",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "post_id", sa.Integer,
            sa.ForeignKey("posts.id", ondelete="CASCADE"), nullable=False,
        ),
        _user_fk(),
        _created_at(),
        sa.UniqueConstraint("post_id", "user_id", name="uq_post_likes_post_user"),
    )
    op.create_index("ix_post_likes_user_id", "post_likes", ["user_id"])

    op.create_table(
        "comment_likes",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "comment_id", sa.Integer,
            sa.ForeignKey("comments.id", ondelete="CASCADE"), nullable=False,
        ),
        _user_fk(),
        _created_at(),
        sa.UniqueConstraint("comment_id", "user_id", name="uq_comment_likes_comment_user"),
    )
    op.create_index("ix_comment_likes_user_id", "comment_likes", ["user_id"])

    op.create_table(
        "favorites",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "post_id", sa.Integer,
            sa.ForeignKey("posts.id", ondelete="CASCADE"), nullable=False,
        ),
        _user_fk(),
        _created_at(),
        sa.UniqueConstraint("post_id", "user_id", name="uq_favorites_post_user"),
    )
    op.create_index("ix_favorites_user_id", "favorites", ["user_id"])

    op.create_table(
        "follows",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _user_fk("follower_id"),
        _user_fk("following_id"),
        _created_at(),
        sa.UniqueConstraint("follower_id", "following_id", name="uq_follows_pair"),
        sa.CheckConstraint("follower_id <> following_id", name="ck_follows_not_self"),
    )
    op.create_index("ix_follows_following_id", "follows", ["following_id"])

    # --- inbox ---
    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _user_fk(),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text, nullable=True),
        sa.Column("related_id", sa.Integer, nullable=True),
        sa.Column("related_type", sa.String(20), nullable=True),
        sa.Column("is_read", sa.Boolean, nullable=True),
        _created_at(),
    )
    op.create_index("ix_notifications_user_read", "notifications", ["user_id", "is_read"])

    # --- gamification ---
    op.create_table(
        "daily_checkins",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _user_fk(),
        sa.Column("checkin_date", sa.Date, nullable=False),
        sa.Column("consecutive_days", sa.Integer, nullable=False),
        sa.Column("points_earned", sa.Integer, nullable=False),
        _created_at(),
        sa.UniqueConstraint("user_id", "checkin_date", name="uq_daily_checkins_user_date"),
        sa.CheckConstraint("consecutive_days >= 1", name="ck_daily_checkins_streak_positive"),
    )

    op.create_table(
        "rewards",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _user_fk("from_user_id"),
        _user_fk("to_user_id"),
        sa.Column("points", sa.Integer, nullable=False),
        sa.Column("related_type", sa.String(20), nullable=False),
        sa.Column("related_id", sa.Integer, nullable=False),
        sa.Column("message", sa.String(100), nullable=True),
        _created_at(),
        sa.CheckConstraint("from_user_id <> to_user_id", name="ck_rewards_not_self"),
        sa.CheckConstraint("points >= 1", name="ck_rewards_points_positive"),
    )
    op.create_index("ix_rewards_from_user", "rewards", ["from_user_id"])
    op.create_index("ix_rewards_to_user", "rewards", ["to_user_id"])

    op.create_table(
        "point_transactions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _user_fk(),
        sa.Column("delta", sa.Integer, nullable=False),
        sa.Column("reason", sa.String(30), nullable=False),
        sa.Column("related_type", sa.String(20), nullable=True),
        sa.Column("related_id", sa.Integer, nullable=True),
        sa.Column("balance_after", sa.Integer, nullable=False),
        _created_at(),
    )
    op.create_index(
        "ix_point_transactions_user_ts", "point_transactions", ["user_id", "created_at"],
    )

    # --- shop ---
    op.create_table(
        "shop_items",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("price", sa.Integer, nullable=False),
        sa.Column("item_type", sa.String(30), nullable=False),
        sa.Column("item_value", sa.String(100), nullable=True),
        sa.Column("icon", sa.String(20), nullable=True),
        sa.Column("is_available", sa.Boolean, nullable=True),
        _created_at(),
        sa.CheckConstraint("price >= 0", name="ck_shop_items_price_non_negative"),
    )

    op.create_table(
        "user_purchases",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _user_fk(),
        sa.Column(
            "item_id", sa.Integer,
            sa.ForeignKey("shop_items.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("points_spent", sa.Integer, nullable=False),
        _created_at(),
    )

    op.create_table(
        "user_badges",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _user_fk(),
        sa.Column("badge_name", sa.String(100), nullable=False),
        sa.Column("badge_icon", sa.String(20), nullable=True),
        sa.Column(
            "obtained_at", sa.DateTime(timezone=True), server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("user_id", "badge_name", name="uq_user_badges_user_badge"),
    )


def downgrade() -> None:
    for table in (
        "user_badges",
        "user_purchases",
        "shop_items",
        "point_transactions",
        "rewards",
        "daily_checkins",
        "notifications",
        "follows",
        "favorites",
        "comment_likes",
        "post_likes",
        "comments",
        "posts",
        "categories",
        "users",
    ):
        op.drop_table(table)
