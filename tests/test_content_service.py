"""
tests/test_content_service.py — Posts, Comments, Favorites & Follows
=====================================================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from conftest import make_comment, make_post, make_user, user_row
from onlytalk.database.models import Notification, Post, User
from onlytalk.errors import (
    NotFoundError,
    PermissionDeniedError,
    SelfFollowError,
    ValidationError,
)
from onlytalk.services import content_service, social_service


@pytest.fixture
def engine(db_engine):
    return db_engine


def _notification_types(engine, user_id: int) -> list[str]:
    with Session(engine) as session:
        return list(session.scalars(
            select(Notification.type)
            .where(Notification.user_id == user_id)
            .order_by(Notification.id)
        ).all())


# ===========================================================================
# Posts
# ===========================================================================
class TestPosts:
    def test_create_credits_author(self, engine):
        uid = make_user(engine, "alice")
        post = content_service.create_post(engine, uid, title="Hi", content="First!")
        assert post.id is not None
        assert post.views == 0
        assert user_row(engine, uid).points == 15

    def test_create_with_unknown_category(self, engine):
        uid = make_user(engine, "alice")
        with pytest.raises(NotFoundError):
            content_service.create_post(engine, uid, title="Hi", content="x", category_id=999)
        assert user_row(engine, uid).points == 10

    def test_get_bumps_views(self, engine):
        uid = make_user(engine, "alice")
        post_id = make_post(engine, uid)
        content_service.get_post(engine, post_id)
        post = content_service.get_post(engine, post_id)
        assert post.views == 2
        assert post.author.username == "alice"

    def test_get_missing(self, engine):
        with pytest.raises(NotFoundError):
            content_service.get_post(engine, 999)

    def test_list_paginates_and_filters(self, engine):
        uid = make_user(engine, "alice")
        categories = content_service.list_categories(engine)
        for i in range(3):
            content_service.create_post(
                engine, uid, title=f"P{i}", content="x", category_id=categories[0].id,
            )
        content_service.create_post(engine, uid, title="Other", content="x")

        page = content_service.list_posts(engine, page=1, page_size=2)
        assert page.total == 4
        assert len(page.items) == 2

        filtered = content_service.list_posts(engine, category_id=categories[0].id)
        assert filtered.total == 3

    def test_only_author_can_edit(self, engine):
        alice = make_user(engine, "alice")
        bob = make_user(engine, "bob")
        post_id = make_post(engine, alice)
        with pytest.raises(PermissionDeniedError):
            content_service.update_post(engine, bob, post_id, title="Hacked")
        updated = content_service.update_post(engine, alice, post_id, title="Edited")
        assert updated.title == "Edited"

    def test_admin_can_delete_any_post(self, engine):
        alice = make_user(engine, "alice")
        admin = make_user(engine, "root")
        with Session(engine) as session:
            session.get(User, admin).role = "admin"
            session.commit()
        post_id = make_post(engine, alice)
        content_service.delete_post(engine, admin, post_id)
        with Session(engine) as session:
            assert session.get(Post, post_id) is None

    def test_stranger_cannot_delete(self, engine):
        alice = make_user(engine, "alice")
        bob = make_user(engine, "bob")
        post_id = make_post(engine, alice)
        with pytest.raises(PermissionDeniedError):
            content_service.delete_post(engine, bob, post_id)

    def test_hot_ranks_by_score(self, engine):
        uid = make_user(engine, "alice")
        quiet = make_post(engine, uid, "Quiet")
        busy = make_post(engine, uid, "Busy")
        make_comment(engine, uid, busy)
        hot = content_service.hot_posts(engine, window_days=7)
        assert [p.id for p in hot][:2] == [busy, quiet]

    def test_search(self, engine):
        uid = make_user(engine, "alice")
        make_post(engine, uid, "Python tips")
        make_post(engine, uid, "Gardening")
        result = content_service.search_posts(engine, "python")
        assert [p.title for p in result.items] == ["Python tips"]
        with pytest.raises(ValidationError):
            content_service.search_posts(engine, "   ")


# ===========================================================================
# Comments
# ===========================================================================
class TestComments:
    def test_create_credits_and_notifies_post_author(self, engine):
        alice = make_user(engine, "alice")
        bob = make_user(engine, "bob")
        post_id = make_post(engine, alice)

        comment = content_service.create_comment(engine, bob, post_id, "Great post")

        assert comment.post_id == post_id
        assert user_row(engine, bob).points == 12
        assert _notification_types(engine, alice) == ["comment"]

    def test_reply_notifies_parent_author(self, engine):
        alice = make_user(engine, "alice")
        bob = make_user(engine, "bob")
        carol = make_user(engine, "carol")
        post_id = make_post(engine, alice)
        parent = make_comment(engine, bob, post_id)

        content_service.create_comment(engine, carol, post_id, "Agreed", parent_id=parent)

        assert _notification_types(engine, bob) == ["reply"]
        assert _notification_types(engine, alice) == []

    def test_own_post_comment_is_silent(self, engine):
        alice = make_user(engine, "alice")
        post_id = make_post(engine, alice)
        content_service.create_comment(engine, alice, post_id, "Bump")
        assert _notification_types(engine, alice) == []

    def test_locked_post_rejects_comments(self, engine):
        alice = make_user(engine, "alice")
        post_id = make_post(engine, alice)
        with Session(engine) as session:
            session.get(Post, post_id).is_locked = True
            session.commit()
        with pytest.raises(PermissionDeniedError):
            content_service.create_comment(engine, alice, post_id, "Hello?")
        assert user_row(engine, alice).points == 10

    def test_parent_must_belong_to_post(self, engine):
        alice = make_user(engine, "alice")
        first = make_post(engine, alice)
        second = make_post(engine, alice)
        parent = make_comment(engine, alice, first)
        with pytest.raises(NotFoundError):
            content_service.create_comment(engine, alice, second, "x", parent_id=parent)

    def test_list_oldest_first_with_authors(self, engine):
        alice = make_user(engine, "alice")
        post_id = make_post(engine, alice)
        make_comment(engine, alice, post_id, "one")
        make_comment(engine, alice, post_id, "two")
        comments = content_service.list_comments(engine, post_id)
        assert [c.content for c in comments] == ["one", "two"]
        assert comments[0].author.username == "alice"

    def test_only_author_can_edit(self, engine):
        alice = make_user(engine, "alice")
        bob = make_user(engine, "bob")
        comment = make_comment(engine, alice, make_post(engine, alice))
        with pytest.raises(PermissionDeniedError):
            content_service.update_comment(engine, bob, comment, "nope")
        assert content_service.update_comment(engine, alice, comment, "fixed").content == "fixed"


# ===========================================================================
# Favorites & follows
# ===========================================================================
class TestFavorites:
    def test_toggle(self, engine):
        alice = make_user(engine, "alice")
        post_id = make_post(engine, alice)
        assert social_service.toggle_favorite(engine, alice, post_id) is True
        assert social_service.is_favorited(engine, alice, post_id) is True
        posts, total = social_service.list_favorites(engine, alice)
        assert total == 1
        assert posts[0].id == post_id
        assert social_service.toggle_favorite(engine, alice, post_id) is False
        assert social_service.is_favorited(engine, alice, post_id) is False

    def test_missing_post(self, engine):
        alice = make_user(engine, "alice")
        with pytest.raises(NotFoundError):
            social_service.toggle_favorite(engine, alice, 999)


class TestFollows:
    def test_follow_and_unfollow_notify(self, engine):
        alice = make_user(engine, "alice")
        bob = make_user(engine, "bob")

        assert social_service.toggle_follow(engine, alice, bob) is True
        assert social_service.is_following(engine, alice, bob) is True
        assert [u.id for u in social_service.list_followers(engine, bob)] == [alice]
        assert [u.id for u in social_service.list_following(engine, alice)] == [bob]
        stats = social_service.follow_stats(engine, bob)
        assert (stats.followers, stats.following) == (1, 0)

        assert social_service.toggle_follow(engine, alice, bob) is False
        assert _notification_types(engine, bob) == ["follow", "unfollow"]

    def test_cannot_follow_self(self, engine):
        alice = make_user(engine, "alice")
        with pytest.raises(SelfFollowError):
            social_service.toggle_follow(engine, alice, alice)

    def test_unknown_target(self, engine):
        alice = make_user(engine, "alice")
        with pytest.raises(NotFoundError):
            social_service.toggle_follow(engine, alice, 999)
