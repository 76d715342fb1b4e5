"""
tests/test_reward_service.py — Reward Transfer Tests
=====================================================
Conservation of points, validation order, notifications and the
all-or-nothing guarantee on rejected transfers.

Uses an in-memory SQLite database via the shared conftest fixtures.
"""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from conftest import make_comment, make_post, make_user, user_row
from onlytalk.database.models import Notification, PointTransaction, Reward
from onlytalk.errors import (
    InsufficientPointsError,
    NotFoundError,
    SelfRewardError,
    ValidationError,
)
from onlytalk.services import reward_service


@pytest.fixture
def engine(db_engine):
    """Re-use the shared conftest db_engine (SQLite, StaticPool)."""
    return db_engine


def _count(engine, model) -> int:
    with Session(engine) as session:
        return session.scalar(select(func.count()).select_from(model)) or 0


class TestSendReward:
    def test_reward_on_comment_moves_points(self, engine):
        a = make_user(engine, "alice", points=50)
        b = make_user(engine, "bob", points=0)
        post = make_post(engine, a)
        comment = make_comment(engine, b, post)

        receipt = reward_service.send_reward(engine, a, "comment", comment, 30, "nice")

        assert receipt.points == 30
        assert receipt.from_user_id == a
        assert receipt.to_user_id == b
        assert user_row(engine, a).points == 20
        assert user_row(engine, b).points == 30

        with Session(engine) as session:
            reward = session.get(Reward, receipt.id)
            assert reward.message == "nice"
            assert reward.related_type == "comment"
            assert reward.related_id == comment
            note = session.scalars(
                select(Notification).where(Notification.user_id == b)
            ).one()
        assert note.type == "reward"
        assert note.content == "alice rewarded you 30 points: nice"
        assert note.related_type == "comment"
        assert _count(engine, Reward) == 1

    def test_total_points_conserved(self, engine):
        a = make_user(engine, "alice", points=200)
        b = make_user(engine, "bob", points=40)
        post = make_post(engine, b)
        reward_service.send_reward(engine, a, "post", post, 75)
        assert user_row(engine, a).points + user_row(engine, b).points == 240

    def test_recipient_level_uses_profile_divisor(self, engine):
        a = make_user(engine, "alice", points=500)
        b = make_user(engine, "bob", points=0)
        post = make_post(engine, b)
        reward_service.send_reward(engine, a, "post", post, 250)
        assert user_row(engine, b).level == 3

    def test_empty_message_stored_as_null(self, engine):
        a = make_user(engine, "alice", points=50)
        b = make_user(engine, "bob")
        post = make_post(engine, b)
        receipt = reward_service.send_reward(engine, a, "post", post, 5, "")
        with Session(engine) as session:
            assert session.get(Reward, receipt.id).message is None
            note = session.scalars(
                select(Notification).where(Notification.user_id == b)
            ).one()
        assert note.content == "alice rewarded you 5 points"

    def test_both_sides_journaled(self, engine):
        a = make_user(engine, "alice", points=50)
        b = make_user(engine, "bob", points=0)
        post = make_post(engine, b)
        reward_service.send_reward(engine, a, "post", post, 30)
        with Session(engine) as session:
            rows = session.scalars(
                select(PointTransaction)
                .where(PointTransaction.reason.in_(["REWARD_SENT", "REWARD_RECEIVED"]))
                .order_by(PointTransaction.id)
            ).all()
        assert [(r.user_id, r.delta, r.balance_after) for r in rows] == [
            (a, -30, 20),
            (b, 30, 30),
        ]


class TestRejections:
    def test_insufficient_points_changes_nothing(self, engine):
        a = make_user(engine, "alice", points=10)
        b = make_user(engine, "bob", points=0)
        post = make_post(engine, b)
        journal_before = _count(engine, PointTransaction)

        with pytest.raises(InsufficientPointsError):
            reward_service.send_reward(engine, a, "post", post, 11)

        assert user_row(engine, a).points == 10
        assert user_row(engine, b).points == 0
        assert _count(engine, Reward) == 0
        assert _count(engine, Notification) == 0
        assert _count(engine, PointTransaction) == journal_before

    def test_self_reward_rejected(self, engine):
        a = make_user(engine, "alice", points=100)
        post = make_post(engine, a)
        with pytest.raises(SelfRewardError):
            reward_service.send_reward(engine, a, "post", post, 5)
        assert user_row(engine, a).points == 100

    def test_missing_post(self, engine):
        a = make_user(engine, "alice", points=100)
        with pytest.raises(NotFoundError, match="Post not found"):
            reward_service.send_reward(engine, a, "post", 999, 5)

    def test_missing_comment(self, engine):
        a = make_user(engine, "alice", points=100)
        with pytest.raises(NotFoundError, match="Comment not found"):
            reward_service.send_reward(engine, a, "comment", 999, 5)

    def test_not_found_checked_before_balance(self, engine):
        a = make_user(engine, "alice", points=0)
        with pytest.raises(NotFoundError):
            reward_service.send_reward(engine, a, "post", 999, 500)

    def test_self_checked_before_balance(self, engine):
        a = make_user(engine, "alice", points=0)
        post = make_post(engine, a)
        with pytest.raises(SelfRewardError):
            reward_service.send_reward(engine, a, "post", post, 500)

    @pytest.mark.parametrize("points", [0, -5, 1001])
    def test_points_out_of_range(self, engine, points):
        a = make_user(engine, "alice", points=5000)
        b = make_user(engine, "bob")
        post = make_post(engine, b)
        with pytest.raises(ValidationError):
            reward_service.send_reward(engine, a, "post", post, points)

    def test_message_too_long(self, engine):
        a = make_user(engine, "alice", points=50)
        b = make_user(engine, "bob")
        post = make_post(engine, b)
        with pytest.raises(ValidationError):
            reward_service.send_reward(engine, a, "post", post, 5, "x" * 101)

    def test_unknown_target_type(self, engine):
        a = make_user(engine, "alice", points=50)
        with pytest.raises(ValidationError):
            reward_service.send_reward(engine, a, "user", 1, 5)


class TestListRewards:
    def test_sent_and_received(self, engine):
        a = make_user(engine, "alice", points=100)
        b = make_user(engine, "bob")
        post = make_post(engine, b)
        reward_service.send_reward(engine, a, "post", post, 10)
        reward_service.send_reward(engine, a, "post", post, 20)

        sent = reward_service.list_rewards(engine, a, direction="sent")
        received = reward_service.list_rewards(engine, b, direction="received")
        assert [r.points for r in sent] == [20, 10]
        assert [r.points for r in received] == [20, 10]
        assert reward_service.list_rewards(engine, a, direction="received") == []

    def test_bad_direction(self, engine):
        with pytest.raises(ValidationError):
            reward_service.list_rewards(engine, 1, direction="sideways")
