"""
onlytalk.api.routes.gamification — Check-in, rewards, shop & leaderboards
==========================================================================

Every endpoint here either moves points through the ledger or reads the
balances it maintains.
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from onlytalk.api.deps import get_current_user_id, get_engine
from onlytalk.api.serializers import (
    badge_dict,
    checkin_dict,
    reward_dict,
    shop_item_dict,
)
from onlytalk.constants import (
    LEADERBOARD_DEFAULT_LIMIT,
    LEADERBOARD_MAX_LIMIT,
    REWARD_MAX_POINTS,
    REWARD_MESSAGE_MAX_LENGTH,
    REWARD_MIN_POINTS,
)
from onlytalk.services import checkin_service, reward_service, shop_service, user_service

router = APIRouter(tags=["gamification"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class RewardCreate(BaseModel):
    related_type: Literal["post", "comment"]
    related_id: int
    points: int = Field(ge=REWARD_MIN_POINTS, le=REWARD_MAX_POINTS)
    message: str | None = Field(default=None, max_length=REWARD_MESSAGE_MAX_LENGTH)


class PurchaseCreate(BaseModel):
    item_id: int


# ---------------------------------------------------------------------------
# Check-in
# ---------------------------------------------------------------------------
@router.post("/checkin")
def check_in(
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    result = checkin_service.check_in(engine, user_id)
    return {"checkin": checkin_dict(result)}


@router.get("/checkin/status")
def checkin_status(
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    status = checkin_service.checkin_status(engine, user_id)
    return {
        "checked_in_today": status.checked_in_today,
        "consecutive_days": status.consecutive_days,
        "today_checkin": checkin_dict(status.today_checkin) if status.today_checkin else None,
    }


@router.get("/checkin/history")
def checkin_history(
    limit: int = Query(30, ge=1, le=365),
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    records = checkin_service.checkin_history(engine, user_id, limit=limit)
    return {"history": [checkin_dict(r) for r in records]}


# ---------------------------------------------------------------------------
# Rewards
# ---------------------------------------------------------------------------
@router.post("/rewards")
def send_reward(
    body: RewardCreate,
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    receipt = reward_service.send_reward(
        engine, user_id, body.related_type, body.related_id, body.points, body.message,
    )
    return {
        "reward": {
            "id": receipt.id,
            "points": receipt.points,
            "from_user_id": receipt.from_user_id,
            "to_user_id": receipt.to_user_id,
        }
    }


@router.get("/rewards")
def list_rewards(
    direction: Literal["sent", "received"] = "received",
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    rewards = reward_service.list_rewards(
        engine, user_id, direction=direction, limit=limit, offset=offset,
    )
    return {"rewards": [reward_dict(r) for r in rewards]}


# ---------------------------------------------------------------------------
# Shop
# ---------------------------------------------------------------------------
@router.get("/shop/items")
def list_items(engine=Depends(get_engine)):
    return {"items": [shop_item_dict(i) for i in shop_service.list_items(engine)]}


@router.post("/shop/purchase")
def purchase(
    body: PurchaseCreate,
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    receipt = shop_service.purchase(engine, user_id, body.item_id)
    return {
        "item": {"id": receipt.item_id, "name": receipt.item_name, "type": receipt.item_type},
        "points_spent": receipt.points_spent,
        "balance": receipt.balance,
    }


@router.get("/shop/badges/{target_id}")
def list_badges(target_id: int, engine=Depends(get_engine)):
    return {"badges": [badge_dict(b) for b in shop_service.list_badges(engine, target_id)]}


# ---------------------------------------------------------------------------
# Leaderboards
# ---------------------------------------------------------------------------
def _leaderboard(engine, order: str, limit: int, offset: int) -> dict:
    rows = user_service.leaderboard(engine, order=order, limit=limit, offset=offset)
    return {
        "leaderboard": [
            {
                "id": r.id,
                "username": r.username,
                "points": r.points,
                "level": r.level,
                "avatar": r.avatar,
                "post_count": r.post_count,
                "comment_count": r.comment_count,
            }
            for r in rows
        ]
    }


@router.get("/leaderboard/points")
def points_leaderboard(
    limit: int = Query(LEADERBOARD_DEFAULT_LIMIT, ge=1),
    offset: int = Query(0, ge=0),
    engine=Depends(get_engine),
):
    """Top users by points; *limit* is capped at ``LEADERBOARD_MAX_LIMIT``."""
    return _leaderboard(engine, "points", min(limit, LEADERBOARD_MAX_LIMIT), offset)


@router.get("/leaderboard/level")
def level_leaderboard(
    limit: int = Query(LEADERBOARD_DEFAULT_LIMIT, ge=1),
    offset: int = Query(0, ge=0),
    engine=Depends(get_engine),
):
    return _leaderboard(engine, "level", min(limit, LEADERBOARD_MAX_LIMIT), offset)
