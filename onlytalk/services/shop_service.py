"""
onlytalk.services.shop_service — Point Shop
============================================

Purchases debit the buyer through the ledger with ``floor=0``, so a shop
order can never overdraw a balance.  Badge items also grant a
:class:`UserBadge`; owning the badge already is a conflict and debits
nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import Engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from onlytalk.database.engine import get_session
from onlytalk.database.models import (
    LedgerReason,
    ShopItem,
    ShopItemType,
    UserBadge,
    UserPurchase,
)
from onlytalk.errors import ConflictError, NotFoundError
from onlytalk.services.ledger import BalanceLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PurchaseReceipt:
    purchase_id: int
    item_id: int
    item_name: str
    item_type: str
    points_spent: int
    balance: int


def list_items(engine: Engine) -> list[ShopItem]:
    """Available items, cheapest first."""
    with Session(engine, expire_on_commit=False) as session:
        rows = session.scalars(
            select(ShopItem)
            .where(ShopItem.is_available.is_(True))
            .order_by(ShopItem.price.asc(), ShopItem.id.asc())
        ).all()
        return list(rows)


def purchase(engine: Engine, user_id: int, item_id: int) -> PurchaseReceipt:
    """Buy one unit of *item_id*.

    Raises
    ------
    NotFoundError
        Unknown or unavailable item, or unknown user.
    ConflictError
        The item is a badge the user already owns.
    InsufficientPointsError
        The price exceeds the buyer's balance.
    """
    with get_session(engine) as session:
        item = session.get(ShopItem, item_id)
        if item is None or not item.is_available:
            raise NotFoundError("Item not found or no longer available")

        ledger = BalanceLedger(session)
        if user_id not in ledger.lock_users(user_id):
            raise NotFoundError("User not found")

        if item.item_type == ShopItemType.BADGE.value:
            owned = session.scalar(
                select(UserBadge.id).where(
                    UserBadge.user_id == user_id, UserBadge.badge_name == item.item_value,
                )
            )
            if owned is not None:
                raise ConflictError("You already own this badge")

        # Spending points never changes the level
        balance = ledger.adjust(
            user_id,
            -item.price,
            LedgerReason.SHOP_PURCHASE,
            related_type="item",
            related_id=item.id,
            floor=0,
        )

        if item.item_type == ShopItemType.BADGE.value:
            session.add(UserBadge(user_id=user_id, badge_name=item.item_value, badge_icon=item.icon))
        order = UserPurchase(user_id=user_id, item_id=item.id, points_spent=item.price)
        session.add(order)
        try:
            session.flush()
        except IntegrityError:
            raise ConflictError("You already own this badge") from None

        receipt = PurchaseReceipt(
            purchase_id=order.id,
            item_id=item.id,
            item_name=item.name,
            item_type=item.item_type,
            points_spent=item.price,
            balance=balance,
        )

    logger.info("User %s bought %r for %d pts", user_id, receipt.item_name, receipt.points_spent)
    return receipt


def list_badges(engine: Engine, user_id: int) -> list[UserBadge]:
    """Badges the user owns, most recent first."""
    with Session(engine, expire_on_commit=False) as session:
        rows = session.scalars(
            select(UserBadge)
            .where(UserBadge.user_id == user_id)
            .order_by(UserBadge.obtained_at.desc(), UserBadge.id.desc())
        ).all()
        return list(rows)
