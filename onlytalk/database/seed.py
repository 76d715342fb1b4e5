"""
onlytalk.database.seed — Default Categories & Shop Catalogue
=============================================================

Baseline rows inserted on first startup so the forum is immediately
usable.  Idempotent — a table is only seeded while it is empty, so rows
added or edited later by admins are never overwritten.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, func, select
from sqlalchemy.orm import Session

from onlytalk.database.models import Category, ShopItem, ShopItemType

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Default catalogues
# ---------------------------------------------------------------------------
DEFAULT_CATEGORIES: list[tuple[str, str]] = [
    ("Tech Talk", "Programming, hardware and everything technical"),
    ("Off Topic", "Everyday life and casual chat"),
    ("Help Wanted", "Stuck on something? Ask here"),
    ("Resources", "Share useful links, tools and guides"),
]
"""Each entry is ``(name, description)``."""

DEFAULT_SHOP_ITEMS: list[tuple[str, str, int, ShopItemType, str, str]] = [
    ("Pin Card", "Pin one of your posts to the top for 24 hours", 100,
     ShopItemType.POST_PIN, "24", "\U0001f4cc"),             # 📌
    ("Highlight Card", "Highlight a post title for 7 days", 50,
     ShopItemType.POST_HIGHLIGHT, "7", "\u2728"),            # ✨
    ("Rename Card", "Change your username once", 200,
     ShopItemType.RENAME, "1", "\u270f\ufe0f"),            # ✏️
    ("VIP Badge", "Show a VIP badge on your profile", 500,
     ShopItemType.BADGE, "VIP", "\U0001f451"),                # 👑
    ("Super Member Badge", "Show a Super Member badge on your profile", 1000,
     ShopItemType.BADGE, "SUPER", "\u2b50"),                 # ⭐
]
"""Each entry is ``(name, description, price, item_type, item_value, icon)``."""


# ---------------------------------------------------------------------------
# Seeder
# ---------------------------------------------------------------------------
def seed_defaults(engine: Engine) -> None:
    """Seed categories and shop items into empty tables.

    Runs on every startup but only writes when the table has no rows,
    so it is safe to call repeatedly.
    """
    session = Session(engine)
    inserted_categories = 0
    inserted_items = 0
    try:
        if not session.scalar(select(func.count()).select_from(Category)):
            for name, description in DEFAULT_CATEGORIES:
                session.add(Category(name=name, description=description))
                inserted_categories += 1

        if not session.scalar(select(func.count()).select_from(ShopItem)):
            for name, description, price, item_type, value, icon in DEFAULT_SHOP_ITEMS:
                session.add(ShopItem(
                    name=name,
                    description=description,
                    price=price,
                    item_type=item_type.value,
                    item_value=value,
                    icon=icon,
                ))
                inserted_items += 1
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    if inserted_categories or inserted_items:
        logger.info(
            "Seeded %d categories and %d shop items.",
            inserted_categories, inserted_items,
        )
