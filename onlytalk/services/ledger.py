"""
onlytalk.services.ledger — BalanceLedger
=========================================

Every change to a user's ``points`` goes through :meth:`BalanceLedger.adjust`
and every change to ``level`` through :meth:`BalanceLedger.recalculate_level`.
No route or service issues its own ``points = points + n``.

The ledger works inside the caller's session and never commits; the
caller's transaction decides whether the whole operation lands.  Each
adjustment:

1. Loads the user row ``FOR UPDATE`` (re-reading the stored balance),
2. Checks the optional overdraft floor,
3. Writes the new balance,
4. Appends a :class:`PointTransaction` journal row.

When an operation touches two users (reward transfer) the caller locks
both first via :meth:`BalanceLedger.lock_users`, which always acquires in
ascending id order.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from onlytalk.constants import level_for_points
from onlytalk.database.models import LedgerReason, PointTransaction, User
from onlytalk.errors import InsufficientPointsError

logger = logging.getLogger(__name__)


def get_user_points(session: Session, user_id: int) -> int | None:
    """Current stored balance, or ``None`` if the user does not exist."""
    return session.scalar(select(User.points).where(User.id == user_id))


def set_user_level(session: Session, user_id: int, level: int) -> None:
    user = session.get(User, user_id)
    if user is not None:
        user.level = level


def recalculate_level(session: Session, user_id: int, divisor: int) -> int | None:
    """Shortcut for ``BalanceLedger(session).recalculate_level(...)``."""
    return BalanceLedger(session).recalculate_level(user_id, divisor)


class BalanceLedger:
    """Single entry point for point and level mutations within one session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------
    def _load_for_update(self, user_id: int) -> User | None:
        return self.session.scalar(
            select(User)
            .where(User.id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )

    def lock_users(self, *user_ids: int) -> dict[int, User]:
        """Lock the given users' rows in ascending id order.

        Returns a mapping of id → User for the rows that exist.
        """
        ids = sorted(set(user_ids))
        rows = self.session.scalars(
            select(User)
            .where(User.id.in_(ids))
            .order_by(User.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).all()
        return {u.id: u for u in rows}

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def adjust(
        self,
        user_id: int,
        delta: int,
        reason: LedgerReason,
        *,
        related_type: str | None = None,
        related_id: int | None = None,
        floor: int | None = None,
    ) -> int | None:
        """Apply *delta* to the user's balance and journal it.

        Parameters
        ----------
        floor:
            When given, a change that would leave the balance below *floor*
            raises :class:`InsufficientPointsError` and writes nothing.

        Returns
        -------
        int | None
            The new balance, or ``None`` if the user row does not exist (the
            adjustment is skipped; callers validate existence beforehand).
        """
        user = self._load_for_update(user_id)
        if user is None:
            logger.warning(
                "Ledger adjust skipped: user %s not found (delta=%+d, reason=%s)",
                user_id, delta, reason,
            )
            return None

        new_balance = user.points + delta
        if floor is not None and new_balance < floor:
            raise InsufficientPointsError(balance=user.points, required=-delta)

        user.points = new_balance
        self.session.add(PointTransaction(
            user_id=user_id,
            delta=delta,
            reason=reason.value,
            related_type=related_type,
            related_id=related_id,
            balance_after=new_balance,
        ))
        self.session.flush()
        logger.debug("Ledger %s: user=%s delta=%+d → %d", reason, user_id, delta, new_balance)
        return new_balance

    def recalculate_level(self, user_id: int, divisor: int) -> int | None:
        """Derive the level from the stored balance; write only if changed."""
        points = get_user_points(self.session, user_id)
        if points is None:
            return None
        new_level = level_for_points(points, divisor)
        current = self.session.scalar(select(User.level).where(User.id == user_id))
        if current != new_level:
            set_user_level(self.session, user_id, new_level)
        return new_level

    def apply(
        self,
        user_id: int,
        delta: int,
        reason: LedgerReason,
        *,
        divisor: int,
        related_type: str | None = None,
        related_id: int | None = None,
        floor: int | None = None,
    ) -> int | None:
        """:meth:`adjust` followed by :meth:`recalculate_level`."""
        balance = self.adjust(
            user_id,
            delta,
            reason,
            related_type=related_type,
            related_id=related_id,
            floor=floor,
        )
        if balance is not None:
            self.recalculate_level(user_id, divisor)
        return balance
