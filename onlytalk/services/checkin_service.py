"""
onlytalk.services.checkin_service — Daily Check-in
===================================================

One check-in per user per server-local calendar day.  The streak and tier
maths live in :mod:`onlytalk.engine.streak`; this module persists the
record and credits the bonus through the ledger, all in one transaction.

``today`` is injectable on every entry point so tests (and backfills) can
pin the calendar.
"""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import Engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from onlytalk.constants import ACTIVITY_LEVEL_DIVISOR
from onlytalk.database.engine import get_session
from onlytalk.database.models import CheckinRecord, LedgerReason
from onlytalk.engine.streak import (
    CheckinResult,
    CheckinStatus,
    next_streak,
    points_for_streak,
    yesterday_of,
)
from onlytalk.errors import DuplicateCheckinError, NotFoundError
from onlytalk.services.ledger import BalanceLedger

logger = logging.getLogger(__name__)


def local_today() -> date:
    """The server-local calendar date used as the check-in key."""
    return date.today()


def find_checkin_record(session: Session, user_id: int, day: date) -> CheckinRecord | None:
    return session.scalar(
        select(CheckinRecord).where(
            CheckinRecord.user_id == user_id,
            CheckinRecord.checkin_date == day,
        )
    )


def insert_checkin_record(
    session: Session,
    user_id: int,
    day: date,
    consecutive_days: int,
    points_earned: int,
) -> CheckinRecord:
    record = CheckinRecord(
        user_id=user_id,
        checkin_date=day,
        consecutive_days=consecutive_days,
        points_earned=points_earned,
    )
    session.add(record)
    return record


def _to_result(record: CheckinRecord) -> CheckinResult:
    return CheckinResult(
        date=record.checkin_date,
        consecutive_days=record.consecutive_days,
        points_earned=record.points_earned,
    )


# ---------------------------------------------------------------------------
# Check in
# ---------------------------------------------------------------------------
def check_in(engine: Engine, user_id: int, *, today: date | None = None) -> CheckinResult:
    """Record today's check-in and credit the streak bonus.

    Raises
    ------
    DuplicateCheckinError
        A record for (user, today) already exists.
    NotFoundError
        The user does not exist.
    """
    day = today or local_today()

    with get_session(engine) as session:
        ledger = BalanceLedger(session)
        if user_id not in ledger.lock_users(user_id):
            raise NotFoundError("User not found")

        if find_checkin_record(session, user_id, day) is not None:
            raise DuplicateCheckinError()

        previous = find_checkin_record(session, user_id, yesterday_of(day))
        streak = next_streak(previous.consecutive_days if previous else None)
        points = points_for_streak(streak)

        record = insert_checkin_record(session, user_id, day, streak, points)
        try:
            session.flush()
        except IntegrityError:
            # Lost a race with a concurrent check-in for the same day
            raise DuplicateCheckinError() from None

        ledger.apply(
            user_id,
            points,
            LedgerReason.CHECKIN,
            divisor=ACTIVITY_LEVEL_DIVISOR,
            related_type="checkin",
            related_id=record.id,
        )
        result = _to_result(record)

    logger.info(
        "User %s checked in on %s (streak=%d, +%d pts)",
        user_id, day.isoformat(), streak, points,
    )
    return result


# ---------------------------------------------------------------------------
# Status / history (read-only)
# ---------------------------------------------------------------------------
def checkin_status(engine: Engine, user_id: int, *, today: date | None = None) -> CheckinStatus:
    """Whether the user has checked in today and their current streak.

    If today's record is missing, reports yesterday's streak (or 0) so the
    client can show "day N, check in to continue".  Never writes.
    """
    day = today or local_today()
    with Session(engine) as session:
        record = find_checkin_record(session, user_id, day)
        if record is not None:
            return CheckinStatus(
                checked_in_today=True,
                consecutive_days=record.consecutive_days,
                today_checkin=_to_result(record),
            )

        previous = find_checkin_record(session, user_id, yesterday_of(day))
        return CheckinStatus(
            checked_in_today=False,
            consecutive_days=previous.consecutive_days if previous else 0,
        )


def checkin_history(engine: Engine, user_id: int, *, limit: int = 30) -> list[CheckinResult]:
    """Most recent check-ins first."""
    with Session(engine) as session:
        rows = session.scalars(
            select(CheckinRecord)
            .where(CheckinRecord.user_id == user_id)
            .order_by(CheckinRecord.checkin_date.desc())
            .limit(limit)
        ).all()
        return [_to_result(r) for r in rows]
