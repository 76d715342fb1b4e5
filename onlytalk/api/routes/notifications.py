"""
onlytalk.api.routes.notifications — Inbox
==========================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from onlytalk.api.deps import get_current_user_id, get_engine
from onlytalk.api.serializers import notification_dict
from onlytalk.services import notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
def list_notifications(
    unread_only: bool = False,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    rows, total, unread = notification_service.list_notifications(
        engine, user_id, unread_only=unread_only, limit=limit, offset=offset,
    )
    return {
        "notifications": [notification_dict(n) for n in rows],
        "total": total,
        "unread_count": unread,
    }


@router.post("/{notification_id}/read")
def mark_read(
    notification_id: int,
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    notification_service.mark_read(engine, user_id, notification_id)
    return {"ok": True}


@router.post("/read-all")
def mark_all_read(
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    return {"updated": notification_service.mark_all_read(engine, user_id)}
