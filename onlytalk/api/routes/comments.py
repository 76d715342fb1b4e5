"""
onlytalk.api.routes.comments — Comment CRUD
============================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from onlytalk.api.deps import get_current_user_id, get_engine
from onlytalk.api.serializers import comment_dict
from onlytalk.services import content_service

router = APIRouter(prefix="/comments", tags=["comments"])


class CommentCreate(BaseModel):
    post_id: int
    content: str = Field(min_length=1)
    parent_id: int | None = None


class CommentUpdate(BaseModel):
    content: str = Field(min_length=1)


@router.get("/post/{post_id}")
def list_comments(post_id: int, engine=Depends(get_engine)):
    comments = content_service.list_comments(engine, post_id)
    return {"comments": [comment_dict(c) for c in comments]}


@router.post("", status_code=201)
def create_comment(
    body: CommentCreate,
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    comment = content_service.create_comment(
        engine, user_id, body.post_id, body.content, parent_id=body.parent_id,
    )
    return {"comment": comment_dict(comment, with_author=False)}


@router.put("/{comment_id}")
def update_comment(
    comment_id: int,
    body: CommentUpdate,
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    comment = content_service.update_comment(engine, user_id, comment_id, body.content)
    return {"comment": comment_dict(comment, with_author=False)}


@router.delete("/{comment_id}")
def delete_comment(
    comment_id: int,
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    content_service.delete_comment(engine, user_id, comment_id)
    return {"ok": True}
