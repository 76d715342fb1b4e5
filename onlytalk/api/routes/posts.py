"""
onlytalk.api.routes.posts — Posts, search & categories
=======================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from onlytalk.api.deps import get_config, get_current_user_id, get_engine, get_optional_user_id
from onlytalk.api.serializers import category_dict, post_dict
from onlytalk.config import OnlyTalkConfig
from onlytalk.services import content_service, like_service, social_service

router = APIRouter(tags=["posts"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class PostCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    category_id: int | None = None


class PostUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = Field(default=None, min_length=1)
    category_id: int | None = None


def _page_dict(page: content_service.PostPage) -> dict:
    return {
        "posts": [post_dict(p) for p in page.items],
        "total": page.total,
        "page": page.page,
        "page_size": page.page_size,
    }


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------
@router.get("/posts")
def list_posts(
    category_id: int | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    engine=Depends(get_engine),
):
    result = content_service.list_posts(
        engine, category_id=category_id, page=page, page_size=page_size,
    )
    return _page_dict(result)


@router.get("/posts/hot")
def hot_posts(
    limit: int = Query(10, ge=1, le=50),
    engine=Depends(get_engine),
    cfg: OnlyTalkConfig = Depends(get_config),
):
    posts = content_service.hot_posts(
        engine, window_days=cfg.hot_posts_window_days, limit=limit,
    )
    return {"posts": [post_dict(p) for p in posts]}


@router.get("/posts/{post_id}")
def get_post(
    post_id: int,
    viewer_id: int | None = Depends(get_optional_user_id),
    engine=Depends(get_engine),
):
    post = content_service.get_post(engine, post_id)
    data = post_dict(post)
    if viewer_id is not None:
        data["is_liked"] = like_service.is_post_liked(engine, viewer_id, post_id)
        data["is_favorited"] = social_service.is_favorited(engine, viewer_id, post_id)
    return {"post": data}


@router.post("/posts", status_code=201)
def create_post(
    body: PostCreate,
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    post = content_service.create_post(
        engine, user_id, title=body.title, content=body.content, category_id=body.category_id,
    )
    return {"post": post_dict(post, with_author=False)}


@router.put("/posts/{post_id}")
def update_post(
    post_id: int,
    body: PostUpdate,
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    post = content_service.update_post(
        engine,
        user_id,
        post_id,
        title=body.title,
        content=body.content,
        category_id=body.category_id,
    )
    return {"post": post_dict(post, with_author=False)}


@router.delete("/posts/{post_id}")
def delete_post(
    post_id: int,
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    content_service.delete_post(engine, user_id, post_id)
    return {"ok": True}


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------
@router.get("/search/posts")
def search_posts(
    q: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    engine=Depends(get_engine),
):
    result = content_service.search_posts(engine, q, page=page, page_size=page_size)
    return _page_dict(result)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------
@router.get("/categories")
def list_categories(engine=Depends(get_engine)):
    return {"categories": [category_dict(c) for c in content_service.list_categories(engine)]}


@router.get("/categories/{category_id}")
def get_category(category_id: int, engine=Depends(get_engine)):
    return {"category": category_dict(content_service.get_category(engine, category_id))}
