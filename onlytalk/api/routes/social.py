"""
onlytalk.api.routes.social — Likes, favorites & follows
========================================================

All three are toggles: POST flips the state and returns the new one.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from onlytalk.api.deps import get_current_user_id, get_engine
from onlytalk.api.serializers import author_dict, post_dict
from onlytalk.services import like_service, social_service

router = APIRouter(tags=["social"])


# ---------------------------------------------------------------------------
# Likes
# ---------------------------------------------------------------------------
@router.post("/likes/posts/{post_id}")
def like_post(
    post_id: int,
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    result = like_service.toggle_post_like(engine, user_id, post_id)
    return {"liked": result.liked, "likes": result.likes}


@router.post("/likes/comments/{comment_id}")
def like_comment(
    comment_id: int,
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    result = like_service.toggle_comment_like(engine, user_id, comment_id)
    return {"liked": result.liked, "likes": result.likes}


@router.get("/likes/posts/{post_id}/status")
def post_like_status(
    post_id: int,
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    return {"liked": like_service.is_post_liked(engine, user_id, post_id)}


# ---------------------------------------------------------------------------
# Favorites
# ---------------------------------------------------------------------------
@router.post("/favorites/posts/{post_id}")
def favorite_post(
    post_id: int,
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    return {"favorited": social_service.toggle_favorite(engine, user_id, post_id)}


@router.get("/favorites")
def list_favorites(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    posts, total = social_service.list_favorites(engine, user_id, limit=limit, offset=offset)
    return {"posts": [post_dict(p) for p in posts], "total": total}


@router.get("/favorites/posts/{post_id}/status")
def favorite_status(
    post_id: int,
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    return {"favorited": social_service.is_favorited(engine, user_id, post_id)}


# ---------------------------------------------------------------------------
# Follows
# ---------------------------------------------------------------------------
@router.post("/follows/{target_id}")
def follow_user(
    target_id: int,
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    return {"following": social_service.toggle_follow(engine, user_id, target_id)}


@router.get("/follows/following/{target_id}")
def list_following(
    target_id: int,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    engine=Depends(get_engine),
):
    users = social_service.list_following(engine, target_id, limit=limit, offset=offset)
    return {"users": [author_dict(u) for u in users]}


@router.get("/follows/followers/{target_id}")
def list_followers(
    target_id: int,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    engine=Depends(get_engine),
):
    users = social_service.list_followers(engine, target_id, limit=limit, offset=offset)
    return {"users": [author_dict(u) for u in users]}


@router.get("/follows/check/{target_id}")
def check_follow(
    target_id: int,
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    return {"following": social_service.is_following(engine, user_id, target_id)}


@router.get("/follows/stats/{target_id}")
def follow_stats(target_id: int, engine=Depends(get_engine)):
    stats = social_service.follow_stats(engine, target_id)
    return {"following": stats.following, "followers": stats.followers}
