# intercom/transport/likes.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from intercom.store.models import LikeRequest, UnlikeRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["likes"])


def _fail(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


def _store_failed(action: str) -> JSONResponse:
    logger.exception("likes store failed during %s", action)
    return _fail(500, "Internal server error")


@router.post("/likes")
async def add_like(request: Request, body: Optional[LikeRequest] = None):
    if body is None or not body.game_mode_id or not body.user_id:
        return _fail(400, "gameModeId and userId are required")

    likes = request.app.state.likes
    try:
        if not await likes.add_like(body.game_mode_id, body.user_id):
            return _fail(409, "Already liked")
        count = await likes.get_like_count(body.game_mode_id)
    except RedisError:
        return _store_failed("add_like")

    logger.info("like %s by %s (%d total)", body.game_mode_id, body.user_id, count)
    return {"success": True, "likeCount": count, "userLiked": True}


@router.delete("/likes/{game_mode_id}")
async def remove_like(game_mode_id: str, request: Request, body: Optional[UnlikeRequest] = None):
    if body is None or not body.user_id:
        return _fail(400, "userId is required")

    likes = request.app.state.likes
    try:
        if not await likes.remove_like(game_mode_id, body.user_id):
            return _fail(404, "Like not found")
        count = await likes.get_like_count(game_mode_id)
    except RedisError:
        return _store_failed("remove_like")

    return {"success": True, "likeCount": count, "userLiked": False}


@router.get("/likes/{game_mode_id}")
async def like_details(game_mode_id: str, request: Request, user_id: Optional[str] = Query(default=None, alias="userId")):
    try:
        details = await request.app.state.likes.get_game_mode_details(game_mode_id, user_id)
    except RedisError:
        return _store_failed("like_details")
    return details.model_dump(by_alias=True)


@router.get("/games")
async def list_games(request: Request, user_id: Optional[str] = Query(default=None, alias="userId")):
    try:
        games = await request.app.state.likes.get_all_game_modes(user_id)
    except RedisError:
        return _store_failed("list_games")
    return {"games": [g.model_dump(by_alias=True) for g in games]}
