# intercom/store/redis_repo.py
from __future__ import annotations

from typing import List, Optional

from redis.asyncio import Redis
from redis.exceptions import WatchError

from intercom.store.models import GameModeLikes
from intercom.store.redis_keys import LK


class LikesRepo:
    """
    Game-mode likes on Redis.
    One SET of user ids per game mode, plus a ZSET index holding the counts
    so listings come back sorted without scanning.
    """
    def __init__(self, r: Redis):
        self.r = r

    def _dec(self, x):
        """Decode redis bytes -> str; pass through str/int/None safely."""
        if x is None:
            return None
        if isinstance(x, bytes):
            return x.decode("utf-8")
        return x

    # ----------------------------
    # Writes
    # ----------------------------
    async def add_like(self, game_mode_id: str, user_id: str) -> bool:
        """False when the user already liked this game mode."""
        return await self._toggle(game_mode_id, user_id, liked=True)

    async def remove_like(self, game_mode_id: str, user_id: str) -> bool:
        """False when there was no such like."""
        return await self._toggle(game_mode_id, user_id, liked=False)

    async def _toggle(self, game_mode_id: str, user_id: str, *, liked: bool) -> bool:
        # SET and ZSET index change in one MULTI; WATCH retries on a concurrent toggle
        key = LK(game_mode_id).likes()
        async with self.r.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(key)
                    if bool(await pipe.sismember(key, user_id)) == liked:
                        return False
                    pipe.multi()
                    if liked:
                        pipe.sadd(key, user_id)
                        pipe.zincrby(LK.index(), 1, game_mode_id)
                    else:
                        pipe.srem(key, user_id)
                        pipe.zincrby(LK.index(), -1, game_mode_id)
                        pipe.zremrangebyscore(LK.index(), "-inf", 0)
                    await pipe.execute()
                    return True
                except WatchError:
                    continue

    # ----------------------------
    # Reads
    # ----------------------------
    async def get_like_count(self, game_mode_id: str) -> int:
        return int(await self.r.scard(LK(game_mode_id).likes()))

    async def has_user_liked(self, game_mode_id: str, user_id: str) -> bool:
        return bool(await self.r.sismember(LK(game_mode_id).likes(), user_id))

    async def get_game_mode_details(self, game_mode_id: str, user_id: Optional[str] = None) -> GameModeLikes:
        count = await self.get_like_count(game_mode_id)
        liked = await self.has_user_liked(game_mode_id, user_id) if user_id else False
        return GameModeLikes(game_mode_id=game_mode_id, like_count=count, user_liked=liked)

    async def get_all_game_modes(self, user_id: Optional[str] = None) -> List[GameModeLikes]:
        """Game modes with at least one like, most liked first."""
        rows = await self.r.zrevrangebyscore(LK.index(), "+inf", 1, withscores=True)
        out: List[GameModeLikes] = []
        for member, score in rows:
            gm = self._dec(member)
            liked = await self.has_user_liked(gm, user_id) if user_id else False
            out.append(GameModeLikes(game_mode_id=gm, like_count=int(score), user_liked=liked))
        return out

    async def ping(self) -> bool:
        return bool(await self.r.ping())
