# intercom/store/redis_keys.py
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LK:
    """
    Redis key builder for game-mode likes.
    """
    game_mode_id: str

    def likes(self) -> str:
        return f"likes:{self.game_mode_id}"  # SET user_id

    @staticmethod
    def index() -> str:
        return "likes:index"  # ZSET game_mode_id -> like count
