# intercom/store/models.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LikeRequest(_Camel):
    # presence is checked by the route to answer 400 instead of 422
    game_mode_id: Optional[str] = None
    user_id: Optional[str] = None


class UnlikeRequest(_Camel):
    user_id: Optional[str] = None


class GameModeLikes(_Camel):
    game_mode_id: str
    like_count: int = 0
    user_liked: bool = False
