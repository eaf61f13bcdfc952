# intercom/domain/hub.py
from __future__ import annotations

import logging
import random
from typing import Optional

from intercom.domain.common.errors import NotJoined
from intercom.domain.common.scheduler import Scheduler
from intercom.domain.game.engine import CircleSortEngine
from intercom.domain.house.directory import HouseDirectory
from intercom.domain.house.models import House
from intercom.domain.poll.engine import PollEngine
from intercom.domain.relay import Relay
from intercom.settings import Settings
from intercom.transport.ws_manager import WSManager

logger = logging.getLogger(__name__)


class HouseHub:
    """
    Everything the relay keeps in memory, wired together.
    One instance per process: built on startup, closed on shutdown,
    reached by handlers as `hub`.
    """
    def __init__(
        self,
        *,
        scheduler: Optional[Scheduler] = None,
        round_break_sec: float = 5.0,
        game_end_delay_sec: float = 5.0,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.wsman = WSManager()
        self.directory = HouseDirectory()
        self.scheduler = scheduler or Scheduler()
        self.relay = Relay(self.wsman, self.directory)
        self.polls = PollEngine(self.relay, self.scheduler)
        self.games = CircleSortEngine(
            self.relay,
            self.scheduler,
            self.directory,
            round_break_sec=round_break_sec,
            game_end_delay_sec=game_end_delay_sec,
            rng=rng,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "HouseHub":
        return cls(
            round_break_sec=settings.ROUND_BREAK_SEC,
            game_end_delay_sec=settings.GAME_END_DELAY_SEC,
        )

    def house_for(self, session_id: Optional[str]) -> House:
        house = self.directory.house_of(session_id) if session_id else None
        if house is None:
            raise NotJoined("Join a house first")
        return house

    def drop_house_activities(self, house_code: str) -> None:
        self.polls.discard(house_code)
        self.games.discard(house_code)
        self.scheduler.cancel_house(house_code)

    def close(self) -> None:
        self.scheduler.close()
        self.polls.clear()
        self.games.clear()
        self.directory.clear()
        logger.info("house hub closed")
