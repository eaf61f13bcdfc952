# intercom/domain/game/engine.py
from __future__ import annotations

import itertools
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple

from intercom.domain.common.errors import AlreadyActive, NoActiveGame
from intercom.domain.common.scheduler import Scheduler
from intercom.domain.house.directory import HouseDirectory
from intercom.domain.house.models import House
from intercom.domain.house.succession import require_housemaster
from intercom.domain.relay import Relay
from intercom.transport.protocols import (
    OutCircleSortCanceled,
    OutCircleSortEnded,
    OutCircleSortGameEnded,
    OutCircleSortStarted,
)
from intercom.util.timeutil import now_ms

logger = logging.getLogger(__name__)

PALETTE = ("red", "blue", "green", "yellow", "purple", "orange", "pink", "cyan")

# (default, min, max)
GRID_SIZE = (6, 3, 10)
TIME_LIMIT_SEC = (60, 10, 300)
ROUNDS = (3, 1, 10)
COLOR_COUNT = (4, 2, len(PALETTE))

Phase = Literal["round", "break", "finishing"]


def _bounded(value: Optional[int], bounds: Tuple[int, int, int]) -> int:
    default, lo, hi = bounds
    if value is None:
        return default
    return max(lo, min(hi, int(value)))


@dataclass
class RoundResult:
    session_id: str
    name: str
    completion_time: float
    clicks: int
    score: int
    completed: bool

    def view(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "name": self.name,
            "completionTime": self.completion_time,
            "clicks": self.clicks,
            "score": self.score,
            "completed": self.completed,
        }


@dataclass
class CircleSortGame:
    id: int
    house_code: str
    grid_size: int
    color_count: int
    time_limit: int
    total_rounds: int
    current_round: int = 0
    phase: Phase = "round"
    initial_grid: List[List[str]] = field(default_factory=list)
    start_time: int = 0
    end_time: int = 0
    round_results: List[RoundResult] = field(default_factory=list)
    cumulative: Dict[str, int] = field(default_factory=dict)
    names: Dict[str, str] = field(default_factory=dict)

    def submitted(self, session_id: str) -> bool:
        return any(r.session_id == session_id for r in self.round_results)


class CircleSortEngine:
    """
    Round-based sorting game, at most one per house.
    Idle -> round -> break -> round ... -> finishing -> Idle

    All deferred steps share one timer key per house and carry
    (game id, round, phase); a callback that no longer matches is a no-op.
    """
    def __init__(
        self,
        relay: Relay,
        scheduler: Scheduler,
        directory: HouseDirectory,
        *,
        round_break_sec: float = 5.0,
        game_end_delay_sec: float = 5.0,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.relay = relay
        self.scheduler = scheduler
        self.directory = directory
        self.round_break_sec = round_break_sec
        self.game_end_delay_sec = game_end_delay_sec
        self.rng = rng or random.Random()
        self._games: Dict[str, CircleSortGame] = {}
        self._ids = itertools.count(1)

    def active(self, house_code: str) -> Optional[CircleSortGame]:
        return self._games.get(house_code)

    # ----------------------------
    # Commands
    # ----------------------------
    def start(
        self,
        house: House,
        session_id: str,
        *,
        grid_size: Optional[int] = None,
        time_limit: Optional[int] = None,
        rounds: Optional[int] = None,
        color_count: Optional[int] = None,
    ) -> CircleSortGame:
        require_housemaster(house, session_id, "start the circle sort game")
        if house.code in self._games:
            raise AlreadyActive("A circle sort game is already running")

        game = CircleSortGame(
            id=next(self._ids),
            house_code=house.code,
            grid_size=_bounded(grid_size, GRID_SIZE),
            color_count=_bounded(color_count, COLOR_COUNT),
            time_limit=_bounded(time_limit, TIME_LIMIT_SEC),
            total_rounds=_bounded(rounds, ROUNDS),
        )
        self._games[house.code] = game
        logger.info(
            "house %s: circle sort %d started (%dx%d, %d colors, %ds, %d rounds)",
            house.code, game.id, game.grid_size, game.grid_size, game.color_count, game.time_limit, game.total_rounds,
        )
        self._start_round(game)
        return game

    def submit(
        self,
        house: House,
        session_id: str,
        *,
        completion_time: float,
        clicks: int,
        score: int,
        completed: bool,
    ) -> bool:
        """Record a round result. Returns False for an ignored duplicate."""
        game = self._games.get(house.code)
        if game is None:
            raise NoActiveGame("No circle sort game running")
        if game.phase != "round":
            raise NoActiveGame("No circle sort round in progress")
        if game.submitted(session_id):
            logger.info("house %s: duplicate circle sort submission from %s ignored", house.code, session_id)
            return False

        member = house.members.get(session_id)
        name = member.name if member else session_id
        game.round_results.append(
            RoundResult(
                session_id=session_id,
                name=name,
                completion_time=completion_time,
                clicks=clicks,
                score=score,
                completed=completed,
            )
        )
        game.names[session_id] = name
        game.cumulative[session_id] = game.cumulative.get(session_id, 0) + score

        self._end_round_if_complete(game)
        return True

    def cancel(self, house: House, session_id: str) -> None:
        require_housemaster(house, session_id, "cancel the circle sort game")
        if house.code not in self._games:
            raise NoActiveGame("No circle sort game running")
        self.discard(house.code)
        logger.info("house %s: circle sort canceled", house.code)
        self.relay.broadcast(house.code, OutCircleSortCanceled())

    def round_event(self, house_code: str) -> Optional[OutCircleSortStarted]:
        """The running round as a start event, for members joining mid-round."""
        game = self._games.get(house_code)
        if game is None or game.phase != "round":
            return None
        return self._started_event(game)

    def member_left(self, house_code: str) -> None:
        """A departure can complete the round for everyone still present."""
        game = self._games.get(house_code)
        if game is not None and game.phase == "round":
            self._end_round_if_complete(game)

    def discard(self, house_code: str) -> None:
        self._games.pop(house_code, None)
        self.scheduler.cancel(self._key(house_code))

    def clear(self) -> None:
        for code in list(self._games):
            self.discard(code)

    # ----------------------------
    # Round flow
    # ----------------------------
    @staticmethod
    def _key(house_code: str) -> Tuple[str, str]:
        return (house_code, "circleSort")

    def _is_current(self, house_code: str, game_id: int, round_no: int, phase: Phase) -> Optional[CircleSortGame]:
        game = self._games.get(house_code)
        if game is None or game.id != game_id or game.current_round != round_no or game.phase != phase:
            logger.debug("house %s: stale circle sort timer (game %d round %d %s)", house_code, game_id, round_no, phase)
            return None
        return game

    def _make_grid(self, size: int, colors: int) -> List[List[str]]:
        palette = PALETTE[:colors]
        return [[self.rng.choice(palette) for _ in range(size)] for _ in range(size)]

    @staticmethod
    def _started_event(game: CircleSortGame) -> OutCircleSortStarted:
        return OutCircleSortStarted(
            round=game.current_round,
            total_rounds=game.total_rounds,
            grid=game.initial_grid,
            grid_size=game.grid_size,
            color_count=game.color_count,
            time_limit=game.time_limit,
            start_time=game.start_time,
            end_time=game.end_time,
        )

    def _start_round(self, game: CircleSortGame) -> None:
        game.current_round += 1
        game.phase = "round"
        game.round_results = []
        game.initial_grid = self._make_grid(game.grid_size, game.color_count)
        game.start_time = now_ms()
        game.end_time = game.start_time + game.time_limit * 1000

        self.relay.broadcast(game.house_code, self._started_event(game))
        self.scheduler.schedule(
            self._key(game.house_code),
            game.time_limit,
            lambda code=game.house_code, gid=game.id, rnd=game.current_round: self._on_round_timer(code, gid, rnd),
        )

    def _on_round_timer(self, house_code: str, game_id: int, round_no: int) -> None:
        game = self._is_current(house_code, game_id, round_no, "round")
        if game is not None:
            self._end_round(game)

    def _end_round_if_complete(self, game: CircleSortGame) -> None:
        house = self.directory.get(game.house_code)
        if house is None or not house.members:
            return
        submitted = {r.session_id for r in game.round_results}
        if all(sid in submitted for sid in house.members):
            self._end_round(game)

    def _end_round(self, game: CircleSortGame) -> None:
        game.phase = "break"
        self.scheduler.cancel(self._key(game.house_code))

        ranked = sorted(game.round_results, key=lambda r: (-r.score, r.completion_time))
        final = game.current_round >= game.total_rounds
        logger.info("house %s: circle sort round %d/%d ended, %d results", game.house_code, game.current_round, game.total_rounds, len(ranked))
        self.relay.broadcast(
            game.house_code,
            OutCircleSortEnded(
                round=game.current_round,
                total_rounds=game.total_rounds,
                results=[{"rank": i + 1, **r.view()} for i, r in enumerate(ranked)],
                final_round=final,
            ),
        )

        if final:
            game.phase = "finishing"
            self.scheduler.schedule(
                self._key(game.house_code),
                self.game_end_delay_sec,
                lambda code=game.house_code, gid=game.id, rnd=game.current_round: self._on_game_end_timer(code, gid, rnd),
            )
        else:
            self.scheduler.schedule(
                self._key(game.house_code),
                self.round_break_sec,
                lambda code=game.house_code, gid=game.id, rnd=game.current_round: self._on_break_timer(code, gid, rnd),
            )

    def _on_break_timer(self, house_code: str, game_id: int, round_no: int) -> None:
        game = self._is_current(house_code, game_id, round_no, "break")
        if game is not None:
            self._start_round(game)

    def _on_game_end_timer(self, house_code: str, game_id: int, round_no: int) -> None:
        game = self._is_current(house_code, game_id, round_no, "finishing")
        if game is None:
            return
        house = self.directory.get(house_code)
        present = set(house.members) if house else set()
        standings = sorted(
            (
                {"sessionId": sid, "name": game.names.get(sid, sid), "totalScore": total}
                for sid, total in game.cumulative.items()
                if sid in present
            ),
            key=lambda s: -s["totalScore"],
        )
        for i, entry in enumerate(standings):
            entry["rank"] = i + 1

        self._games.pop(house_code, None)
        logger.info("house %s: circle sort %d finished, %d ranked", house_code, game_id, len(standings))
        self.relay.broadcast(
            house_code,
            OutCircleSortGameEnded(standings=standings, total_rounds=game.total_rounds),
        )
