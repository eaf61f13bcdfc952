# intercom/domain/poll/engine.py
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from intercom.domain.common.errors import AlreadyActive, InvalidOption, NoActivePoll
from intercom.domain.common.scheduler import Scheduler
from intercom.domain.house.models import House
from intercom.domain.house.succession import require_housemaster
from intercom.domain.relay import Relay
from intercom.transport.protocols import (
    OutPollCanceled,
    OutPollEnded,
    OutPollStarted,
    OutPollUpdate,
)
from intercom.util.timeutil import now_ms

logger = logging.getLogger(__name__)

POLL_MIN_DURATION_SEC = 5
POLL_MAX_DURATION_SEC = 120


def clamp_duration(duration: Optional[float]) -> Optional[float]:
    if duration is None:
        return None
    return float(max(POLL_MIN_DURATION_SEC, min(POLL_MAX_DURATION_SEC, duration)))


@dataclass
class PollOption:
    text: str
    # insertion-ordered set of session ids
    votes: Dict[str, None] = field(default_factory=dict)


@dataclass
class Poll:
    id: int
    house_code: str
    question: str
    options: List[PollOption]
    multiple_choice: bool
    show_realtime: bool
    created_by: str
    started_at: int
    end_at: Optional[int] = None

    def tallies(self) -> List[int]:
        return [len(o.votes) for o in self.options]

    def voters(self) -> int:
        seen = set()
        for o in self.options:
            seen.update(o.votes)
        return len(seen)

    def view(self, *, include_counts: bool) -> Dict[str, Any]:
        options: List[Dict[str, Any]] = []
        for o in self.options:
            entry: Dict[str, Any] = {"text": o.text}
            if include_counts:
                entry["votes"] = len(o.votes)
            options.append(entry)
        out: Dict[str, Any] = {
            "id": self.id,
            "question": self.question,
            "options": options,
            "multipleChoice": self.multiple_choice,
            "showRealtime": self.show_realtime,
            "startedAt": self.started_at,
            "endAt": self.end_at,
        }
        if include_counts:
            out["totalVoters"] = self.voters()
        return out

    def results(self) -> List[Dict[str, Any]]:
        total = sum(self.tallies())
        return [
            {
                "text": o.text,
                "votes": len(o.votes),
                "percent": round(100.0 * len(o.votes) / total, 1) if total else 0.0,
            }
            for o in self.options
        ]


class PollEngine:
    """
    At most one poll per house.
    NoPoll -> Active -> Ended | Canceled -> NoPoll
    The optional auto-end timer is keyed by poll id and ignored once that
    poll is no longer the active one.
    """
    def __init__(self, relay: Relay, scheduler: Scheduler) -> None:
        self.relay = relay
        self.scheduler = scheduler
        self._polls: Dict[str, Poll] = {}
        self._ids = itertools.count(1)

    def active(self, house_code: str) -> Optional[Poll]:
        return self._polls.get(house_code)

    def _require(self, house_code: str) -> Poll:
        poll = self._polls.get(house_code)
        if poll is None:
            raise NoActivePoll("No active poll")
        return poll

    def start(
        self,
        house: House,
        session_id: str,
        question: str,
        options: List[str],
        *,
        multiple_choice: bool = False,
        show_realtime: bool = False,
        duration: Optional[float] = None,
    ) -> Poll:
        require_housemaster(house, session_id, "start a poll")
        if house.code in self._polls:
            raise AlreadyActive("A poll is already active")

        started = now_ms()
        seconds = clamp_duration(duration)
        poll = Poll(
            id=next(self._ids),
            house_code=house.code,
            question=question,
            options=[PollOption(text=t) for t in options],
            multiple_choice=multiple_choice,
            show_realtime=show_realtime,
            created_by=session_id,
            started_at=started,
            end_at=started + int(seconds * 1000) if seconds is not None else None,
        )
        self._polls[house.code] = poll
        logger.info("house %s: poll %d started (%d options, duration=%s)", house.code, poll.id, len(options), seconds)

        self.relay.broadcast(house.code, OutPollStarted(poll=poll.view(include_counts=show_realtime)))

        if seconds is not None:
            self.scheduler.schedule(
                (house.code, "poll", poll.id),
                seconds,
                lambda code=house.code, pid=poll.id: self._auto_end(code, pid),
            )
        return poll

    def vote(self, house: House, session_id: str, option_index: int) -> Poll:
        poll = self._require(house.code)
        if option_index < 0 or option_index >= len(poll.options):
            raise InvalidOption(f"Option {option_index} does not exist")

        chosen = poll.options[option_index]
        if poll.multiple_choice:
            if session_id in chosen.votes:
                chosen.votes.pop(session_id)
            else:
                chosen.votes[session_id] = None
        else:
            for option in poll.options:
                option.votes.pop(session_id, None)
            chosen.votes[session_id] = None

        if poll.show_realtime:
            self.relay.broadcast(house.code, OutPollUpdate(poll=poll.view(include_counts=True)))
        return poll

    def end(self, house: House, session_id: str) -> Poll:
        require_housemaster(house, session_id, "end a poll")
        poll = self._require(house.code)
        self._finish(poll, reason="ended")
        return poll

    def cancel(self, house: House, session_id: str) -> None:
        require_housemaster(house, session_id, "cancel a poll")
        poll = self._require(house.code)
        self._clear(poll)
        logger.info("house %s: poll %d canceled", house.code, poll.id)
        self.relay.broadcast(house.code, OutPollCanceled())

    def _auto_end(self, house_code: str, poll_id: int) -> None:
        poll = self._polls.get(house_code)
        if poll is None or poll.id != poll_id:
            logger.debug("house %s: stale poll timer %d ignored", house_code, poll_id)
            return
        self._finish(poll, reason="timeout")

    def _finish(self, poll: Poll, *, reason: str) -> None:
        self._clear(poll)
        logger.info("house %s: poll %d %s, tallies=%s", poll.house_code, poll.id, reason, poll.tallies())
        self.relay.broadcast(
            poll.house_code,
            OutPollEnded(poll=poll.view(include_counts=True), results=poll.results(), reason=reason),
        )

    def _clear(self, poll: Poll) -> None:
        if self._polls.get(poll.house_code) is poll:
            self._polls.pop(poll.house_code, None)
        self.scheduler.cancel((poll.house_code, "poll", poll.id))

    def discard(self, house_code: str) -> None:
        poll = self._polls.get(house_code)
        if poll is not None:
            self._clear(poll)

    def clear(self) -> None:
        for poll in list(self._polls.values()):
            self._clear(poll)
