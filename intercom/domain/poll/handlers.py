# intercom/domain/poll/handlers.py
from __future__ import annotations

from typing import List

from intercom.transport.protocols import (
    OutgoingEvent,
    InCancelPoll,
    InEndPoll,
    InStartPoll,
    InVote,
)

Result = List[OutgoingEvent]


def handle_start_poll(*, hub, sid: str, msg: InStartPoll) -> Result:
    house = hub.house_for(sid)
    hub.polls.start(
        house,
        sid,
        msg.question.strip(),
        [o.strip() for o in msg.options],
        multiple_choice=msg.multiple_choice,
        show_realtime=msg.show_realtime,
        duration=msg.duration,
    )
    return []


def handle_vote(*, hub, sid: str, msg: InVote) -> Result:
    house = hub.house_for(sid)
    hub.polls.vote(house, sid, msg.option_index)
    return []


def handle_end_poll(*, hub, sid: str, msg: InEndPoll) -> Result:
    house = hub.house_for(sid)
    hub.polls.end(house, sid)
    return []


def handle_cancel_poll(*, hub, sid: str, msg: InCancelPoll) -> Result:
    house = hub.house_for(sid)
    hub.polls.cancel(house, sid)
    return []
