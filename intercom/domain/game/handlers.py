# intercom/domain/game/handlers.py
from __future__ import annotations

from typing import List

from intercom.transport.protocols import (
    OutgoingEvent,
    InCancelCircleSort,
    InStartCircleSort,
    InSubmitCircleSort,
)

Result = List[OutgoingEvent]


def handle_start_circle_sort(*, hub, sid: str, msg: InStartCircleSort) -> Result:
    house = hub.house_for(sid)
    hub.games.start(
        house,
        sid,
        grid_size=msg.grid_size,
        time_limit=msg.time_limit,
        rounds=msg.rounds,
        color_count=msg.color_count,
    )
    return []


def handle_submit_circle_sort(*, hub, sid: str, msg: InSubmitCircleSort) -> Result:
    house = hub.house_for(sid)
    # a duplicate submission is ignored without a reply
    hub.games.submit(
        house,
        sid,
        completion_time=msg.completion_time,
        clicks=msg.clicks,
        score=msg.score,
        completed=msg.completed,
    )
    return []


def handle_cancel_circle_sort(*, hub, sid: str, msg: InCancelCircleSort) -> Result:
    house = hub.house_for(sid)
    hub.games.cancel(house, sid)
    return []
