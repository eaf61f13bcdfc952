# intercom/domain/chat/handlers.py
from __future__ import annotations

from typing import List

from intercom.domain.common.types import TARGET_ALL, room_target
from intercom.domain.house.rooms import room_occupants
from intercom.transport.protocols import (
    OutgoingEvent,
    OutChat,
    OutRelay,
    OutTyping,
    InChat,
    InPassthrough,
    InTyping,
)
from intercom.util.timeutil import now_ms

Result = List[OutgoingEvent]


def handle_chat(*, hub, sid: str, msg: InChat) -> Result:
    house = hub.house_for(sid)
    member = house.members[sid]
    event = OutChat(
        sender=sid,
        sender_name=member.name,
        target=msg.target,
        text=msg.text,
        timestamp=now_ms(),
    )

    if msg.target == TARGET_ALL:
        hub.relay.broadcast(house.code, event)
        return []

    room = room_target(msg.target)
    if room is not None:
        hub.relay.send_to_room(house.code, room, event)
        if sid not in room_occupants(house, room):
            hub.relay.send_to(sid, event)
        return []

    # private message: recipient plus an echo
    if msg.target != sid:
        hub.relay.send_to_target(house.code, msg.target, event)
    hub.relay.send_to(sid, event)
    return []


def handle_typing(*, hub, sid: str, msg: InTyping) -> Result:
    house = hub.house_for(sid)
    event = OutTyping(session_id=sid, name=house.members[sid].name, is_typing=msg.is_typing)
    hub.relay.broadcast(house.code, event, exclude=sid)
    return []


def handle_passthrough(*, hub, sid: str, msg: InPassthrough) -> Result:
    house = hub.house_for(sid)
    event = OutRelay.model_validate(
        {**msg.payload(), "type": msg.type, "sessionId": sid, "timestamp": now_ms()}
    )
    hub.relay.broadcast(house.code, event, exclude=sid)
    return []
