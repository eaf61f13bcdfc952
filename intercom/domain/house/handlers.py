# intercom/domain/house/handlers.py
from __future__ import annotations

import logging
from typing import List

from intercom.domain.house import rooms
from intercom.domain.house.models import House
from intercom.transport.protocols import (
    OutgoingEvent,
    OutMemberList,
    OutRoomsUpdate,
    InCreateRoom,
    InDeleteRoom,
    InJoinRoom,
    InLeaveRoom,
)

logger = logging.getLogger(__name__)

Result = List[OutgoingEvent]


def _announce_rooms(hub, house: House) -> None:
    hub.relay.broadcast(house.code, OutRoomsUpdate(rooms=house.rooms_view()))
    # member entries carry their room
    hub.relay.broadcast(house.code, OutMemberList(members=house.members_view()))


def handle_create_room(*, hub, sid: str, msg: InCreateRoom) -> Result:
    house = hub.house_for(sid)
    existed = msg.name in house.rooms
    room = rooms.create_room(house, sid, msg.name, permanent=msg.permanent)
    if existed and not (msg.permanent and room.permanent):
        return []
    logger.info("house %s: room %s created by %s (permanent=%s)", house.code, room.name, sid, room.permanent)
    hub.relay.broadcast(house.code, OutRoomsUpdate(rooms=house.rooms_view()))
    return []


def handle_join_room(*, hub, sid: str, msg: InJoinRoom) -> Result:
    house = hub.house_for(sid)
    rooms.enter_room(house, sid, msg.room_name)
    _announce_rooms(hub, house)
    return []


def handle_leave_room(*, hub, sid: str, msg: InLeaveRoom) -> Result:
    house = hub.house_for(sid)
    if rooms.exit_room(house, sid):
        _announce_rooms(hub, house)
    return []


def handle_delete_room(*, hub, sid: str, msg: InDeleteRoom) -> Result:
    house = hub.house_for(sid)
    evicted = rooms.delete_room(house, sid, msg.name)
    logger.info("house %s: room %s deleted, %d evicted", house.code, msg.name, len(evicted))
    _announce_rooms(hub, house)
    return []
