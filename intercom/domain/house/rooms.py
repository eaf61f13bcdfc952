# intercom/domain/house/rooms.py
from __future__ import annotations

import logging
from typing import List, Optional

from intercom.domain.common.errors import NotJoined, RoomNotFound
from intercom.domain.house.models import House, Room
from intercom.domain.house.succession import require_housemaster

logger = logging.getLogger(__name__)


def _member(house: House, session_id: str):
    member = house.members.get(session_id)
    if member is None:
        raise NotJoined(f"{session_id} is not a member of house {house.code}")
    return member


def exit_room(house: House, session_id: str) -> bool:
    """
    Remove the member from its current room.
    A non-permanent room is deleted once empty.
    Returns True if the room list changed.
    """
    member = house.members.get(session_id)
    name = member.room if member else None
    if member is not None:
        member.room = None
    if name is None:
        return False
    room = house.rooms.get(name)
    if room is None:
        return False
    room.occupants.pop(session_id, None)
    if not room.occupants and not room.permanent:
        house.rooms.pop(name, None)
        logger.debug("house %s: room %s removed (empty)", house.code, name)
    return True


def enter_room(house: House, session_id: str, name: str) -> Room:
    """Move a member into `name`, creating the room if needed."""
    member = _member(house, session_id)
    if member.room == name and name in house.rooms:
        return house.rooms[name]
    exit_room(house, session_id)
    room = house.rooms.get(name)
    if room is None:
        room = Room(name=name, created_by=session_id)
        house.rooms[name] = room
    room.occupants[session_id] = None
    member.room = name
    return room


def create_room(house: House, session_id: str, name: str, permanent: bool = False) -> Room:
    """
    Explicit creation without entering it.
    `permanent` is only honored for the housemaster.
    """
    _member(house, session_id)
    keep = permanent and house.is_housemaster(session_id)
    if permanent and not keep:
        logger.info("house %s: %s asked for permanent room %s, created as temporary", house.code, session_id, name)
    room = house.rooms.get(name)
    if room is None:
        room = Room(name=name, permanent=keep, created_by=session_id)
        house.rooms[name] = room
    elif keep:
        room.permanent = True
    return room


def delete_room(house: House, session_id: str, name: str) -> List[str]:
    """Housemaster only. Evicts occupants and returns their ids."""
    require_housemaster(house, session_id, "delete rooms")
    room = house.rooms.pop(name, None)
    if room is None:
        raise RoomNotFound(f"Room {name} not found")
    evicted = list(room.occupants)
    for sid in evicted:
        member = house.members.get(sid)
        if member is not None:
            member.room = None
    return evicted


def room_occupants(house: House, name: str) -> List[str]:
    room: Optional[Room] = house.rooms.get(name)
    return list(room.occupants) if room else []
