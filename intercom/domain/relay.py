# intercom/domain/relay.py
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from intercom.domain.common.types import TARGET_ALL, room_target
from intercom.domain.house.directory import HouseDirectory
from intercom.domain.house.rooms import room_occupants
from intercom.transport.protocols import OutgoingEvent
from intercom.transport.ws_manager import WSManager

logger = logging.getLogger(__name__)


class Relay:
    """
    Fan-out of outgoing events: one session, one room, or a whole house.
    Recipient lists are snapshotted before delivery; sends to closed
    transports are dropped by the connection registry.
    """
    def __init__(self, wsman: WSManager, directory: HouseDirectory) -> None:
        self.wsman = wsman
        self.directory = directory

    def _deliver(self, session_ids: Iterable[str], event: OutgoingEvent, exclude: Optional[str] = None) -> int:
        payload = event.envelope()
        sent = 0
        for sid in list(session_ids):
            if exclude is not None and sid == exclude:
                continue
            if self.wsman.send(sid, payload):
                sent += 1
        return sent

    def send_to(self, session_id: str, event: OutgoingEvent) -> bool:
        return self._deliver([session_id], event) == 1

    def broadcast(self, house_code: str, event: OutgoingEvent, exclude: Optional[str] = None) -> int:
        house = self.directory.get(house_code)
        if house is None:
            return 0
        sent = self._deliver(house.member_ids(), event, exclude=exclude)
        logger.debug("house %s: %s -> %d recipients", house_code, event.type, sent)
        return sent

    def send_to_room(self, house_code: str, room_name: str, event: OutgoingEvent, exclude: Optional[str] = None) -> int:
        house = self.directory.get(house_code)
        if house is None:
            return 0
        return self._deliver(room_occupants(house, room_name), event, exclude=exclude)

    def resolve_targets(self, house_code: str, sender: str, target: str) -> List[str]:
        """
        Peers addressed by `target`, never including the sender:
        "ALL" -> every other member, "room:<name>" -> other occupants,
        otherwise the named session if it belongs to the same house.
        """
        house = self.directory.get(house_code)
        if house is None:
            return []
        if target == TARGET_ALL:
            return [sid for sid in house.members if sid != sender]
        room = room_target(target)
        if room is not None:
            return [sid for sid in room_occupants(house, room) if sid != sender]
        if target in house.members and target != sender:
            return [target]
        return []

    def send_to_target(self, house_code: str, target: str, event: OutgoingEvent, exclude: Optional[str] = None) -> int:
        if target == TARGET_ALL:
            return self.broadcast(house_code, event, exclude=exclude)
        room = room_target(target)
        if room is not None:
            return self.send_to_room(house_code, room, event, exclude=exclude)
        house = self.directory.get(house_code)
        if house is None or target not in house.members:
            logger.debug("house %s: target %s not found, dropped %s", house_code, target, event.type)
            return 0
        return self._deliver([target], event, exclude=exclude)
