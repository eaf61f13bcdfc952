# intercom/domain/house/directory.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from intercom.domain.house import succession
from intercom.domain.house.models import House, Member
from intercom.domain.house.rooms import exit_room

logger = logging.getLogger(__name__)


@dataclass
class LeaveOutcome:
    house: House
    session_id: str
    new_housemaster: Optional[str] = None
    house_deleted: bool = False
    rooms_changed: bool = False


class HouseDirectory:
    """
    house code -> House, plus a session -> house code index.
    Houses are created lazily on first join and dropped when empty.
    """
    def __init__(self) -> None:
        self._houses: Dict[str, House] = {}
        self._house_of: Dict[str, str] = {}

    def get(self, code: str) -> Optional[House]:
        return self._houses.get(code)

    def house_of(self, session_id: str) -> Optional[House]:
        code = self._house_of.get(session_id)
        return self._houses.get(code) if code is not None else None

    def codes(self) -> List[str]:
        return list(self._houses)

    def __len__(self) -> int:
        return len(self._houses)

    def join(self, house_code: str, session_id: str, name: str) -> Tuple[House, bool]:
        """
        Register a member; the connection registry already rejected duplicates.
        Returns (house, is_housemaster).
        """
        house = self._houses.get(house_code)
        if house is None:
            house = House(code=house_code)
            self._houses[house_code] = house
            logger.info("house %s created", house_code)
        house.members[session_id] = Member(session_id=session_id, name=name)
        self._house_of[session_id] = house_code
        is_hm = succession.on_join(house, session_id)
        logger.info("house %s: %s (%s) joined, housemaster=%s", house_code, session_id, name, is_hm)
        return house, is_hm

    def leave(self, session_id: str) -> Optional[LeaveOutcome]:
        code = self._house_of.pop(session_id, None)
        house = self._houses.get(code) if code is not None else None
        if house is None:
            return None

        rooms_changed = exit_room(house, session_id)
        house.members.pop(session_id, None)
        new_hm = succession.on_leave(house, session_id)

        outcome = LeaveOutcome(
            house=house,
            session_id=session_id,
            new_housemaster=new_hm,
            rooms_changed=rooms_changed,
        )
        if not house.members:
            self._houses.pop(house.code, None)
            outcome.house_deleted = True
            logger.info("house %s deleted (empty)", house.code)
        else:
            logger.info("house %s: %s left, %d remaining", house.code, session_id, len(house.members))
        return outcome

    def clear(self) -> None:
        self._houses.clear()
        self._house_of.clear()
