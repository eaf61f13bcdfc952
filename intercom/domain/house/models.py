# intercom/domain/house/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from intercom.domain.common.types import DEFAULT_MODE, HouseMode
from intercom.util.timeutil import now_ts


@dataclass
class Member:
    session_id: str
    name: str
    room: Optional[str] = None
    joined_at: int = field(default_factory=now_ts)


@dataclass
class Room:
    name: str
    # insertion-ordered set of session ids
    occupants: Dict[str, None] = field(default_factory=dict)
    permanent: bool = False
    created_by: Optional[str] = None


@dataclass
class House:
    code: str
    mode: HouseMode = DEFAULT_MODE
    housemaster_id: Optional[str] = None
    # join order is preserved; succession relies on it
    members: Dict[str, Member] = field(default_factory=dict)
    rooms: Dict[str, Room] = field(default_factory=dict)
    created_at: int = field(default_factory=now_ts)

    def is_housemaster(self, session_id: str) -> bool:
        return self.housemaster_id is not None and self.housemaster_id == session_id

    def member_ids(self) -> List[str]:
        return list(self.members)

    def members_view(self) -> List[Dict[str, Any]]:
        return [
            {
                "sessionId": m.session_id,
                "name": m.name,
                "isHousemaster": self.is_housemaster(m.session_id),
                "room": m.room,
            }
            for m in self.members.values()
        ]

    def rooms_view(self) -> List[Dict[str, Any]]:
        return [
            {
                "name": r.name,
                "occupants": list(r.occupants),
                "permanent": r.permanent,
            }
            for r in self.rooms.values()
        ]
