# intercom/domain/common/types.py
from __future__ import annotations

from typing import Literal

HouseMode = Literal["free", "announcement", "returnChannel"]
DEFAULT_MODE: HouseMode = "announcement"

# Chat / talk target meaning "every other member of the house"
TARGET_ALL = "ALL"
# Room-qualified targets look like "room:<name>"
ROOM_TARGET_PREFIX = "room:"


def room_target(target: str) -> str | None:
    """Return the room name of a room-qualified target, else None."""
    if target.startswith(ROOM_TARGET_PREFIX):
        name = target[len(ROOM_TARGET_PREFIX):]
        return name or None
    return None
