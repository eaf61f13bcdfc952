# intercom/domain/house/succession.py
from __future__ import annotations

import logging
from typing import Optional

from intercom.domain.common.errors import NotAuthorized
from intercom.domain.house.models import House

logger = logging.getLogger(__name__)

PROMOTION_MESSAGE = "You are now the Housemaster!"


def on_join(house: House, session_id: str) -> bool:
    """First member of an empty house becomes housemaster. Returns True if it did."""
    if house.housemaster_id is None:
        house.housemaster_id = session_id
        return True
    return False


def on_leave(house: House, session_id: str) -> Optional[str]:
    """
    Call after `session_id` was removed from house.members.
    Returns the newly promoted session id, if any.
    The successor is the earliest remaining member in join order.
    """
    if house.housemaster_id != session_id:
        return None
    if not house.members:
        house.housemaster_id = None
        return None
    successor = next(iter(house.members))
    house.housemaster_id = successor
    logger.info("house %s: housemaster %s -> %s", house.code, session_id, successor)
    return successor


def require_housemaster(house: House, session_id: str, action: str) -> None:
    if not house.is_housemaster(session_id):
        logger.warning("house %s: %s refused %s (not housemaster)", house.code, session_id, action)
        raise NotAuthorized(f"Only the Housemaster can {action}")
