# intercom/transport/admin.py
from __future__ import annotations

import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from intercom.domain.lifecycle.handlers import leave_session

logger = logging.getLogger(__name__)


def require_admin(request: Request, x_admin_password: Optional[str] = Header(default=None)) -> None:
    expected = request.app.state.settings.ADMIN_PASSWORD
    if not expected:
        raise HTTPException(status_code=403, detail="Admin access disabled")
    given = x_admin_password or ""
    if not secrets.compare_digest(given.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("admin request with wrong password from %s", request.client.host if request.client else "?")
        raise HTTPException(status_code=401, detail="Invalid admin password")


router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/houses")
async def list_houses(request: Request):
    """
    List all live houses (debug/admin).
    """
    hub = request.app.state.hub
    houses = []
    for code in sorted(hub.directory.codes()):
        house = hub.directory.get(code)
        if house is None:
            continue
        poll = hub.polls.active(code)
        game = hub.games.active(code)
        houses.append(
            {
                "house_code": code,
                "mode": house.mode,
                "housemaster": house.housemaster_id,
                "members": len(house.members),
                "rooms": len(house.rooms),
                "poll_active": poll is not None,
                "game_active": game is not None,
                "created_at": house.created_at,
            }
        )
    return {"houses": houses, "connections": len(hub.wsman)}


@router.post("/houses/{house_code}/close")
async def close_house(house_code: str, request: Request):
    """
    Force close a house: every member leaves and its socket is closed.
    """
    hub = request.app.state.hub
    house = hub.directory.get(house_code)
    if house is None:
        raise HTTPException(status_code=404, detail="House not found")

    # unbind everyone before leaving, so nobody is told about the teardown
    sids = house.member_ids()
    conns = []
    for sid in sids:
        conn = hub.wsman.get(sid)
        if conn is not None:
            hub.wsman.unbind(conn)
            conns.append(conn)
    for sid in sids:
        leave_session(hub, sid)

    for conn in conns:
        await hub.wsman.close_conn(conn, code=4000)

    logger.info("house %s closed by admin, %d sockets", house_code, len(conns))
    return {"ok": True, "closed": len(conns)}
