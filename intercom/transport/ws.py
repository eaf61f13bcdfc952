# intercom/transport/ws.py
from __future__ import annotations

import asyncio
import ipaddress
import json
import logging
from urllib.parse import urlparse

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from intercom.domain.lifecycle.handlers import handle_disconnect
from intercom.settings import get_settings
from intercom.transport.dispatcher import dispatch_message

logger = logging.getLogger(__name__)

router = APIRouter()


def _is_private_ip(host: str) -> bool:
    """Return True if host is a private IP (192.168.x.x, 10.x.x.x, 172.16-31.x.x)."""
    try:
        ip = ipaddress.ip_address(host)
        return ip.is_private
    except ValueError:
        return False


async def _check_origin_or_close(websocket: WebSocket) -> bool:
    settings = get_settings()
    allowed = {o.strip() for o in settings.WS_ALLOWED_ORIGINS.split(",") if o.strip()}

    origin = websocket.headers.get("origin")
    if origin is None or origin in allowed:
        return True
    if settings.WS_ALLOW_LAN_ORIGINS:
        o = urlparse(origin)
        if _is_private_ip(o.hostname or "") and o.port == 5173:
            return True
    logger.warning("websocket from origin %s refused", origin)
    await websocket.close(code=1008)
    return False


@router.websocket("/ws")
@router.websocket("/api/ws")
async def ws_house(websocket: WebSocket):
    if not await _check_origin_or_close(websocket):
        return

    await websocket.accept()

    hub = websocket.app.state.hub
    wsman = hub.wsman
    conn = wsman.connect(websocket)
    writer = asyncio.create_task(wsman.pump(conn))

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            text = message.get("text")
            if text is None:
                text = (message.get("bytes") or b"").decode("utf-8", errors="replace")
            try:
                raw = json.loads(text)
            except json.JSONDecodeError:
                logger.warning("non-JSON frame from %s dropped", conn.session_id)
                continue

            for e in dispatch_message(hub=hub, conn=conn, raw=raw):
                wsman.send_conn(conn, e)

    except WebSocketDisconnect:
        pass
    finally:
        handle_disconnect(hub=hub, conn=conn)
        wsman.disconnect(websocket)
        writer.cancel()
