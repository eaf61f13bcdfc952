# intercom/transport/ws_manager.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fastapi import WebSocket
from fastapi.websockets import WebSocketState

from intercom.domain.common.errors import AlreadyJoined, DuplicateSession

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Conn:
    ws: WebSocket
    outbox: "asyncio.Queue[Optional[dict]]" = field(default_factory=asyncio.Queue)
    session_id: Optional[str] = None
    house_code: Optional[str] = None
    display_name: str = ""
    closed: bool = False


class WSManager:
    """
    In-memory connection registry.
    - session_id -> Conn
    - websocket -> Conn (disconnects arrive keyed by socket)
    Sends are enqueued on the connection's outbox and written by `pump`,
    so callers never await while shared state is half-updated.
    Transport-only: no house rules.
    """
    def __init__(self) -> None:
        self._by_session: Dict[str, Conn] = {}
        self._by_socket: Dict[Any, Conn] = {}

    # ----------------------------
    # Registration
    # ----------------------------
    def connect(self, ws: WebSocket) -> Conn:
        conn = Conn(ws=ws)
        self._by_socket[ws] = conn
        return conn

    def bind(self, conn: Conn, session_id: str, house_code: str, display_name: str) -> None:
        if conn.session_id is not None:
            raise AlreadyJoined(f"Connection already joined as {conn.session_id}")
        if session_id in self._by_session:
            raise DuplicateSession(f"Session id {session_id} is already in use")
        conn.session_id = session_id
        conn.house_code = house_code
        conn.display_name = display_name
        self._by_session[session_id] = conn

    def unbind(self, conn: Conn) -> Optional[str]:
        sid = conn.session_id
        if sid is None:
            return None
        if self._by_session.get(sid) is conn:
            self._by_session.pop(sid, None)
        conn.session_id = None
        conn.house_code = None
        return sid

    def disconnect(self, ws: WebSocket) -> Optional[Conn]:
        """Forget the socket and stop its writer. Session binding is left to the caller."""
        conn = self._by_socket.pop(ws, None)
        if conn is None:
            return None
        conn.closed = True
        conn.outbox.put_nowait(None)
        return conn

    # ----------------------------
    # Lookups (O(1))
    # ----------------------------
    def get(self, session_id: str) -> Optional[Conn]:
        return self._by_session.get(session_id)

    def session_of(self, ws: WebSocket) -> Optional[str]:
        conn = self._by_socket.get(ws)
        return conn.session_id if conn else None

    def session_ids(self) -> List[str]:
        return list(self._by_session)

    def __len__(self) -> int:
        return len(self._by_socket)

    # ----------------------------
    # Delivery
    # ----------------------------
    @staticmethod
    def is_open(conn: Conn) -> bool:
        if conn.closed:
            return False
        return (
            conn.ws.client_state == WebSocketState.CONNECTED
            and conn.ws.application_state == WebSocketState.CONNECTED
        )

    def send_conn(self, conn: Conn, payload: dict) -> bool:
        if not self.is_open(conn):
            logger.debug("drop %s for closed transport %s", payload.get("type"), conn.session_id)
            return False
        conn.outbox.put_nowait(payload)
        return True

    def send(self, session_id: str, payload: dict) -> bool:
        conn = self._by_session.get(session_id)
        if conn is None:
            return False
        return self.send_conn(conn, payload)

    async def pump(self, conn: Conn) -> None:
        """Writer loop for one connection; ends on the None sentinel or a dead socket."""
        while True:
            payload = await conn.outbox.get()
            if payload is None:
                return
            try:
                await conn.ws.send_json(payload)
            except Exception:
                # socket is dead; ws.py runs the leave path on disconnect
                logger.debug("send failed for %s, stopping writer", conn.session_id)
                conn.closed = True
                return

    async def close_conn(self, conn: Conn, code: int = 4000) -> None:
        """
        Close one connection from the server side.
        The receive loop in ws.py observes the close and finishes cleanup.
        """
        conn.closed = True
        try:
            await conn.ws.close(code=code)
        except RuntimeError:
            logger.debug("close failed for %s, already closed", conn.session_id)

    async def close_session(self, session_id: str, code: int = 4000) -> None:
        conn = self._by_session.get(session_id)
        if conn is not None:
            await self.close_conn(conn, code=code)
