# intercom/transport/dispatcher.py
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, get_args

from pydantic import ValidationError

from intercom.domain.common.errors import IntercomError, MalformedFrame, NotJoined
from intercom.domain.chat.handlers import handle_chat, handle_passthrough, handle_typing
from intercom.domain.game.handlers import (
    handle_cancel_circle_sort,
    handle_start_circle_sort,
    handle_submit_circle_sort,
)
from intercom.domain.house.handlers import (
    handle_create_room,
    handle_delete_room,
    handle_join_room,
    handle_leave_room,
)
from intercom.domain.lifecycle.handlers import handle_change_mode, handle_join, handle_leave
from intercom.domain.poll.handlers import (
    handle_cancel_poll,
    handle_end_poll,
    handle_start_poll,
    handle_vote,
)
from intercom.domain.talk.handlers import (
    handle_kill_all_audio,
    handle_signal,
    handle_start_talk,
    handle_stop_talk,
)
from intercom.transport.protocols import (
    parse_incoming,
    IncomingMessage,
    OutError,
    OutgoingEvent,
    UnknownCommand,
    InCancelCircleSort,
    InCancelPoll,
    InChangeMode,
    InChat,
    InCreateRoom,
    InDeleteRoom,
    InEndPoll,
    InJoin,
    InJoinRoom,
    InKillAllAudio,
    InLeave,
    InLeaveRoom,
    InPassthrough,
    InSignal,
    InStartCircleSort,
    InStartPoll,
    InStartTalk,
    InStopTalk,
    InSubmitCircleSort,
    InTyping,
    InVote,
)
from intercom.transport.ws_manager import Conn

logger = logging.getLogger(__name__)

DispatchResult = List[Dict[str, Any]]
# events for the sender, each already a {type, data} dict

# Commands that need a joined session: handler(hub=, sid=, msg=)
_SESSION_ROUTES: Dict[type, Callable[..., List[OutgoingEvent]]] = {
    InChangeMode: handle_change_mode,
    InCreateRoom: handle_create_room,
    InJoinRoom: handle_join_room,
    InLeaveRoom: handle_leave_room,
    InDeleteRoom: handle_delete_room,
    InChat: handle_chat,
    InTyping: handle_typing,
    InPassthrough: handle_passthrough,
    InStartTalk: handle_start_talk,
    InStopTalk: handle_stop_talk,
    InKillAllAudio: handle_kill_all_audio,
    InSignal: handle_signal,
    InStartPoll: handle_start_poll,
    InVote: handle_vote,
    InEndPoll: handle_end_poll,
    InCancelPoll: handle_cancel_poll,
    InStartCircleSort: handle_start_circle_sort,
    InSubmitCircleSort: handle_submit_circle_sort,
    InCancelCircleSort: handle_cancel_circle_sort,
}

# Commands bound to the connection itself: handler(hub=, conn=, msg=)
_CONN_ROUTES: Dict[type, Callable[..., List[OutgoingEvent]]] = {
    InJoin: handle_join,
    InLeave: handle_leave,
}

_unrouted = set(get_args(IncomingMessage)) - set(_SESSION_ROUTES) - set(_CONN_ROUTES)
if _unrouted:
    raise RuntimeError(f"no handler for {sorted(c.__name__ for c in _unrouted)}")


def _dump(events: List[OutgoingEvent]) -> DispatchResult:
    return [e.envelope() for e in events]


def _error(code: str, message: str) -> DispatchResult:
    return [OutError(code=code, message=message).envelope()]


def dispatch_message(*, hub, conn: Conn, raw: Any) -> DispatchResult:
    """
    Transport layer calls this with one decoded JSON frame.
    - Parses + validates it
    - Routes to the domain handler by message class
    - Returns the events meant for the sender only

    Fan-out to other sessions happens inside the handlers through hub.relay,
    so by the time this returns every broadcast is already queued.
    """
    try:
        msg = parse_incoming(raw)
    except UnknownCommand as e:
        logger.warning("%s (session %s)", e, conn.session_id)
        return []
    except MalformedFrame as e:
        logger.warning("malformed frame from %s: %s", conn.session_id, e.message)
        return _error(e.code, e.message)
    except ValidationError as e:
        logger.warning("invalid %s from %s: %d field errors", raw.get("type"), conn.session_id, e.error_count())
        return _error(MalformedFrame.code, str(e))

    try:
        conn_handler = _CONN_ROUTES.get(type(msg))
        if conn_handler is not None:
            return _dump(conn_handler(hub=hub, conn=conn, msg=msg))

        sid = conn.session_id
        if sid is None:
            raise NotJoined("Join a house first")
        return _dump(_SESSION_ROUTES[type(msg)](hub=hub, sid=sid, msg=msg))
    except IntercomError as e:
        logger.info("%s rejected for %s: %s", msg.type, conn.session_id, e.code)
        return _error(e.code, e.message)
