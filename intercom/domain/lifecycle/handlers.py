# intercom/domain/lifecycle/handlers.py
from __future__ import annotations

import logging
from typing import List, Optional

from intercom.domain.house.directory import LeaveOutcome
from intercom.domain.house.rooms import enter_room
from intercom.domain.house.succession import PROMOTION_MESSAGE, require_housemaster
from intercom.transport.protocols import (
    OutgoingEvent,
    OutJoined,
    OutMemberList,
    OutModeChange,
    OutPollStarted,
    OutRoomsUpdate,
    OutSystem,
    InChangeMode,
    InJoin,
    InLeave,
)
from intercom.transport.ws_manager import Conn

logger = logging.getLogger(__name__)

# Events for the sender only; fan-out goes through hub.relay
Result = List[OutgoingEvent]


def handle_join(*, hub, conn: Conn, msg: InJoin) -> Result:
    sid = msg.session_id
    name = (msg.display_name or "").strip() or sid

    # raises DuplicateSession / AlreadyJoined before anything is mutated
    hub.wsman.bind(conn, sid, msg.house_code, name)
    house, is_hm = hub.directory.join(msg.house_code, sid, name)

    entered_room = False
    if msg.room_name and msg.room_name.strip():
        enter_room(house, sid, msg.room_name.strip())
        entered_room = True

    to_sender: Result = [
        OutJoined(
            session_id=sid,
            house_code=house.code,
            is_housemaster=is_hm,
            mode=house.mode,
            members=house.members_view(),
            rooms=house.rooms_view(),
        )
    ]

    # the joiner already has the list from `joined`
    hub.relay.broadcast(house.code, OutMemberList(members=house.members_view()), exclude=sid)
    if entered_room:
        hub.relay.broadcast(house.code, OutRoomsUpdate(rooms=house.rooms_view()), exclude=sid)

    poll = hub.polls.active(house.code)
    if poll is not None:
        to_sender.append(OutPollStarted(poll=poll.view(include_counts=poll.show_realtime)))
    round_event = hub.games.round_event(house.code)
    if round_event is not None:
        to_sender.append(round_event)
    return to_sender


def leave_session(hub, session_id: str) -> Optional[LeaveOutcome]:
    """
    Remove a session from its house and tell whoever is left.
    Shared by explicit leave, disconnect and admin close.
    """
    outcome = hub.directory.leave(session_id)
    if outcome is None:
        return None

    code = outcome.house.code
    if outcome.house_deleted:
        hub.drop_house_activities(code)
        return outcome

    house = outcome.house
    if outcome.new_housemaster is not None:
        hub.relay.send_to(outcome.new_housemaster, OutSystem(message=PROMOTION_MESSAGE))
    hub.relay.broadcast(code, OutMemberList(members=house.members_view()))
    if outcome.rooms_changed:
        hub.relay.broadcast(code, OutRoomsUpdate(rooms=house.rooms_view()))
    hub.games.member_left(code)
    return outcome


def handle_leave(*, hub, conn: Conn, msg: InLeave) -> Result:
    sid = hub.wsman.unbind(conn)
    if sid is None:
        return []
    leave_session(hub, sid)
    logger.info("%s left explicitly", sid)
    return []


def handle_disconnect(*, hub, conn: Conn) -> None:
    sid = hub.wsman.unbind(conn)
    if sid is None:
        return
    logger.info("%s disconnected", sid)
    leave_session(hub, sid)


def handle_change_mode(*, hub, sid: str, msg: InChangeMode) -> Result:
    house = hub.house_for(sid)
    require_housemaster(house, sid, "change the mode")
    house.mode = msg.mode
    logger.info("house %s: mode -> %s", house.code, msg.mode)
    hub.relay.broadcast(house.code, OutModeChange(mode=msg.mode))
    return []
