# intercom/domain/talk/handlers.py
from __future__ import annotations

import logging
from typing import List

from intercom.domain.common.errors import MalformedFrame
from intercom.domain.common.types import TARGET_ALL
from intercom.domain.house.succession import require_housemaster
from intercom.transport.protocols import (
    OutgoingEvent,
    OutForceStopTalking,
    OutSignal,
    OutTalkState,
    InKillAllAudio,
    InSignal,
    InStartTalk,
    InStopTalk,
)

logger = logging.getLogger(__name__)

Result = List[OutgoingEvent]

FORCE_STOP_REASON = "The Housemaster stopped all audio"


def handle_start_talk(*, hub, sid: str, msg: InStartTalk) -> Result:
    """
    Announce the talker, then hand the initiator the peers it must
    send WebRTC offers to.
    """
    house = hub.house_for(sid)
    member = house.members[sid]
    hub.relay.broadcast(
        house.code,
        OutTalkState(talking=True, session_id=sid, name=member.name, target=msg.target),
    )
    targets = hub.relay.resolve_targets(house.code, sid, msg.target)
    logger.debug("house %s: %s talks to %s (%d peers)", house.code, sid, msg.target, len(targets))
    return [
        OutSignal(
            signal={"type": "start-offers", "targets": targets},
            target=msg.target,
            session_id=sid,
        )
    ]


def handle_stop_talk(*, hub, sid: str, msg: InStopTalk) -> Result:
    house = hub.house_for(sid)
    hub.relay.broadcast(house.code, OutTalkState(talking=False, session_id=sid))
    return []


def handle_kill_all_audio(*, hub, sid: str, msg: InKillAllAudio) -> Result:
    house = hub.house_for(sid)
    require_housemaster(house, sid, "stop all audio")
    logger.info("house %s: all audio stopped by %s", house.code, sid)
    hub.relay.broadcast(house.code, OutForceStopTalking(reason=FORCE_STOP_REASON, by=sid))
    return []


def handle_signal(*, hub, sid: str, msg: InSignal) -> Result:
    house = hub.house_for(sid)
    to = msg.recipient()
    if not to:
        raise MalformedFrame("signal needs `to` or `target`")

    if to == TARGET_ALL:
        hub.relay.broadcast(
            house.code,
            OutSignal(sender=sid, signal=msg.signal, target=TARGET_ALL),
            exclude=sid,
        )
        return []

    if to not in house.members:
        # never cross house boundaries
        logger.debug("house %s: signal from %s to unknown %s dropped", house.code, sid, to)
        return []
    hub.relay.send_to(to, OutSignal(sender=sid, signal=msg.signal, target=to))
    return []
