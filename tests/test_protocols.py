import pytest
from pydantic import ValidationError

from intercom.domain.common.errors import MalformedFrame
from intercom.transport.protocols import (
    InJoin,
    InPassthrough,
    InSignal,
    OutChat,
    OutSignal,
    UnknownCommand,
    parse_incoming,
)


def test_parse_join_camel_case():
    msg = parse_incoming(
        {"type": "join", "data": {"houseCode": "H1", "sessionId": "s1", "roomName": "Kitchen", "displayName": "Ann"}}
    )
    assert isinstance(msg, InJoin)
    assert msg.house_code == "H1"
    assert msg.session_id == "s1"
    assert msg.room_name == "Kitchen"
    assert msg.display_name == "Ann"


def test_parse_join_requires_session_id():
    with pytest.raises(ValidationError):
        parse_incoming({"type": "join", "data": {"houseCode": "H1"}})


def test_signal_and_webrtc_signal_share_a_model():
    a = parse_incoming({"type": "signal", "data": {"to": "s2", "signal": {"sdp": "x"}}})
    b = parse_incoming({"type": "webrtc-signal", "data": {"target": "s2", "signal": {"sdp": "x"}}})
    assert isinstance(a, InSignal) and isinstance(b, InSignal)
    assert a.recipient() == "s2"
    assert b.recipient() == "s2"


@pytest.mark.parametrize("data", [{"to": "s2", "target": "ALL"}, {"to": "ALL", "target": "s2"}])
def test_signal_all_wins_over_a_session(data):
    msg = InSignal(signal={}, **data)
    assert msg.recipient() == "ALL"


def test_signal_envelope_keeps_null_payload():
    env = OutSignal(sender="s1", signal=None, target="s2").envelope()
    assert env == {"type": "signal", "data": {"signal": None, "from": "s1", "target": "s2"}}


def test_start_poll_option_bounds():
    msg = parse_incoming({"type": "startPoll", "data": {"question": "Lunch?", "options": ["a", "b"]}})
    assert msg.show_realtime is False
    assert msg.duration is None

    with pytest.raises(ValidationError):
        parse_incoming({"type": "startPoll", "data": {"question": "Lunch?", "options": ["only"]}})
    with pytest.raises(ValidationError):
        parse_incoming({"type": "startPoll", "data": {"question": "Lunch?", "options": [str(i) for i in range(11)]}})


def test_change_mode_rejects_unknown_mode():
    with pytest.raises(ValidationError):
        parse_incoming({"type": "changeMode", "data": {"mode": "party"}})


def test_passthrough_keeps_opaque_fields():
    msg = parse_incoming({"type": "drawPoints", "data": {"points": [[1, 2], [3, 4]], "color": "#f00"}})
    assert isinstance(msg, InPassthrough)
    assert msg.payload() == {"points": [[1, 2], [3, 4]], "color": "#f00"}


def test_unknown_type_is_a_value_error():
    with pytest.raises(UnknownCommand):
        parse_incoming({"type": "does_not_exist", "data": {}})
    with pytest.raises(ValueError):
        parse_incoming({"type": "does_not_exist"})


def test_broken_envelope():
    with pytest.raises(MalformedFrame):
        parse_incoming({"data": {}})
    with pytest.raises(MalformedFrame):
        parse_incoming({"type": "chat", "data": "hello"})
    with pytest.raises(MalformedFrame):
        parse_incoming(["chat"])


def test_envelope_uses_wire_names():
    env = OutChat(sender="s1", sender_name="Ann", target="ALL", text="hi", timestamp=5).envelope()
    assert env == {
        "type": "chat",
        "data": {"sender": "s1", "senderName": "Ann", "target": "ALL", "text": "hi", "timestamp": 5},
    }

    sig = OutSignal(sender="s1", signal={"candidate": "c"}, target="s2").envelope()
    assert sig["data"]["from"] == "s1"
    assert "sessionId" not in sig["data"]
