def _trio(connect):
    clients = [connect(sid) for sid in ("alice", "bob", "carol")]
    for c in clients:
        c.events()
    return clients


def test_start_talk_to_all(hub, connect):
    alice, bob, carol = _trio(connect)
    replies = alice.send("startTalk", target="ALL")

    events = alice.events()
    assert [e["type"] for e in events] == ["talkState", "signal"]
    assert events[0]["data"] == {"talking": True, "sessionId": "alice", "name": "Alice", "target": "ALL"}
    offers = events[1]["data"]
    assert offers["signal"] == {"type": "start-offers", "targets": ["bob", "carol"]}
    assert offers["target"] == "ALL"
    assert offers["sessionId"] == "alice"
    assert replies[0] == events[1]

    assert bob.types() == ["talkState"]
    assert carol.types() == ["talkState"]


def test_start_talk_to_one_member_and_room(hub, connect):
    alice, bob, carol = _trio(connect)

    replies = alice.send("startTalk", target="bob")
    assert replies[0]["data"]["signal"]["targets"] == ["bob"]

    replies = alice.send("startTalk", target="nobody")
    assert replies[0]["data"]["signal"]["targets"] == []

    carol.send("joinRoom", roomName="Office")
    alice.send("joinRoom", roomName="Office")
    replies = alice.send("startTalk", target="room:Office")
    assert replies[0]["data"]["signal"]["targets"] == ["carol"]


def test_signal_relay_preserves_sender(hub, connect):
    alice, bob, carol = _trio(connect)
    payload = {"type": "offer", "sdp": "v=0..."}

    assert alice.send("signal", to="bob", signal=payload) == []
    (ev,) = bob.events()
    assert ev == {"type": "signal", "data": {"signal": payload, "from": "alice", "target": "bob"}}
    assert carol.events() == []
    assert alice.events() == []

    bob.send("webrtc-signal", target="alice", signal={"type": "answer"})
    (ev,) = alice.events()
    assert ev["data"]["from"] == "bob"


def test_signal_to_all_excludes_sender(hub, connect):
    alice, bob, carol = _trio(connect)
    alice.send("signal", to="ALL", signal={"candidate": "c1"})
    assert alice.events() == []
    assert bob.events()[0]["data"]["target"] == "ALL"
    assert carol.events()[0]["data"]["from"] == "alice"


def test_signal_never_crosses_houses(hub, connect):
    alice = connect("alice", house="H1")
    eve = connect("eve", house="H2")
    alice.send("signal", to="eve", signal={"type": "offer"})
    assert eve.events() == []


def test_signal_without_recipient(hub, connect):
    alice = connect("alice")
    replies = alice.send("signal", signal={"type": "offer"})
    assert replies[0]["data"]["code"] == "MALFORMED_FRAME"


def test_stop_talk(hub, connect):
    alice, bob, carol = _trio(connect)
    bob.send("stopTalk")
    (ev,) = alice.events()
    assert ev == {"type": "talkState", "data": {"talking": False, "sessionId": "bob"}}


def test_kill_all_audio_is_housemaster_only(hub, connect):
    alice, bob, carol = _trio(connect)

    replies = bob.send("killAllAudio")
    assert replies == [
        {"type": "error", "data": {"code": "NOT_AUTHORIZED", "message": "Only the Housemaster can stop all audio"}}
    ]
    assert alice.events() == []
    assert carol.events() == []

    alice.send("killAllAudio")
    for c in (alice, bob, carol):
        (ev,) = c.events()
        assert ev["type"] == "forceStopTalking"
        assert ev["data"]["by"] == "alice"


def test_null_signal_is_forwarded(hub, connect):
    alice, bob, carol = _trio(connect)
    alice.send("signal", to="bob", signal=None)
    (ev,) = bob.events()
    assert ev == {"type": "signal", "data": {"signal": None, "from": "alice", "target": "bob"}}


def test_all_in_either_field_broadcasts(hub, connect):
    alice, bob, carol = _trio(connect)
    alice.send("signal", to="bob", target="ALL", signal={"candidate": "c2"})
    assert bob.events()[0]["data"]["target"] == "ALL"
    assert carol.events()[0]["data"]["from"] == "alice"
