import pytest

from intercom.domain.poll.engine import clamp_duration


def _pair(connect):
    hm = connect("alice")
    member = connect("bob")
    hm.events()
    return hm, member


def test_poll_scenario_hidden_counts_and_timeout(hub, connect, scheduler):
    hm, member = _pair(connect)
    carol = connect("carol")
    hm.events()
    member.events()

    hm.send("startPoll", question="Color?", options=["Red", "Blue"], duration=5)
    (started,) = member.events()
    assert started["type"] == "pollStarted"
    poll = started["data"]["poll"]
    assert poll["question"] == "Color?"
    assert poll["options"] == [{"text": "Red"}, {"text": "Blue"}]
    assert "totalVoters" not in poll

    key = ("H1", "poll", poll["id"])
    assert scheduler.delay(key) == 5

    hm.send("vote", optionIndex=0)
    member.send("vote", optionIndex=0)
    carol.send("vote", optionIndex=1)
    member.send("vote", optionIndex=0)
    # counts hidden: no updates while voting
    assert hm.of_type("pollUpdate") == []

    scheduler.fire(key)
    for c in (hm, member, carol):
        ended = c.of_type("pollEnded")
        assert len(ended) == 1
    data = ended[0]["data"]
    assert data["reason"] == "timeout"
    assert [(r["text"], r["votes"]) for r in data["results"]] == [("Red", 2), ("Blue", 1)]
    assert hub.polls.active("H1") is None


def test_realtime_updates_and_vote_switching(hub, connect):
    hm, member = _pair(connect)
    hm.send("startPoll", question="Pizza?", options=["Yes", "No", "Maybe"], showRealtime=True)
    hm.events()
    member.events()

    member.send("vote", optionIndex=0)
    (upd,) = hm.of_type("pollUpdate")
    assert [o["votes"] for o in upd["data"]["poll"]["options"]] == [1, 0, 0]

    member.send("vote", optionIndex=2)
    (upd,) = hm.of_type("pollUpdate")
    assert [o["votes"] for o in upd["data"]["poll"]["options"]] == [0, 0, 1]
    assert upd["data"]["poll"]["totalVoters"] == 1


def test_multiple_choice_toggles(hub, connect):
    hm, member = _pair(connect)
    hm.send("startPoll", question="Snacks?", options=["Chips", "Nuts"], multipleChoice=True)

    member.send("vote", optionIndex=0)
    member.send("vote", optionIndex=1)
    poll = hub.polls.active("H1")
    assert poll.tallies() == [1, 1]

    member.send("vote", optionIndex=0)
    assert poll.tallies() == [0, 1]


def test_poll_errors(hub, connect):
    hm, member = _pair(connect)

    assert member.send("vote", optionIndex=0)[0]["data"]["code"] == "NO_ACTIVE_POLL"
    assert member.send("endPoll")[0]["data"]["code"] == "NOT_AUTHORIZED"
    assert member.send("startPoll", question="Q", options=["a", "b"])[0]["data"]["code"] == "NOT_AUTHORIZED"

    hm.send("startPoll", question="Q", options=["a", "b"])
    assert hm.send("startPoll", question="Q2", options=["a", "b"])[0]["data"]["code"] == "ALREADY_ACTIVE"
    assert member.send("vote", optionIndex=5)[0]["data"]["code"] == "INVALID_OPTION"
    assert member.send("vote", optionIndex=-1)[0]["data"]["code"] == "INVALID_OPTION"


def test_end_poll_manually(hub, connect, scheduler):
    hm, member = _pair(connect)
    hm.send("startPoll", question="Q", options=["a", "b"], duration=10)
    member.send("vote", optionIndex=1)
    member.events()

    hm.send("endPoll")
    (ended,) = member.of_type("pollEnded")
    assert ended["data"]["reason"] == "ended"
    assert ended["data"]["results"][1]["votes"] == 1
    assert scheduler.pending() == []


def test_stale_timer_after_cancel_is_a_noop(hub, connect, scheduler):
    hm, member = _pair(connect)
    hm.send("startPoll", question="Q", options=["a", "b"], duration=10)
    key = scheduler.pending()[0]
    callback = scheduler.callback(key)

    hm.send("cancelPoll")
    assert member.of_type("pollCanceled") != []
    hm.send("startPoll", question="Again", options=["c", "d"])
    member.events()

    callback()
    assert member.events() == []
    assert hub.polls.active("H1").question == "Again"


def test_late_joiner_receives_active_poll(hub, connect, tab):
    hm, member = _pair(connect)
    hm.send("startPoll", question="Q", options=["a", "b"])
    member.send("vote", optionIndex=0)

    late = tab()
    replies = late.join("H1", "dave")
    assert [r["type"] for r in replies] == ["joined", "pollStarted"]
    assert "votes" not in replies[1]["data"]["poll"]["options"][0]


@pytest.mark.parametrize("given, expected", [(None, None), (1, 5.0), (30, 30.0), (600, 120.0)])
def test_duration_is_clamped(given, expected):
    assert clamp_duration(given) == expected
