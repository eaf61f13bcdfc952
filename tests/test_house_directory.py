import pytest

from intercom.domain.common.errors import NotAuthorized, RoomNotFound
from intercom.domain.house import rooms, succession
from intercom.domain.house.directory import HouseDirectory


def test_first_joiner_is_housemaster():
    d = HouseDirectory()
    house, is_hm = d.join("H1", "a", "Alice")
    assert is_hm is True
    _, is_hm_b = d.join("H1", "b", "Bob")
    assert is_hm_b is False
    assert house.housemaster_id == "a"
    assert d.house_of("b") is house


def test_succession_promotes_earliest_remaining_member():
    d = HouseDirectory()
    for sid in ("a", "b", "c"):
        d.join("H1", sid, sid.upper())

    out = d.leave("a")
    assert out.new_housemaster == "b"
    assert out.house_deleted is False
    assert out.house.housemaster_id == "b"
    assert list(out.house.members) == ["b", "c"]

    # non-housemaster leaving changes nothing
    out = d.leave("c")
    assert out.new_housemaster is None
    assert out.house.housemaster_id == "b"


def test_empty_house_is_deleted_and_recreated_fresh():
    d = HouseDirectory()
    house, _ = d.join("H1", "a", "Alice")
    house.mode = "free"

    out = d.leave("a")
    assert out.house_deleted is True
    assert d.get("H1") is None
    assert len(d) == 0

    fresh, is_hm = d.join("H1", "z", "Zed")
    assert fresh is not house
    assert fresh.mode == "announcement"
    assert is_hm is True


def test_leave_unknown_session():
    assert HouseDirectory().leave("ghost") is None


def test_temporary_room_removed_when_empty():
    d = HouseDirectory()
    house, _ = d.join("H1", "a", "Alice")
    d.join("H1", "b", "Bob")

    rooms.enter_room(house, "a", "Kitchen")
    rooms.enter_room(house, "b", "Kitchen")
    assert rooms.room_occupants(house, "Kitchen") == ["a", "b"]

    rooms.enter_room(house, "a", "Garden")
    assert rooms.room_occupants(house, "Kitchen") == ["b"]
    assert house.members["a"].room == "Garden"

    out = d.leave("b")
    assert out.rooms_changed is True
    assert "Kitchen" not in house.rooms


def test_permanent_room_only_for_housemaster():
    d = HouseDirectory()
    house, _ = d.join("H1", "a", "Alice")
    d.join("H1", "b", "Bob")

    r = rooms.create_room(house, "b", "Attic", permanent=True)
    assert r.permanent is False

    r = rooms.create_room(house, "a", "Hall", permanent=True)
    assert r.permanent is True
    rooms.enter_room(house, "b", "Hall")
    rooms.exit_room(house, "b")
    assert "Hall" in house.rooms


def test_delete_room_rules():
    d = HouseDirectory()
    house, _ = d.join("H1", "a", "Alice")
    d.join("H1", "b", "Bob")
    rooms.enter_room(house, "b", "Kitchen")

    with pytest.raises(NotAuthorized):
        rooms.delete_room(house, "b", "Kitchen")
    with pytest.raises(RoomNotFound):
        rooms.delete_room(house, "a", "Nowhere")

    assert rooms.delete_room(house, "a", "Kitchen") == ["b"]
    assert house.members["b"].room is None


def test_require_housemaster():
    d = HouseDirectory()
    house, _ = d.join("H1", "a", "Alice")
    d.join("H1", "b", "Bob")
    succession.require_housemaster(house, "a", "do it")
    with pytest.raises(NotAuthorized) as exc:
        succession.require_housemaster(house, "b", "change the mode")
    assert exc.value.message == "Only the Housemaster can change the mode"
