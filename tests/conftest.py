import random

import pytest
from fastapi.websockets import WebSocketState

from intercom.domain.hub import HouseHub
from intercom.transport.dispatcher import dispatch_message


class FakeWebSocket:
    def __init__(self):
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.sent = []
        self.close_code = None

    async def send_json(self, data):
        self.sent.append(data)

    async def close(self, code=1000):
        self.close_code = code
        self.application_state = WebSocketState.DISCONNECTED


class ManualScheduler:
    """Records timers; tests fire them by key."""

    def __init__(self):
        self.timers = {}

    def schedule(self, key, delay, callback):
        self.timers[key] = (delay, callback)

    def cancel(self, key):
        self.timers.pop(key, None)

    def cancel_house(self, house_code):
        for key in [k for k in self.timers if k[0] == house_code]:
            del self.timers[key]

    def pending(self):
        return list(self.timers)

    def close(self):
        self.timers.clear()

    def delay(self, key):
        return self.timers[key][0]

    def callback(self, key):
        return self.timers[key][1]

    def fire(self, key):
        _, callback = self.timers.pop(key)
        callback()


class Client:
    """One fake browser tab: a socket registered with the hub."""

    def __init__(self, hub):
        self.hub = hub
        self.ws = FakeWebSocket()
        self.conn = hub.wsman.connect(self.ws)
        self.sid = None

    def send(self, type_, **data):
        replies = dispatch_message(hub=self.hub, conn=self.conn, raw={"type": type_, "data": data})
        for e in replies:
            self.hub.wsman.send_conn(self.conn, e)
        return replies

    def join(self, house, sid, name=None, room=None):
        data = {"houseCode": house, "sessionId": sid}
        if name is not None:
            data["displayName"] = name
        if room is not None:
            data["roomName"] = room
        replies = self.send("join", **data)
        if self.conn.session_id == sid:
            self.sid = sid
        return replies

    def events(self):
        out = []
        while not self.conn.outbox.empty():
            item = self.conn.outbox.get_nowait()
            if item is not None:
                out.append(item)
        return out

    def types(self):
        return [e["type"] for e in self.events()]

    def of_type(self, type_):
        return [e for e in self.events() if e["type"] == type_]


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def hub(scheduler):
    return HouseHub(scheduler=scheduler, round_break_sec=5, game_end_delay_sec=5, rng=random.Random(7))


@pytest.fixture
def connect(hub):
    """connect("alice", house="H1") -> joined Client with an empty outbox."""

    def _connect(sid, house="H1", name=None, room=None):
        c = Client(hub)
        c.join(house, sid, name=name or sid.capitalize(), room=room)
        c.events()
        return c

    return _connect


@pytest.fixture
def tab(hub):
    """tab() -> a connected Client that has not joined yet."""

    def _tab():
        return Client(hub)

    return _tab
