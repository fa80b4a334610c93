import pytest

from sports_arena.realtime import BrowserHub, RealtimeChannel


@pytest.fixture
def channel(fake_socket):
    return RealtimeChannel("http://backend", client=fake_socket)


def test_registers_push_handlers(channel, fake_socket):
    for event in ("connect", "disconnect", "connect_error", "live-score-update", "match-started", "match-ended"):
        assert event in fake_socket.handlers


async def test_emits_are_dropped_until_connected(channel, fake_socket):
    await channel.join_match("m1")
    assert fake_socket.emitted == []

    assert await channel.connect() is True
    await channel.join_match("m1")
    await channel.join_live_scoreboard()
    await channel.leave_match("m1")
    await channel.leave_live_scoreboard()
    assert fake_socket.emitted == [
        ("join-match", "m1"),
        ("join-live-scoreboard", None),
        ("leave-match", "m1"),
        ("leave-live-scoreboard", None),
    ]

    await channel.close()
    assert channel.is_connected is False


async def test_connection_events_track_state(channel, fake_socket):
    await fake_socket.handlers["connect"]()
    assert channel.is_connected
    await fake_socket.handlers["disconnect"]("transport close")
    assert not channel.is_connected


async def test_dispatch_to_sync_and_async_subscribers(channel, fake_socket):
    received = []

    async def on_async(data):
        received.append(("async", data))

    channel.subscribe("match-ended", received.append)
    channel.subscribe("match-ended", on_async)
    await fake_socket.handlers["match-ended"]({"matchId": "m1"})
    assert received == [{"matchId": "m1"}, ("async", {"matchId": "m1"})]

    channel.unsubscribe("match-ended", received.append)
    channel.unsubscribe("match-ended", received.append)


async def test_failing_subscriber_does_not_stop_others(channel):
    received = []

    def broken(data):
        raise RuntimeError("boom")

    channel.subscribe("live-score-update", broken)
    channel.subscribe("live-score-update", received.append)
    await channel.dispatch("live-score-update", {"matchId": "m2"})
    assert received == [{"matchId": "m2"}]


def test_unknown_event_rejected(channel):
    with pytest.raises(ValueError):
        channel.subscribe("half-time", print)


class FakeBrowser:
    def __init__(self, closed=False, broken=False):
        self.closed = closed
        self.broken = broken
        self.sent = []

    async def send_json(self, data):
        if self.broken:
            raise ConnectionResetError("gone")
        self.sent.append(data)

    async def close(self):
        self.closed = True


async def test_browser_hub_broadcast_drops_dead_sockets():
    hub = BrowserHub()
    alive, closed, broken = FakeBrowser(), FakeBrowser(closed=True), FakeBrowser(broken=True)
    for ws in (alive, closed, broken):
        hub.add(ws)

    await hub.broadcast("match-ended", {"matchId": "m1"})
    assert alive.sent == [{"event": "match-ended", "data": {"matchId": "m1"}}]
    assert hub.sockets == {alive}

    await hub.close_all()
    assert alive.closed
    assert hub.sockets == set()
