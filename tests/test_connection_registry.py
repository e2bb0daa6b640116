import asyncio

from core.connection_registry import (
    BOSS_GROUP,
    ConnectionRegistry,
    employee_group,
    to_channel,
    to_everyone,
    to_group,
)

from conftest import FakeChannel


def deliver(registry, outbound):
    return asyncio.run(registry.deliver(outbound))


def test_subscribe_moves_channel_between_groups():
    registry = ConnectionRegistry()
    channel = FakeChannel("c")
    registry.connect(channel)

    registry.subscribe(channel, employee_group("a"))
    registry.subscribe(channel, BOSS_GROUP)

    assert registry.group_of(channel) == BOSS_GROUP
    assert registry.members(employee_group("a")) == []
    assert registry.members(BOSS_GROUP) == [channel]


def test_group_fans_out_to_every_channel():
    registry = ConnectionRegistry()
    first, second, other = FakeChannel("1"), FakeChannel("2"), FakeChannel("3")
    registry.subscribe(first, employee_group("a"))
    registry.subscribe(second, employee_group("a"))
    registry.subscribe(other, employee_group("b"))

    sent = deliver(registry, to_group(employee_group("a"), "hello", {"x": 1}))

    assert sent == 2
    assert first.sent == [{"type": "hello", "data": {"x": 1}}]
    assert second.sent == [{"type": "hello", "data": {"x": 1}}]
    assert other.sent == []


def test_everyone_includes_channels_without_group():
    registry = ConnectionRegistry()
    lurker, boss = FakeChannel("lurker"), FakeChannel("boss")
    registry.connect(lurker)
    registry.subscribe(boss, BOSS_GROUP)

    assert deliver(registry, to_everyone("boss-status", "busy")) == 2


def test_channel_send_skips_disconnected_channel():
    registry = ConnectionRegistry()
    channel = FakeChannel("c")
    registry.connect(channel)
    registry.disconnect(channel)

    assert deliver(registry, to_channel(channel, "pong")) == 0
    assert channel.sent == []


def test_disconnect_drops_empty_group():
    registry = ConnectionRegistry()
    channel = FakeChannel("c")
    registry.subscribe(channel, employee_group("a"))

    assert registry.disconnect(channel) == employee_group("a")
    assert registry.group_count() == 0
    assert registry.connection_count() == 0


def test_failed_send_unregisters_channel():
    registry = ConnectionRegistry()
    alive, dead = FakeChannel("alive"), FakeChannel("dead")
    dead.closed = True
    registry.subscribe(alive, BOSS_GROUP)
    registry.subscribe(dead, BOSS_GROUP)

    assert deliver(registry, to_group(BOSS_GROUP, "hello")) == 1
    assert registry.members(BOSS_GROUP) == [alive]
    assert registry.group_of(dead) is None


def test_send_that_never_completes_unregisters_channel():
    class StalledChannel(FakeChannel):
        async def send_json(self, data):
            await asyncio.Event().wait()

    registry = ConnectionRegistry(send_timeout=0.01)
    stalled, alive = StalledChannel("stalled"), FakeChannel("alive")
    registry.subscribe(stalled, BOSS_GROUP)
    registry.subscribe(alive, BOSS_GROUP)

    assert deliver(registry, to_group(BOSS_GROUP, "hello")) == 1
    assert registry.members(BOSS_GROUP) == [alive]
    assert alive.sent == [{"type": "hello", "data": None}]
