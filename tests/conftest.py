"""
Pytest configuration and fixtures.

Makes the flat top-level modules (config, models, core, ...) importable
and provides in-memory channels plus a controllable clock.
"""
import asyncio
import sys
from pathlib import Path

root_path = Path(__file__).parent.parent
if str(root_path) not in sys.path:
    sys.path.insert(0, str(root_path))

import pytest

from models import KnockRequest
from core.connection_registry import ConnectionRegistry
from core.event_router import DoorState, EventRouter

START_MS = 1_700_000_000_000


class FakeChannel:
    """Records every message instead of writing to a socket."""

    def __init__(self, name: str):
        self.name = name
        self.sent = []
        self.closed = False

    async def send_json(self, data):
        if self.closed:
            raise RuntimeError(f"{self.name} is closed")
        self.sent.append(data)

    def of_type(self, event_type: str):
        return [message["data"] for message in self.sent if message["type"] == event_type]

    def types(self):
        return [message["type"] for message in self.sent]

    def clear(self):
        self.sent.clear()

    def __repr__(self):
        return f"<fake {self.name}>"


class FakeClock:
    def __init__(self, now_ms: int = START_MS):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, minutes: float) -> None:
        self.now_ms += int(minutes * 60_000)


class RouterHarness:
    """Routes one event and delivers the result, like the coordinator does."""

    def __init__(self, state: DoorState, clock: FakeClock):
        self.state = state
        self.clock = clock
        self.registry = ConnectionRegistry()
        self.router = EventRouter(state, self.registry, clock)

    def _deliver(self, outbound):
        async def run():
            for message in outbound:
                await self.registry.deliver(message)
        asyncio.run(run())
        return outbound

    def connect(self, name: str) -> FakeChannel:
        channel = FakeChannel(name)
        self._deliver(self.router.connect(channel))
        return channel

    def send(self, channel, event_type, data=None):
        return self._deliver(self.router.route(channel, {"type": event_type, "data": data}))

    def disconnect(self, channel):
        return self._deliver(self.router.disconnect(channel))

    def boss(self, name: str = "boss") -> FakeChannel:
        channel = self.connect(name)
        self.send(channel, "boss-join")
        channel.clear()
        return channel

    def employee(self, employee_id: str) -> FakeChannel:
        channel = self.connect(f"employee-{employee_id}")
        self.send(channel, "employee-join", employee_id)
        channel.clear()
        return channel

    def assert_invariants(self):
        queued = [request.id for request in self.state.queue]
        assert len(queued) == len(set(queued))
        meeting = self.state.meetings.active
        if meeting is not None:
            assert meeting.knock_id not in queued
        assert self.state.presence.in_meeting == (meeting is not None)


def knock_data(knock_id: str, name: str = None, duration: int = None, timestamp: int = START_MS) -> dict:
    data = {
        "id": knock_id,
        "employeeName": name or f"Employee {knock_id}",
        "message": "hi",
        "timestamp": timestamp,
    }
    if duration is not None:
        data["estimatedDuration"] = duration
    return data


def make_request(knock_id: str, duration: int = None) -> KnockRequest:
    return KnockRequest.model_validate(knock_data(knock_id, duration=duration))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def state():
    return DoorState(default_duration=15)


@pytest.fixture
def harness(state, clock):
    return RouterHarness(state, clock)
