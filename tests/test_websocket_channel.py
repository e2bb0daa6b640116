import asyncio

import pytest

from api.websocket import WebSocketChannel
from core.exceptions import ChannelClosed


class RecordingSocket:
    def __init__(self, gate: asyncio.Event = None):
        self.gate = gate
        self.sent = []

    async def send_json(self, data):
        if self.gate is not None:
            await self.gate.wait()
        self.sent.append(data)


class BrokenSocket:
    async def send_json(self, data):
        raise RuntimeError("socket closed")


def test_send_returns_before_the_socket_write():
    async def scenario():
        gate = asyncio.Event()
        socket = RecordingSocket(gate)
        channel = WebSocketChannel(socket)
        channel.start()

        await asyncio.wait_for(channel.send_json({"n": 1}), timeout=0.5)
        await asyncio.wait_for(channel.send_json({"n": 2}), timeout=0.5)
        assert socket.sent == []

        gate.set()
        while len(socket.sent) < 2:
            await asyncio.sleep(0)
        await channel.close()
        return socket.sent

    assert asyncio.run(scenario()) == [{"n": 1}, {"n": 2}]


def test_full_outbox_closes_channel():
    async def scenario():
        channel = WebSocketChannel(RecordingSocket(asyncio.Event()), max_pending=2)
        channel.start()
        await channel.send_json({"n": 1})
        # the writer takes the first message and hangs on the socket
        while channel.outbox.qsize():
            await asyncio.sleep(0)
        await channel.send_json({"n": 2})
        await channel.send_json({"n": 3})

        with pytest.raises(ChannelClosed):
            await channel.send_json({"n": 4})
        assert channel.closed
        await channel.close()

    asyncio.run(scenario())


def test_failed_write_closes_channel():
    async def scenario():
        channel = WebSocketChannel(BrokenSocket())
        channel.start()
        await channel.send_json({"n": 1})
        while not channel.closed:
            await asyncio.sleep(0)

        with pytest.raises(ChannelClosed):
            await channel.send_json({"n": 2})
        await channel.close()

    asyncio.run(scenario())
