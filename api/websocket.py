"""
WebSocket Endpoint

職責：
1. 接受連線，包成 Channel 交給 Coordinator
2. 把每個收到的 JSON 事件放進 Coordinator 的 mailbox
3. 斷線時通知 Coordinator（佇列裡的請求保留）

這一層不碰任何狀態，所有邏輯都在 core/event_router.py
"""
from fastapi import APIRouter, WebSocket
from typing import Optional
from uuid import uuid4
import asyncio
import json
import logging

from core.exceptions import ChannelClosed

router = APIRouter(tags=["websocket"])
logger = logging.getLogger(__name__)

DEFAULT_OUTBOX_SIZE = 256


class WebSocketChannel:
    """
    一條 WebSocket 連線（同一位員工重連會是新的 Channel）

    送出的訊息先放進自己的 outbox，由專屬的 writer task 依序寫出：
    - send_json 只做 put_nowait，Coordinator 永遠不會被慢的 client 卡住
    - 同一條連線的訊息順序不變
    - outbox 滿了或寫入失敗時，send_json 拋 ChannelClosed，Registry 會移除這條連線
    """

    def __init__(self, websocket: WebSocket, max_pending: int = DEFAULT_OUTBOX_SIZE):
        self.websocket = websocket
        self.channel_id = uuid4().hex[:8]
        self.outbox: "asyncio.Queue[dict]" = asyncio.Queue(maxsize=max_pending)
        self.closed = False
        self._writer: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._writer is None:
            self._writer = asyncio.create_task(self._write())

    async def _write(self) -> None:
        while True:
            data = await self.outbox.get()
            try:
                await self.websocket.send_json(data)
            except Exception as e:
                logger.debug(f"Writer for {self} stopped: {e}")
                self.closed = True
                return

    async def send_json(self, data) -> None:
        if self.closed:
            raise ChannelClosed(f"{self} is closed")
        try:
            self.outbox.put_nowait(data)
        except asyncio.QueueFull:
            self.closed = True
            raise ChannelClosed(f"{self} outbox is full")

    async def close(self) -> None:
        self.closed = True
        if self._writer is None:
            return
        self._writer.cancel()
        try:
            await self._writer
        except asyncio.CancelledError:
            pass
        self._writer = None

    def __repr__(self) -> str:
        return f"<channel {self.channel_id}>"


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    即時通道

    訊息格式（雙向）：{"type": "...", "data": ...}

    Client -> Server：
    - boss-join / employee-join
    - boss-status-change
    - knock / open-door / decline-knock / meeting-ended
    - boss-chat / employee-chat
    - ping

    Server -> Client：
    - boss-status / meeting-info / queue-update
    - knock-received / knock-sent / knock-declined
    - door-opened / door-opened-confirm
    - chat-message / pong
    """
    coordinator = websocket.app.state.coordinator

    await websocket.accept()
    channel = WebSocketChannel(websocket, max_pending=coordinator.settings.outbox_size)
    channel.start()
    await coordinator.connect(channel)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                return

            # binary frame 也是格式錯誤，丟棄即可
            text = message.get("text")
            if text is None:
                logger.debug(f"Dropped non-text frame from {channel}")
                continue

            try:
                event = json.loads(text)
            except ValueError:
                logger.debug(f"Dropped non-JSON frame from {channel}")
                continue
            await coordinator.submit(channel, event)

    finally:
        await coordinator.disconnect(channel)
        await channel.close()
