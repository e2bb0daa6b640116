"""
Coordinator：唯一能修改狀態的 actor

並發模型：
- 所有 WebSocket 連線只把事件放進 mailbox（asyncio.Queue）
- 單一個 drain task 依序取出事件，一次處理一個：
  Router 同步修改狀態 -> ConnectionRegistry 送出廣播
- 沒有任何 handler 會在修改狀態途中 await，所以不需要 lock

同一條連線的事件依送出順序處理；不同連線之間只保證被序列化，不保證順序。
"""
from typing import Any, Callable, Optional, Tuple
import asyncio
import logging

from config import Settings, get_settings
from schemas import KnockReceived, StateSnapshot
from core.connection_registry import Channel, ConnectionRegistry
from core.event_router import DoorState, EventRouter, epoch_ms

logger = logging.getLogger(__name__)

CONNECT = "connect"
EVENT = "event"
DISCONNECT = "disconnect"


class Coordinator:
    """持有 DoorState 與 ConnectionRegistry 的單一寫入者"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Callable[[], int] = epoch_ms
    ):
        settings = settings or get_settings()
        self.settings = settings
        self.state = DoorState(
            default_duration=settings.default_meeting_duration,
            decline_message=settings.decline_message
        )
        self.registry = ConnectionRegistry(send_timeout=settings.send_timeout_seconds)
        self.router = EventRouter(self.state, self.registry, clock)
        self._mailbox: "asyncio.Queue[Tuple[str, Channel, Any]]" = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None

    # ============ 生命週期 ============

    async def start(self) -> None:
        if self._worker is not None:
            return
        self._worker = asyncio.create_task(self._drain())
        logger.info("Coordinator started")

    async def stop(self) -> None:
        if self._worker is None:
            return
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        logger.info("Coordinator stopped")

    # ============ 放進 mailbox ============

    async def connect(self, channel: Channel) -> None:
        await self._mailbox.put((CONNECT, channel, None))

    async def submit(self, channel: Channel, event: Any) -> None:
        await self._mailbox.put((EVENT, channel, event))

    async def disconnect(self, channel: Channel) -> None:
        await self._mailbox.put((DISCONNECT, channel, None))

    async def drain(self) -> None:
        """等待 mailbox 裡所有事件都處理完"""
        await self._mailbox.join()

    # ============ 處理 ============

    async def _drain(self) -> None:
        while True:
            kind, channel, event = await self._mailbox.get()
            try:
                await self.process(kind, channel, event)
            except Exception as e:
                # 單一事件失敗不能讓 coordinator 停止
                logger.error(f"Failed to process {kind} from {channel}: {e}", exc_info=True)
            finally:
                self._mailbox.task_done()

    async def process(self, kind: str, channel: Channel, event: Any = None) -> None:
        """
        處理一個 mailbox 項目

        1. Router 同步套用狀態變更，返回 Outbound 列表
        2. 依序送出（同一事件的訊息順序固定）
           每次送出都有 timeout，卡住的連線會被 Registry 移除，不會拖住其他人
        """
        if kind == CONNECT:
            outbound = self.router.connect(channel)
        elif kind == DISCONNECT:
            outbound = self.router.disconnect(channel)
        else:
            outbound = self.router.route(channel, event)

        for message in outbound:
            await self.registry.deliver(message)

    # ============ 查詢 ============

    def snapshot(self) -> StateSnapshot:
        """唯讀的狀態快照（給 /api/state 使用）"""
        return StateSnapshot(
            status=self.state.presence.status,
            queue=[
                KnockReceived(**request.model_dump(), queue_position=index + 1)
                for index, request in enumerate(self.state.queue)
            ],
            meeting=self.state.meetings.info(),
            connections=self.registry.connection_count()
        )
