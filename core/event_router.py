"""
Event Router：把 inbound 事件套用到狀態上，並決定要廣播給誰

流程（每個事件都一樣）：
1. 依 type 找到 handler
2. 用 pydantic 驗證 payload（失敗就丟棄，不回錯誤）
3. 修改狀態（Queue / Presence / Meeting / 群組成員）
4. 返回要送出的 Outbound 列表，由 Coordinator 交給 ConnectionRegistry 送出

Router 本身是同步的純狀態轉換，不做任何 I/O。
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
import logging
import time

from pydantic import ValidationError

from config import DEFAULT_DECLINE_MESSAGE
from models import KnockRequest
from schemas import (
    ChatMessage,
    ChatSend,
    DeclineKnock,
    DoorOpened,
    DoorOpenedConfirm,
    EmployeeJoin,
    KnockDeclined,
    KnockReceived,
    KnockSent,
    OpenDoor,
    StatusChange,
)
from core.connection_registry import (
    BOSS_GROUP,
    Channel,
    ConnectionRegistry,
    Outbound,
    employee_group,
    to_channel,
    to_everyone,
    to_group,
)
from core.exceptions import KnockDoorException, KnockInMeeting
from core.meeting_manager import MeetingManager
from core.presence import PresenceStateMachine
from core.request_queue import RequestQueue
from services.wait_estimator import build_queue_updates

logger = logging.getLogger(__name__)


def epoch_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class DoorState:
    """
    Coordinator 獨佔的全部狀態

    不變式：
    - 佇列沒有重複 id
    - 進行中會議的 knock_id 不在佇列裡
    - presence == in-meeting 若且唯若有進行中會議
    """
    default_duration: int = 15
    decline_message: str = DEFAULT_DECLINE_MESSAGE
    queue: RequestQueue = field(default_factory=RequestQueue)
    presence: PresenceStateMachine = field(default_factory=PresenceStateMachine)
    meetings: Optional[MeetingManager] = None

    def __post_init__(self):
        if self.meetings is None:
            self.meetings = MeetingManager(self.default_duration)


def _coerce(data: Any, key: str) -> Any:
    """舊版 client 直接送字串（例如 decline-knock 只送 id），包成 dict"""
    if isinstance(data, str):
        return {key: data}
    return data


class EventRouter:
    """inbound 事件 -> 狀態變更 -> Outbound 列表"""

    def __init__(
        self,
        state: DoorState,
        registry: ConnectionRegistry,
        clock: Callable[[], int] = epoch_ms
    ):
        self.state = state
        self.registry = registry
        self.clock = clock
        self._handlers: Dict[str, Callable[[Channel, Any], List[Outbound]]] = {
            "boss-join": self._boss_join,
            "employee-join": self._employee_join,
            "boss-status-change": self._status_change,
            "knock": self._knock,
            "open-door": self._open_door,
            "decline-knock": self._decline_knock,
            "meeting-ended": self._meeting_ended,
            "boss-chat": self._boss_chat,
            "employee-chat": self._employee_chat,
            "ping": self._ping,
        }

    # ============ 入口 ============

    def route(self, channel: Channel, event: Any) -> List[Outbound]:
        """
        處理一個 client 送來的事件

        參數：
            channel: 送出事件的連線
            event: {"type": str, "data": any}

        返回：
            要送出的 Outbound 列表；事件被丟棄時為空列表
        """
        if not isinstance(event, dict):
            logger.debug(f"Dropped non-object event from {channel}")
            return []

        event_type = event.get("type")
        handler = self._handlers.get(event_type) if isinstance(event_type, str) else None
        if handler is None:
            logger.debug(f"Dropped unknown event type {event_type!r} from {channel}")
            return []

        try:
            return handler(channel, event.get("data"))
        except ValidationError as e:
            logger.debug(f"Dropped malformed {event_type} from {channel}: {e.error_count()} errors")
            return []
        except KnockDoorException as e:
            logger.info(f"Ignored {event_type} from {channel}: {e}")
            return []

    def connect(self, channel: Channel) -> List[Outbound]:
        """新連線：註冊並立刻告知目前的老闆狀態"""
        self.registry.connect(channel)
        logger.info(f"Client connected: {channel}")
        return [to_channel(channel, "boss-status", self.state.presence.status.value)]

    def disconnect(self, channel: Channel) -> List[Outbound]:
        """
        斷線：只取消群組訂閱

        佇列裡的請求不會被移除，老闆仍然可以幫斷線的員工開門
        """
        group = self.registry.disconnect(channel)
        logger.info(f"Client disconnected: {channel} (group={group})")
        return []

    # ============ 共用 ============

    def _presence_message(self) -> Outbound:
        return to_everyone("boss-status", self.state.presence.status.value)

    def _meeting_message(self) -> Outbound:
        info = self.state.meetings.info()
        return to_everyone("meeting-info", info.dump() if info else None)

    def _queue_updates(self) -> List[Outbound]:
        """重新估算並通知佇列裡每一位員工"""
        updates = build_queue_updates(
            self.state.queue.snapshot(),
            self.state.meetings.active,
            self.clock(),
            self.state.default_duration
        )
        return [
            to_group(employee_group(knock_id), "queue-update", update.dump())
            for knock_id, update in updates
        ]

    def _knock_received(self, request: KnockRequest, index: int) -> dict:
        return KnockReceived(
            **request.model_dump(),
            queue_position=index + 1
        ).dump()

    # ============ 加入 ============

    def _boss_join(self, channel: Channel, data: Any) -> List[Outbound]:
        self.registry.subscribe(channel, BOSS_GROUP)
        logger.info(f"Boss joined from {channel}")

        # 重播目前狀態：presence、所有排隊中的請求、進行中的會議
        outbound = [to_channel(channel, "boss-status", self.state.presence.status.value)]
        for index, request in enumerate(self.state.queue):
            outbound.append(
                to_channel(channel, "knock-received", self._knock_received(request, index))
            )

        info = self.state.meetings.info()
        if info is not None:
            outbound.append(to_channel(channel, "meeting-info", info.dump()))
        return outbound

    def _employee_join(self, channel: Channel, data: Any) -> List[Outbound]:
        payload = EmployeeJoin.model_validate(_coerce(data, "employeeId"))
        self.registry.subscribe(channel, employee_group(payload.employee_id))
        logger.info(f"Employee {payload.employee_id} joined from {channel}")

        outbound = [to_channel(channel, "boss-status", self.state.presence.status.value)]

        if payload.employee_id in self.state.queue:
            for knock_id, update in build_queue_updates(
                self.state.queue.snapshot(),
                self.state.meetings.active,
                self.clock(),
                self.state.default_duration
            ):
                if knock_id == payload.employee_id:
                    outbound.append(to_channel(channel, "queue-update", update.dump()))
                    break

        info = self.state.meetings.info()
        if info is not None:
            outbound.append(to_channel(channel, "meeting-info", info.dump()))
        return outbound

    # ============ 狀態 ============

    def _status_change(self, channel: Channel, data: Any) -> List[Outbound]:
        payload = StatusChange.model_validate(_coerce(data, "status"))
        # in-meeting 或會議進行中會拋 InvalidStateTransition，由 route() 丟棄
        self.state.presence.set_by_boss(payload.status)
        return [self._presence_message()]

    # ============ 敲門 / 開門 / 拒絕 ============

    def _knock(self, channel: Channel, data: Any) -> List[Outbound]:
        request = KnockRequest.model_validate(data)

        active = self.state.meetings.active
        if active is not None and active.knock_id == request.id:
            raise KnockInMeeting(request.id)

        length = self.state.queue.enqueue(request)

        logger.info(
            f"Knock from {request.employee_name} (id={request.id}), position {length}"
        )

        outbound = [
            to_group(BOSS_GROUP, "knock-received", self._knock_received(request, length - 1)),
            to_channel(channel, "knock-sent", KnockSent(id=request.id).dump()),
        ]
        outbound.extend(self._queue_updates())
        return outbound

    def _open_door(self, channel: Channel, data: Any) -> List[Outbound]:
        payload = OpenDoor.model_validate(data)

        # 1. 開始會議（請求已不在佇列時什麼都不做）
        meeting = self.state.meetings.start(self.state.queue, payload.knock_id, self.clock())
        if meeting is None:
            return []

        # 2. 老闆狀態跟著變成 in-meeting
        self.state.presence.enter_meeting()

        logger.info(f"Door opened for {meeting.employee_name}, meet link: {payload.meet_link}")

        # 3. 廣播
        outbound = [
            to_group(
                employee_group(payload.knock_id),
                "door-opened",
                DoorOpened(meet_link=payload.meet_link).dump()
            ),
            to_channel(
                channel,
                "door-opened-confirm",
                DoorOpenedConfirm(
                    knock_id=payload.knock_id,
                    meet_link=payload.meet_link,
                    employee_name=meeting.employee_name
                ).dump()
            ),
            self._presence_message(),
            self._meeting_message(),
        ]
        outbound.extend(self._queue_updates())
        return outbound

    def _decline_knock(self, channel: Channel, data: Any) -> List[Outbound]:
        payload = DeclineKnock.model_validate(_coerce(data, "knockId"))

        request = self.state.queue.dequeue(payload.knock_id)
        if request is None:
            logger.debug(f"Knock {payload.knock_id} no longer queued, decline ignored")
            return []

        logger.info(f"Knock declined for {request.employee_name} (id={request.id})")

        outbound = [
            to_group(
                employee_group(payload.knock_id),
                "knock-declined",
                KnockDeclined(message=self.state.decline_message).dump()
            )
        ]
        outbound.extend(self._queue_updates())
        return outbound

    def _meeting_ended(self, channel: Channel, data: Any) -> List[Outbound]:
        ended = self.state.meetings.end()
        if ended is None:
            return []

        self.state.presence.leave_meeting()

        outbound = [self._presence_message(), self._meeting_message()]
        outbound.extend(self._queue_updates())
        return outbound

    # ============ 聊天（無狀態轉發） ============

    def _boss_chat(self, channel: Channel, data: Any) -> List[Outbound]:
        payload = ChatSend.model_validate(data)
        timestamp = self.clock()

        logger.debug(f"Boss -> Employee {payload.knock_id}: {payload.text}")
        return [
            to_group(
                employee_group(payload.knock_id),
                "chat-message",
                ChatMessage(sender="boss", text=payload.text, timestamp=timestamp).dump()
            ),
            to_channel(
                channel,
                "chat-message",
                ChatMessage(
                    sender="boss",
                    text=payload.text,
                    timestamp=timestamp,
                    knock_id=payload.knock_id
                ).dump()
            ),
        ]

    def _employee_chat(self, channel: Channel, data: Any) -> List[Outbound]:
        payload = ChatSend.model_validate(data)
        timestamp = self.clock()

        logger.debug(f"Employee {payload.knock_id} -> Boss: {payload.text}")
        return [
            to_group(
                BOSS_GROUP,
                "chat-message",
                ChatMessage(
                    sender="employee",
                    text=payload.text,
                    timestamp=timestamp,
                    knock_id=payload.knock_id
                ).dump()
            ),
            to_channel(
                channel,
                "chat-message",
                ChatMessage(sender="employee", text=payload.text, timestamp=timestamp).dump()
            ),
        ]

    def _ping(self, channel: Channel, data: Any) -> List[Outbound]:
        return [to_channel(channel, "pong")]
