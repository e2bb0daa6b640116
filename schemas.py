"""
WebSocket / HTTP 訊息格式

Inbound：client 送進來的 payload（驗證失敗就直接丟棄）
Outbound：server 廣播出去的 payload
"""
from typing import List, Literal, Optional

from pydantic import Field

from models import CamelModel, KnockRequest, PresenceStatus


# ============ Inbound ============

class EmployeeJoin(CamelModel):
    employee_id: str = Field(min_length=1)


class StatusChange(CamelModel):
    status: PresenceStatus


class OpenDoor(CamelModel):
    knock_id: str = Field(min_length=1)
    meet_link: str = Field(min_length=1)


class DeclineKnock(CamelModel):
    knock_id: str = Field(min_length=1)


class ChatSend(CamelModel):
    knock_id: str = Field(min_length=1)
    text: str


# ============ Outbound ============

class KnockReceived(KnockRequest):
    queue_position: int = Field(ge=1)


class KnockSent(CamelModel):
    id: str
    status: Literal["waiting"] = "waiting"


class QueueUpdate(CamelModel):
    position: int = Field(ge=1)
    total_in_queue: int = Field(ge=0)
    estimated_wait_minutes: int = Field(ge=0)


class MeetingInfo(CamelModel):
    employee_name: str
    knock_id: Optional[str] = None
    started_at: Optional[int] = None
    estimated_duration: Optional[int] = None


class DoorOpened(CamelModel):
    meet_link: str


class DoorOpenedConfirm(CamelModel):
    knock_id: str
    meet_link: str
    employee_name: str


class KnockDeclined(CamelModel):
    message: str


class ChatMessage(CamelModel):
    sender: Literal["boss", "employee"] = Field(alias="from")
    text: str
    timestamp: int
    knock_id: Optional[str] = None


# ============ HTTP ============

class MeetLinkResponse(CamelModel):
    meet_link: str


class StateSnapshot(CamelModel):
    status: PresenceStatus
    queue: List[KnockReceived]
    meeting: Optional[MeetingInfo] = None
    connections: int = 0
