"""
Meeting Manager：管理進行中會議的完整生命週期

狀態：NONE（沒有會議）、ACTIVE（有一個會議）

職責：
1. 開門：把請求從佇列移出，建立 ActiveMeeting
2. 結束會議：清除 ActiveMeeting
3. 查詢會議資訊

不負責 Presence 狀態，由 Router 同時呼叫 PresenceStateMachine
"""
from typing import Optional
import logging

from models import ActiveMeeting
from schemas import MeetingInfo
from core.request_queue import RequestQueue
from services.wait_estimator import request_duration

logger = logging.getLogger(__name__)


class MeetingManager:
    """ActiveMeeting 生命週期管理器（最多一個會議）"""

    def __init__(self, default_duration: int):
        self.default_duration = default_duration
        self.active: Optional[ActiveMeeting] = None

    @property
    def is_active(self) -> bool:
        return self.active is not None

    def start(self, queue: RequestQueue, knock_id: str, now_ms: int) -> Optional[ActiveMeeting]:
        """
        開始會議（NONE -> ACTIVE）

        流程：
        1. 從佇列移除請求（不存在就什麼都不做）
        2. 建立 ActiveMeeting，startedAt = now_ms
        3. estimatedDuration 沿用請求的值，沒填就用預設值

        參數：
            queue: 請求佇列
            knock_id: 要開門的請求 id
            now_ms: 現在時間（epoch ms）

        返回：
            新的 ActiveMeeting；請求已不在佇列時返回 None

        注意：
            - 會議進行中再開門，舊的會議紀錄直接被取代
        """
        # 1. 從佇列移除（已被處理過就是 no-op）
        request = queue.dequeue(knock_id)
        if request is None:
            logger.debug(f"Knock {knock_id} no longer queued, meeting not started")
            return None

        if self.active is not None:
            logger.warning(
                f"Meeting with {self.active.employee_name} replaced by {request.employee_name}"
            )

        # 2. 建立會議
        self.active = ActiveMeeting(
            knock_id=request.id,
            employee_name=request.employee_name,
            started_at=now_ms,
            estimated_duration=request_duration(request, self.default_duration)
        )

        logger.info(
            f"Meeting started with {request.employee_name} "
            f"(knock={request.id}, estimated {self.active.estimated_duration} min)"
        )
        return self.active

    def end(self) -> Optional[ActiveMeeting]:
        """
        結束會議（ACTIVE -> NONE）

        返回：
            剛結束的會議；沒有會議時返回 None（no-op）
        """
        ended = self.active
        if ended is None:
            return None

        self.active = None
        logger.info(f"Meeting with {ended.employee_name} ended (knock={ended.knock_id})")
        return ended

    def info(self) -> Optional[MeetingInfo]:
        if self.active is None:
            return None
        return MeetingInfo(
            employee_name=self.active.employee_name,
            knock_id=self.active.knock_id,
            started_at=self.active.started_at,
            estimated_duration=self.active.estimated_duration
        )
