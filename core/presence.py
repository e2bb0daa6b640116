"""
Presence 狀態機：老闆的全域狀態

狀態轉換圖：
    available ⇄ busy ⇄ away        （老闆可以自由切換，任意兩者之間）
    {available, busy, away} → in-meeting   （只能由開門觸發）
    in-meeting → available                 （只能由會議結束觸發）

in-meeting 是衍生狀態：
- client 不能直接設定 in-meeting
- 會議進行中，老闆也不能把狀態改掉（必須先結束會議）
"""
import logging

from models import PresenceStatus
from core.exceptions import InvalidStateTransition

logger = logging.getLogger(__name__)

BOSS_SETTABLE = frozenset({
    PresenceStatus.AVAILABLE,
    PresenceStatus.BUSY,
    PresenceStatus.AWAY,
})


class PresenceStateMachine:
    """持有唯一的 PresenceStatus，所有轉換都經過這裡"""

    def __init__(self, initial: PresenceStatus = PresenceStatus.AVAILABLE):
        if initial not in BOSS_SETTABLE:
            raise InvalidStateTransition(f"Cannot start in {initial.value}")
        self.status = initial

    @property
    def in_meeting(self) -> bool:
        return self.status == PresenceStatus.IN_MEETING

    def set_by_boss(self, status: PresenceStatus) -> PresenceStatus:
        """
        老闆手動切換狀態

        參數：
            status: 新狀態（只能是 available / busy / away）

        返回：
            更新後的狀態

        異常：
            InvalidStateTransition:
                - status 是 in-meeting
                - 目前正在開會
        """
        if status not in BOSS_SETTABLE:
            raise InvalidStateTransition(
                f"Status {status.value} cannot be set directly"
            )
        if self.in_meeting:
            raise InvalidStateTransition(
                f"Cannot change status to {status.value} while a meeting is active"
            )

        old_status = self.status
        self.status = status
        logger.info(f"Presence changed: {old_status.value} -> {status.value}")
        return self.status

    def enter_meeting(self) -> PresenceStatus:
        # 會議被新的開門取代時，已經是 in-meeting，維持不變
        old_status = self.status
        self.status = PresenceStatus.IN_MEETING
        logger.info(f"Presence changed: {old_status.value} -> {self.status.value}")
        return self.status

    def leave_meeting(self) -> PresenceStatus:
        if not self.in_meeting:
            raise InvalidStateTransition(
                f"Cannot leave meeting from {self.status.value}"
            )
        self.status = PresenceStatus.AVAILABLE
        logger.info(f"Presence changed: in-meeting -> {self.status.value}")
        return self.status
