"""
等待時間估算服務

純計算邏輯，不修改任何狀態：
等待時間 = 目前會議剩餘時間 + 排在前面的所有請求的預估時長
"""
from typing import List, Optional, Sequence, Tuple
import math

from models import ActiveMeeting, KnockRequest
from schemas import QueueUpdate

MS_PER_MINUTE = 60_000


def request_duration(request: KnockRequest, default_duration: int) -> int:
    """沒填 estimatedDuration 時用預設值（0 分鐘是合法的填寫值）"""
    if request.estimated_duration is None:
        return default_duration
    return request.estimated_duration


def remaining_meeting_minutes(meeting: Optional[ActiveMeeting], now_ms: int) -> float:
    """
    目前會議還剩幾分鐘

    沒有會議返回 0；超時的會議也返回 0（不會是負數）
    """
    if meeting is None:
        return 0.0
    elapsed = (now_ms - meeting.started_at) / MS_PER_MINUTE
    return max(0.0, meeting.estimated_duration - elapsed)


def estimate_wait(
    queue: Sequence[KnockRequest],
    index: int,
    meeting: Optional[ActiveMeeting],
    now_ms: int,
    default_duration: int
) -> int:
    """
    估算佇列中第 index 個請求（0-based）還要等幾分鐘

    規則：
    1. 有會議進行中：加上會議剩餘時間
    2. 加上 index 之前所有請求的預估時長
    3. 四捨五入（0.5 進位）到整數分鐘，最小為 0

    對固定的佇列和會議快照，結果隨 index 單調不減。

    範例（預設 15 分鐘、沒有會議）：
        estimate_wait([a, b, c], 0, None, now, 15) -> 0
        estimate_wait([a, b, c], 2, None, now, 15) -> 30
    """
    remaining = remaining_meeting_minutes(meeting, now_ms)
    ahead = sum(request_duration(request, default_duration) for request in list(queue)[:index])
    return max(0, math.floor(remaining + ahead + 0.5))


def build_queue_updates(
    queue: Sequence[KnockRequest],
    meeting: Optional[ActiveMeeting],
    now_ms: int,
    default_duration: int
) -> List[Tuple[str, QueueUpdate]]:
    """
    為佇列裡的每一個請求建立 QueueUpdate

    返回：
        [(knock_id, QueueUpdate), ...]，順序與佇列相同
    """
    items = list(queue)
    total = len(items)
    return [
        (
            request.id,
            QueueUpdate(
                position=index + 1,
                total_in_queue=total,
                estimated_wait_minutes=estimate_wait(items, index, meeting, now_ms, default_duration)
            )
        )
        for index, request in enumerate(items)
    ]
