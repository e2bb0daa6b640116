"""
Request Queue：等待中的敲門請求

規則：
1. 插入順序 = 顯示順序（先敲先排）
2. 不允許重複的 id
3. 老闆可以不照順序處理，所以 dequeue 可以移除任何位置
4. 移除不存在的 id 不是錯誤（開門/拒絕可能跟斷線同時發生）
"""
from typing import Iterator, List, Optional
import logging

from models import KnockRequest
from core.exceptions import InvalidKnock, KnockAlreadyQueued

logger = logging.getLogger(__name__)


class RequestQueue:
    """有序的敲門請求佇列"""

    def __init__(self):
        self._items: List[KnockRequest] = []

    def enqueue(self, request: KnockRequest) -> int:
        """
        把請求加到佇列尾端

        參數：
            request: 敲門請求

        返回：
            加入後的佇列長度

        異常：
            InvalidKnock: id 是空字串
            KnockAlreadyQueued: 同一個 id 已經在佇列裡
        """
        if not request.id:
            raise InvalidKnock("Knock request must have a non-empty id")
        if request.id in self:
            raise KnockAlreadyQueued(request.id)

        self._items.append(request)
        logger.debug(f"Enqueued knock {request.id}, queue length {len(self._items)}")
        return len(self._items)

    def dequeue(self, knock_id: str) -> Optional[KnockRequest]:
        """
        移除第一筆符合 id 的請求（不限於隊首）

        返回：
            被移除的請求；找不到時返回 None（不拋異常）
        """
        index = self.position(knock_id)
        if index is None:
            return None
        return self._items.pop(index)

    def position(self, knock_id: str) -> Optional[int]:
        """0-based index，找不到返回 None"""
        for index, request in enumerate(self._items):
            if request.id == knock_id:
                return index
        return None

    def get(self, knock_id: str) -> Optional[KnockRequest]:
        index = self.position(knock_id)
        return None if index is None else self._items[index]

    def snapshot(self) -> List[KnockRequest]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[KnockRequest]:
        return iter(list(self._items))

    def __contains__(self, knock_id: object) -> bool:
        return any(request.id == knock_id for request in self._items)
