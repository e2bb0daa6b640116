"""
領域模型

Knock The Door 只有三種狀態資料：
- PresenceStatus：老闆目前的狀態（全域唯一）
- KnockRequest：員工的敲門請求（排在佇列裡）
- ActiveMeeting：正在進行的會議（最多一個）

所有資料只存在記憶體中，程序結束即消失。
欄位在 wire 上一律使用 camelCase（employeeName、estimatedDuration ...）。
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Python 端用 snake_case，JSON 端用 camelCase"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def dump(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class PresenceStatus(str, Enum):
    AVAILABLE = "available"
    BUSY = "busy"
    AWAY = "away"
    IN_MEETING = "in-meeting"  # 只能由會議生命週期設定


class KnockRequest(CamelModel):
    """
    員工的敲門請求

    建立後就不會被修改：開門或拒絕時整筆從佇列移除。
    estimated_duration 單位是分鐘，沒填時用設定的預設值估算。
    """
    id: str = Field(min_length=1)
    employee_name: str
    message: str
    timestamp: int
    estimated_duration: Optional[int] = Field(default=None, ge=0)


class ActiveMeeting(CamelModel):
    knock_id: str
    employee_name: str
    started_at: int
    estimated_duration: int
