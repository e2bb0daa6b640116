"""
Meeting API Endpoints

職責：
1. 幫老闆取得會議連結（開門之前呼叫）
2. 提供唯讀的狀態快照（輪詢 / 除錯用）
"""
from fastapi import APIRouter, Depends, HTTPException
import logging

from schemas import MeetLinkResponse, StateSnapshot
from core.coordinator import Coordinator
from core.exceptions import MeetLinkUnavailable
from services.meet_link_service import MeetLinkProvider
from api.deps import get_coordinator, get_meet_link_provider

router = APIRouter(prefix="/api", tags=["meetings"])
logger = logging.getLogger(__name__)


@router.post("/create-meet", response_model=MeetLinkResponse)
async def create_meet(provider: MeetLinkProvider = Depends(get_meet_link_provider)):
    """
    取得會議連結（老闆 endpoint）

    失敗時返回 503 和可以直接顯示給老闆的訊息。
    這時候還沒有任何狀態被修改，請求仍然留在佇列裡。
    """
    try:
        meet_link = await provider.create_link()
        return MeetLinkResponse(meet_link=meet_link)

    except MeetLinkUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to create meet link: {e}", exc_info=True)
        raise HTTPException(status_code=503, detail="Toplantı oluşturulamadı")


@router.get("/state", response_model=StateSnapshot)
def get_state(coordinator: Coordinator = Depends(get_coordinator)):
    """
    目前狀態快照

    返回：
        - status: 老闆狀態
        - queue: 排隊中的請求（含 queuePosition）
        - meeting: 進行中的會議，沒有則為 null
        - connections: 目前連線數
    """
    return coordinator.snapshot()
