from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List
import logging

logger = logging.getLogger(__name__)

DEFAULT_DECLINE_MESSAGE = "Yönetici şu an görüşme yapamıyor. Lütfen daha sonra tekrar deneyin."


class Settings(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 3012
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]

    # 沒有填 estimatedDuration 的敲門請求，一律以這個分鐘數估算
    default_meeting_duration: int = 15

    # 空字串代表沒有設定會議連結來源，/api/create-meet 會回 503
    meet_link_url: str = "https://meet.google.com/new"

    decline_message: str = DEFAULT_DECLINE_MESSAGE

    # 慢的 client：單次送出超過這個秒數，或 outbox 堆超過這個數量，就斷開
    send_timeout_seconds: float = 5.0
    outbox_size: int = 256

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings():
    return Settings()


def configure_logging(settings: Settings) -> None:
    """
    設定全域 logging

    只在程式進入點呼叫一次，其他模組一律用 logging.getLogger(__name__)
    """
    logging.basicConfig(
        level=settings.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger.debug(f"Logging configured at level {settings.log_level}")
