"""
Meeting link provider.

The coordinator never mints links itself: the boss side asks a provider
for a URL first and then sends ``open-door`` with it. The URL is forwarded
verbatim and never inspected or cached.
"""
from typing import Protocol
import logging

from config import Settings
from core.exceptions import MeetLinkUnavailable

logger = logging.getLogger(__name__)


class MeetLinkProvider(Protocol):
    async def create_link(self) -> str:
        ...


class StaticMeetLinkProvider:
    """
    Hands out one configured URL (Google Meet's "new meeting" page by default).

    An empty URL means no provider is configured and every call fails.
    """

    def __init__(self, url: str):
        self.url = url

    async def create_link(self) -> str:
        if not self.url:
            raise MeetLinkUnavailable("Toplantı bağlantısı yapılandırılmamış")
        return self.url


def provider_from_settings(settings: Settings) -> MeetLinkProvider:
    logger.debug(f"Using static meet link provider: {settings.meet_link_url or '<none>'}")
    return StaticMeetLinkProvider(settings.meet_link_url)
