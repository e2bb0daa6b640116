"""FastAPI dependencies shared by the routers."""
from fastapi import Request

from core.coordinator import Coordinator
from services.meet_link_service import MeetLinkProvider


def get_coordinator(request: Request) -> Coordinator:
    return request.app.state.coordinator


def get_meet_link_provider(request: Request) -> MeetLinkProvider:
    return request.app.state.meet_link_provider
