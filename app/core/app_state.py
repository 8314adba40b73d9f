from __future__ import annotations

from app.adapters.base import BaseMailGateway
from app.adapters.gmail import GmailGateway
from app.config import get_settings
from app.core.auth_token import AuthTokenProvider, settings_token_provider
from app.core.single_flight import InFlightRegistry


def _default_gateway() -> BaseMailGateway:
    settings = get_settings()
    return GmailGateway(
        base_url=settings.gmail_api_base_url,
        user_id=settings.gmail_user_id,
        timeout=settings.gateway_timeout_seconds,
    )


class AppState:
    """Process-wide collaborators shared by requests and background syncs."""

    def __init__(self) -> None:
        self.sync_guard = InFlightRegistry("sync")
        self.send_guard = InFlightRegistry("send")
        self.gateway: BaseMailGateway = _default_gateway()
        self.token_provider: AuthTokenProvider = settings_token_provider


state = AppState()
