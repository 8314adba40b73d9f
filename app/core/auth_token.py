"""Access token lookup, called right before every gateway call."""

from __future__ import annotations

from typing import Callable, Optional

from app.config import get_settings

AuthTokenProvider = Callable[[], Optional[str]]


def settings_token_provider() -> Optional[str]:
    """Read GMAIL_ACCESS_TOKEN on every call so a rotated token is picked up."""
    return get_settings().gmail_access_token


def static_token_provider(token: Optional[str]) -> AuthTokenProvider:
    def provider() -> Optional[str]:
        return token

    return provider
