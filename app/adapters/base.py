"""
Mail gateway interface.

Gateways wrap a mail provider's thread API and expose the two operations
the synchronizer needs. All provider failures surface as GatewayError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from app.schemas.gateway import FetchReplyResult, SendReplyResult


class GatewayErrorKind(str, Enum):
    NEEDS_RECONNECT = "needs_reconnect"  # token missing, expired or revoked
    UNREACHABLE = "unreachable"  # network error or timeout
    REJECTED = "rejected"  # provider answered with a non-success status


class GatewayError(Exception):
    """Failure talking to the mail provider."""

    def __init__(
        self,
        kind: GatewayErrorKind,
        detail: str = "",
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(detail or kind.value)
        self.kind = kind
        self.detail = detail
        self.status_code = status_code

    @property
    def needs_reconnect(self) -> bool:
        return self.kind is GatewayErrorKind.NEEDS_RECONNECT


class BaseMailGateway(ABC):
    """Contract for mail providers. New providers implement this interface."""

    @abstractmethod
    async def fetch_latest_reply(
        self, thread_id: str, auth_token: Optional[str]
    ) -> FetchReplyResult:
        """Return the latest inbound message of the thread. Safe to call repeatedly."""
        ...

    @abstractmethod
    async def send_reply(
        self,
        thread_id: str,
        auth_token: Optional[str],
        body: str,
        subject: Optional[str] = None,
    ) -> SendReplyResult:
        """Send `body` as a reply in the thread. Each call may send a real email."""
        ...
