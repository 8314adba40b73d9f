"""Mail provider gateways."""

from app.adapters.base import BaseMailGateway, GatewayError, GatewayErrorKind
from app.adapters.gmail import GmailGateway

__all__ = ["BaseMailGateway", "GatewayError", "GatewayErrorKind", "GmailGateway"]
