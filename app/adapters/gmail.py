"""
Gmail gateway over the Gmail REST API.

Reads a thread to find the latest inbound message and sends replies into the
same thread. `requests` is blocking, so each call runs in a worker thread and
the event loop only sees the awaitable.
"""

from __future__ import annotations

import asyncio
import base64
import html
import re
from email.mime.text import MIMEText
from typing import Any, Optional

import requests

from app.adapters.base import BaseMailGateway, GatewayError, GatewayErrorKind
from app.infra.logging_config import get_logger
from app.schemas.gateway import FetchReplyResult, SendReplyResult, ThreadReply

logger = get_logger("gmail_gateway")

TIMEOUT_SECONDS = 30
SKIP_LABELS = frozenset({"SENT", "DRAFT"})
RECONNECT_STATUSES = frozenset({401, 403})

_QUOTE_HEADER = re.compile(
    r"^(?:On|Le)\s[^\n]*(?:\n[^\n]*)?(?:wrote|a écrit)\s?:\s*$",
    re.MULTILINE,
)
_ORIGINAL_MESSAGE = re.compile(r"^-{2,}\s*Original Message\s*-{2,}", re.MULTILINE)
_TAG = re.compile(r"<[^>]+>")


def _header(headers: list[dict[str, str]], name: str) -> Optional[str]:
    lname = name.lower()
    for h in headers:
        if h.get("name", "").lower() == lname:
            return h.get("value")
    return None


def _decode_part(data: str) -> str:
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")


def _find_body(payload: dict[str, Any], mime_type: str) -> Optional[str]:
    """Depth-first search for the first part of `mime_type` with data."""
    if payload.get("mimeType") == mime_type and payload.get("body", {}).get("data"):
        return _decode_part(payload["body"]["data"])
    for part in payload.get("parts") or []:
        found = _find_body(part, mime_type)
        if found is not None:
            return found
    return None


def strip_quoted_text(text: str) -> str:
    """Drop the quoted history a mail client appends below a reply."""
    cut = len(text)
    for pattern in (_QUOTE_HEADER, _ORIGINAL_MESSAGE):
        match = pattern.search(text)
        if match:
            cut = min(cut, match.start())
    kept = [line for line in text[:cut].splitlines() if not line.startswith(">")]
    stripped = "\n".join(kept).strip()
    return stripped or text.strip()


def extract_text(message: dict[str, Any]) -> str:
    payload = message.get("payload") or {}
    body = _find_body(payload, "text/plain")
    if body is None:
        html_body = _find_body(payload, "text/html")
        if html_body is not None:
            body = html.unescape(_TAG.sub("", html_body))
    if body is None:
        body = html.unescape(message.get("snippet") or "")
    return strip_quoted_text(body)


def latest_inbound(messages: list[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """Newest message in the thread that the mailbox owner did not send."""
    for message in reversed(messages):
        if not SKIP_LABELS.intersection(message.get("labelIds") or []):
            return message
    return None


class GmailGateway(BaseMailGateway):
    """Gmail REST API gateway. The auth token is an OAuth access token."""

    def __init__(
        self,
        base_url: str = "https://gmail.googleapis.com/gmail/v1",
        user_id: str = "me",
        timeout: float = TIMEOUT_SECONDS,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._user_id = user_id
        self._timeout = timeout

    async def fetch_latest_reply(
        self, thread_id: str, auth_token: Optional[str]
    ) -> FetchReplyResult:
        return await asyncio.to_thread(self._fetch_latest_reply, thread_id, auth_token)

    async def send_reply(
        self,
        thread_id: str,
        auth_token: Optional[str],
        body: str,
        subject: Optional[str] = None,
    ) -> SendReplyResult:
        return await asyncio.to_thread(
            self._send_reply, thread_id, auth_token, body, subject
        )

    # -- blocking implementation -------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self._base_url}/users/{self._user_id}/{path}"

    def _request(
        self, method: str, url: str, auth_token: Optional[str], **kwargs: Any
    ) -> dict[str, Any]:
        if not auth_token:
            raise GatewayError(GatewayErrorKind.NEEDS_RECONNECT, "No Gmail access token")
        headers = {
            "Authorization": f"Bearer {auth_token}",
            "Accept": "application/json",
        }
        try:
            resp = requests.request(
                method, url, headers=headers, timeout=self._timeout, **kwargs
            )
        except requests.RequestException as e:
            raise GatewayError(GatewayErrorKind.UNREACHABLE, str(e)) from e

        if resp.status_code in RECONNECT_STATUSES:
            raise GatewayError(
                GatewayErrorKind.NEEDS_RECONNECT,
                f"HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        if not 200 <= resp.status_code < 300:
            raise GatewayError(
                GatewayErrorKind.REJECTED,
                f"HTTP {resp.status_code}: {resp.text[:500] if resp.text else 'no body'}",
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise GatewayError(GatewayErrorKind.REJECTED, f"Invalid JSON: {e}") from e

    def _get_thread(
        self, thread_id: str, auth_token: Optional[str], fmt: str = "full"
    ) -> dict[str, Any]:
        return self._request(
            "GET",
            self._url(f"threads/{thread_id}"),
            auth_token,
            params={"format": fmt},
        )

    def _fetch_latest_reply(
        self, thread_id: str, auth_token: Optional[str]
    ) -> FetchReplyResult:
        thread = self._get_thread(thread_id, auth_token)
        message = latest_inbound(thread.get("messages") or [])
        if message is None:
            return FetchReplyResult(found=False)

        headers = (message.get("payload") or {}).get("headers") or []
        date = _header(headers, "Date") or message.get("internalDate")
        reply = ThreadReply(
            body=extract_text(message),
            subject=_header(headers, "Subject"),
            date=str(date) if date is not None else None,
        )
        logger.debug("Latest inbound message %s in thread %s", message.get("id"), thread_id)
        return FetchReplyResult(found=True, reply=reply)

    def _send_reply(
        self,
        thread_id: str,
        auth_token: Optional[str],
        body: str,
        subject: Optional[str],
    ) -> SendReplyResult:
        thread = self._get_thread(thread_id, auth_token, fmt="metadata")
        messages = thread.get("messages") or []
        if not messages:
            raise GatewayError(GatewayErrorKind.REJECTED, f"Thread {thread_id} is empty")

        last = messages[-1]
        last_headers = (last.get("payload") or {}).get("headers") or []
        inbound = latest_inbound(messages)
        if inbound is not None:
            inbound_headers = (inbound.get("payload") or {}).get("headers") or []
            to = _header(inbound_headers, "Reply-To") or _header(inbound_headers, "From")
        else:
            to = _header(last_headers, "To")
        if not to:
            raise GatewayError(
                GatewayErrorKind.REJECTED, f"No recipient found in thread {thread_id}"
            )

        thread_subject = subject or _header(last_headers, "Subject") or ""
        if thread_subject and not thread_subject.lower().startswith("re:"):
            thread_subject = f"Re: {thread_subject}"

        mime = MIMEText(body, "plain", "utf-8")
        mime["To"] = to
        mime["Subject"] = thread_subject
        message_id = _header(last_headers, "Message-ID")
        if message_id:
            mime["In-Reply-To"] = message_id
            references = _header(last_headers, "References")
            mime["References"] = f"{references} {message_id}" if references else message_id
        raw = base64.urlsafe_b64encode(mime.as_bytes()).decode()

        sent = self._request(
            "POST",
            self._url("messages/send"),
            auth_token,
            json={"raw": raw, "threadId": thread_id},
        )
        logger.info("Sent reply %s in thread %s", sent.get("id"), thread_id)
        return SendReplyResult(
            success=True,
            thread_id=sent.get("threadId") or thread_id,
            message_id=sent.get("id"),
        )
