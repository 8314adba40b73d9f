"""Normalized results returned by mail gateways (adapter → core)."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class ThreadReply(BaseModel):
    """Latest inbound message of a remote thread. `date` is the raw provider value."""

    body: str
    subject: Optional[str] = None
    date: Optional[str] = None


class FetchReplyResult(BaseModel):
    found: bool
    reply: Optional[ThreadReply] = None


class SendReplyResult(BaseModel):
    success: bool
    thread_id: Optional[str] = None
    message_id: Optional[str] = None
