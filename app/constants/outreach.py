"""Enumerations shared by outreach records, messages and the stage machine."""

from __future__ import annotations

from enum import Enum


class BoardType(str, Enum):
    CAMPAIGNS = "campaigns"
    JOBS = "jobs"


class PipelineStage(str, Enum):
    """Campaign board columns, in board order."""

    TARGETS = "targets"
    CONTACTED = "contacted"
    FOLLOW_UP = "follow_up"
    REPLIED = "replied"
    MEETING = "meeting"
    OPPORTUNITY = "opportunity"
    NO_RESPONSE = "no_response"
    CLOSED = "closed"


class JobStage(str, Enum):
    """Job-application board columns, in board order."""

    WISHLIST = "wishlist"
    APPLIED = "applied"
    INTERVIEW = "interview"
    PENDING_DECISION = "pending_decision"
    OFFER = "offer"
    REJECTED = "rejected"
    ARCHIVED = "archived"


class MessageDirection(str, Enum):
    SENT = "sent"
    RECEIVED = "received"


class OutreachChannel(str, Enum):
    EMAIL = "email"
    LINKEDIN = "linkedin"
    REFERRAL = "referral"
    EVENT = "event"
    COLD_CALL = "cold_call"
    TWITTER = "twitter"
    PHONE = "phone"
    IN_PERSON = "in_person"
    OTHER = "other"


class DeliveryStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    REPLIED = "replied"


class RelationshipGoal(str, Enum):
    NETWORKING = "networking"
    PROSPECTING = "prospecting"
    REFERRAL = "referral"


class WarmthLevel(str, Enum):
    COLD = "cold"
    WARM = "warm"
    HOT = "hot"


class StageChangeSource(str, Enum):
    """Who moved the record: a person, an inbound sync or an outbound send."""

    MANUAL = "manual"
    SYNC = "sync"
    SEND = "send"


class SyncTrigger(str, Enum):
    MANUAL = "manual"
    AUTO = "auto"


STAGES_BY_BOARD: dict[BoardType, tuple[str, ...]] = {
    BoardType.CAMPAIGNS: tuple(s.value for s in PipelineStage),
    BoardType.JOBS: tuple(s.value for s in JobStage),
}

DEFAULT_STAGE_BY_BOARD: dict[BoardType, str] = {
    BoardType.CAMPAIGNS: PipelineStage.TARGETS.value,
    BoardType.JOBS: JobStage.WISHLIST.value,
}
