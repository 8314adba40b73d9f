"""Pydantic schemas for outreach records, log entries and stage history."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from app.constants.outreach import (
    BoardType,
    DEFAULT_STAGE_BY_BOARD,
    DeliveryStatus,
    MessageDirection,
    OutreachChannel,
    RelationshipGoal,
    STAGES_BY_BOARD,
    WarmthLevel,
)

# -----------------------------------------------------------------------------
# Outreach record schemas
# -----------------------------------------------------------------------------


class OutreachRecordBase(BaseModel):
    """Fields a user can edit on a record."""

    company_name: str = Field(min_length=1, max_length=256)
    position: Optional[str] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_role: Optional[str] = None
    contact_linkedin: Optional[str] = None
    relationship_goal: Optional[RelationshipGoal] = None
    warmth_level: Optional[WarmthLevel] = None
    notes: Optional[str] = None
    gmail_thread_id: Optional[str] = None
    next_follow_up_at: Optional[datetime] = None


class OutreachRecordCreate(OutreachRecordBase):
    """Schema for creating a record. Stage defaults to the board's first column."""

    board_type: BoardType = BoardType.CAMPAIGNS
    stage: Optional[str] = None

    @model_validator(mode="after")
    def default_and_check_stage(self) -> "OutreachRecordCreate":
        if self.stage is None:
            self.stage = DEFAULT_STAGE_BY_BOARD[self.board_type]
        elif self.stage not in STAGES_BY_BOARD[self.board_type]:
            raise ValueError(
                f"Stage {self.stage!r} is not valid for board {self.board_type.value}"
            )
        return self


class OutreachRecordUpdate(BaseModel):
    """Schema for a manual edit. All fields optional; stage is checked by the service."""

    company_name: Optional[str] = Field(default=None, min_length=1, max_length=256)
    position: Optional[str] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_role: Optional[str] = None
    contact_linkedin: Optional[str] = None
    relationship_goal: Optional[RelationshipGoal] = None
    warmth_level: Optional[WarmthLevel] = None
    notes: Optional[str] = None
    gmail_thread_id: Optional[str] = None
    next_follow_up_at: Optional[datetime] = None
    stage: Optional[str] = None


class OutreachRecordRead(OutreachRecordBase):
    id: UUID
    board_type: BoardType
    stage: str
    last_contacted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# -----------------------------------------------------------------------------
# Conversation log schemas
# -----------------------------------------------------------------------------


class OutreachMessageCreate(BaseModel):
    """A log entry about to be appended; id and position are assigned on append."""

    direction: MessageDirection
    channel: OutreachChannel = OutreachChannel.EMAIL
    subject: Optional[str] = None
    content: str
    sent_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    delivery_status: DeliveryStatus


class OutreachMessageRead(BaseModel):
    id: UUID
    record_id: UUID
    position: int
    direction: MessageDirection
    channel: OutreachChannel
    subject: Optional[str] = None
    content: str
    sent_at: datetime
    delivery_status: DeliveryStatus
    created_at: datetime

    model_config = {"from_attributes": True}


LogOrder = Literal["insertion", "chronological"]


# -----------------------------------------------------------------------------
# Stage history
# -----------------------------------------------------------------------------


class StageChangeRead(BaseModel):
    id: UUID
    record_id: UUID
    from_stage: Optional[str] = None
    to_stage: str
    source: str
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
