"""
Outreach records API: CRUD, conversation log, reply sync and sending.

Sync returns {"data": SyncResult} whatever happened; the client shows the
notice when there is one. Failed sends become HTTP errors carrying the
error kind and the message to show.
"""

from __future__ import annotations

from typing import Any, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi_pagination import Page, Params
from fastapi_pagination.ext.sqlalchemy import paginate
from sqlalchemy.orm import Session

from app.adapters.base import BaseMailGateway
from app.commands.send_message_command import SendMessageCommand
from app.commands.sync_thread_command import SyncThreadCommand
from app.constants.outreach import BoardType, SyncTrigger
from app.core.auth_token import AuthTokenProvider
from app.db import get_db
from app.models.outreach_record import OutreachRecord
from app.routers.utils.dependencies import (
    get_mail_gateway,
    get_record_by_id,
    get_token_provider,
)
from app.schemas.outreach import (
    LogOrder,
    OutreachMessageRead,
    OutreachRecordCreate,
    OutreachRecordRead,
    OutreachRecordUpdate,
    StageChangeRead,
)
from app.schemas.sync import DraftMessage, SendError
from app.services.message_log_service import MessageLogService
from app.services.outreach_record_service import OutreachRecordService
from app.services.stage_change_service import StageChangeService
from app.tasks.auto_sync_task import AutoSyncScheduler, get_auto_sync_scheduler

outreach_router = APIRouter(prefix="/outreach-records", tags=["Outreach"])

SEND_ERROR_STATUS = {
    SendError.RECORD_NOT_FOUND: 404,
    SendError.NO_THREAD_LINKED: 400,
    SendError.NEEDS_RECONNECT: 401,
    SendError.SEND_IN_PROGRESS: 409,
    SendError.UNREACHABLE: 502,
    SendError.REJECTED: 502,
    SendError.UNEXPECTED: 500,
}


@outreach_router.post("", response_model=OutreachRecordRead, status_code=201)
def create_record(
    body: OutreachRecordCreate,
    db: Session = Depends(get_db),
) -> OutreachRecordRead:
    """Create an outreach record with an empty conversation log."""
    record = OutreachRecordService(db).create_record(body)
    return OutreachRecordRead.model_validate(record)


@outreach_router.get("", response_model=Page[OutreachRecordRead])
def list_records(
    params: Params = Depends(),
    stage: Optional[str] = Query(None),
    board_type: Optional[BoardType] = Query(None),
    db: Session = Depends(get_db),
) -> Page[OutreachRecordRead]:
    """List records, most recently updated first."""
    query = OutreachRecordService(db).get_records_query(
        stage=stage, board_type=board_type
    )
    return paginate(
        query,
        params=params,
        transformer=lambda items: [OutreachRecordRead.model_validate(i) for i in items],
    )


@outreach_router.get("/{record_id}", response_model=OutreachRecordRead)
def get_record(
    record: OutreachRecord = Depends(get_record_by_id),
) -> OutreachRecordRead:
    return OutreachRecordRead.model_validate(record)


@outreach_router.patch("/{record_id}", response_model=OutreachRecordRead)
def update_record(
    record_id: UUID,
    body: OutreachRecordUpdate,
    _record: OutreachRecord = Depends(get_record_by_id),
    db: Session = Depends(get_db),
) -> OutreachRecordRead:
    """Manual edit. A stage set here is recorded as a manual change."""
    try:
        record = OutreachRecordService(db).update_record(record_id, body)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if record is None:
        raise HTTPException(status_code=404, detail="Outreach record not found")
    return OutreachRecordRead.model_validate(record)


@outreach_router.delete("/{record_id}", status_code=204)
def delete_record(
    record_id: UUID,
    _record: OutreachRecord = Depends(get_record_by_id),
    db: Session = Depends(get_db),
) -> None:
    """Delete a record with its conversation log and stage history."""
    OutreachRecordService(db).delete_record(record_id)


@outreach_router.get("/{record_id}/messages", response_model=Page[OutreachMessageRead])
def list_messages(
    record_id: UUID,
    params: Params = Depends(),
    order: LogOrder = Query("insertion"),
    _record: OutreachRecord = Depends(get_record_by_id),
    db: Session = Depends(get_db),
) -> Page[OutreachMessageRead]:
    """Conversation log in insertion order, or by sent_at with order=chronological."""
    query = MessageLogService(db).get_messages_query(record_id, order)
    return paginate(
        query,
        params=params,
        transformer=lambda items: [OutreachMessageRead.model_validate(i) for i in items],
    )


@outreach_router.get("/{record_id}/stage-history", response_model=List[StageChangeRead])
def list_stage_history(
    record_id: UUID,
    _record: OutreachRecord = Depends(get_record_by_id),
    db: Session = Depends(get_db),
) -> List[StageChangeRead]:
    changes = StageChangeService(db).get_changes(record_id)
    return [StageChangeRead.model_validate(c) for c in changes]


@outreach_router.post("/{record_id}/sync", response_model=dict[str, Any])
async def sync_record(
    record_id: UUID,
    trigger: SyncTrigger = Query(SyncTrigger.MANUAL),
    _record: OutreachRecord = Depends(get_record_by_id),
    db: Session = Depends(get_db),
    gateway: BaseMailGateway = Depends(get_mail_gateway),
    token_provider: AuthTokenProvider = Depends(get_token_provider),
) -> dict[str, Any]:
    """Check the record's mail thread for a new reply."""
    command = SyncThreadCommand(db, gateway=gateway, token_provider=token_provider)
    result = await command.execute(record_id, trigger)
    return {"data": result.model_dump(mode="json")}


@outreach_router.post("/{record_id}/messages", response_model=dict[str, Any], status_code=201)
async def send_message(
    record_id: UUID,
    body: DraftMessage,
    _record: OutreachRecord = Depends(get_record_by_id),
    db: Session = Depends(get_db),
    gateway: BaseMailGateway = Depends(get_mail_gateway),
    token_provider: AuthTokenProvider = Depends(get_token_provider),
) -> dict[str, Any]:
    """
    Send or log a message. Return {"data": SendResult} on success.

    Raises:
        HTTPException: 400 no thread linked, 401 Gmail reconnect needed,
            409 a send is already running, 502 Gmail unreachable or refused.
    """
    command = SendMessageCommand(db, gateway=gateway, token_provider=token_provider)
    result = await command.execute(record_id, body)
    if not result.success:
        raise HTTPException(
            status_code=SEND_ERROR_STATUS[result.error],
            detail={"error": result.error.value, "message": result.notice.text},
        )
    return {"data": result.model_dump(mode="json")}


@outreach_router.post("/{record_id}/conversation/open", response_model=dict[str, Any])
async def open_conversation(
    record: OutreachRecord = Depends(get_record_by_id),
    scheduler: AutoSyncScheduler = Depends(get_auto_sync_scheduler),
) -> dict[str, Any]:
    """Conversation view became active: schedule one background reply check."""
    if not record.gmail_thread_id:
        return {"data": {"scheduled": False}}
    scheduler.schedule(record.id)
    return {"data": {"scheduled": True, "delay_seconds": scheduler.delay_seconds}}
