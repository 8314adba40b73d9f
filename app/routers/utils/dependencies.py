from uuid import UUID

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from app.adapters.base import BaseMailGateway
from app.core.app_state import state
from app.core.auth_token import AuthTokenProvider
from app.db import get_db
from app.models.outreach_record import OutreachRecord
from app.services.outreach_record_service import OutreachRecordService


def get_record_by_id(
    record_id: UUID,
    db: Session = Depends(get_db),
) -> OutreachRecord:
    """FastAPI dependency to get an outreach record by ID."""
    record = OutreachRecordService(db).get_record(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Outreach record not found")
    return record


def get_mail_gateway() -> BaseMailGateway:
    """FastAPI dependency for the configured mail gateway."""
    return state.gateway


def get_token_provider() -> AuthTokenProvider:
    """FastAPI dependency for the access token provider."""
    return state.token_provider
