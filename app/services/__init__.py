from app.services.message_log_service import MessageLogService
from app.services.outreach_record_service import OutreachRecordService
from app.services.stage_change_service import StageChangeService

__all__ = [
    "MessageLogService",
    "OutreachRecordService",
    "StageChangeService",
]
