from app.models.outreach_message import OutreachMessage
from app.models.outreach_record import OutreachRecord
from app.models.stage_change import StageChange

__all__ = [
    "OutreachMessage",
    "OutreachRecord",
    "StageChange",
]
