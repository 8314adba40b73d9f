"""
Pipeline stage transitions driven by message events.

Message events only nudge a record forward from a few early stages. Any
other stage reflects a decision someone made on the board and is left alone.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union

from app.constants.outreach import PipelineStage


class StageEvent(str, Enum):
    INBOUND_RECEIVED = "inbound_received"
    OUTBOUND_SENT = "outbound_sent"


# event -> (eligible current stages, resulting stage)
TRANSITIONS: dict[StageEvent, tuple[frozenset[str], str]] = {
    StageEvent.INBOUND_RECEIVED: (
        frozenset({PipelineStage.CONTACTED.value, PipelineStage.TARGETS.value}),
        PipelineStage.REPLIED.value,
    ),
    StageEvent.OUTBOUND_SENT: (
        frozenset({PipelineStage.TARGETS.value}),
        PipelineStage.CONTACTED.value,
    ),
}


def transition(
    current_stage: Union[str, Enum, None], event: StageEvent
) -> Optional[str]:
    """Return the stage the record should move to, or None to leave it."""
    current = getattr(current_stage, "value", current_stage)
    eligible, target = TRANSITIONS[StageEvent(event)]
    if current in eligible:
        return target
    return None
