# standup_sync/schemas/automation.py
from enum import Enum

from pydantic import BaseModel, Field


class AutomationAction(str, Enum):
    SKIPPED = "skipped"
    IDLE = "idle"
    SCHEDULED = "scheduled"
    STARTED = "started"
    ENDED = "ended"


class AutomationTickResult(BaseModel):
    """
    Outcome of one pass of the standup automation.
    """

    session_id: str = Field(..., example="2024-03-01")
    action: AutomationAction = Field(
        ...,
        description=(
            "`skipped` on Sundays, `idle` when nothing was due, otherwise the "
            "transition that was applied."
        ),
        example="ended",
    )
    records_written: int = Field(
        0,
        description="Attendance records written when the session was ended.",
        example=12,
    )
