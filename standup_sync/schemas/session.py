# standup_sync/schemas/session.py
from datetime import date as date_type, datetime
from enum import Enum

from pydantic import BaseModel, Field


class SessionKind(str, Enum):
    """
    The two kinds of daily meeting tracked by the service.
    """

    STANDUP = "standup"
    LEARNING_HOUR = "learning_hour"


class SessionStatus(str, Enum):
    """
    Lifecycle of a daily session. Transitions only move forward.
    """

    SCHEDULED = "scheduled"
    ACTIVE = "active"
    ENDED = "ended"


class AttendanceStatus(str, Enum):
    PRESENT = "Present"
    ABSENT = "Absent"
    MISSED = "Missed"
    NOT_AVAILABLE = "Not Available"


class SessionRecord(BaseModel):
    """
    In-memory shape of a session document (``standups`` / ``learning_hours``).
    """

    id: str = Field(..., description="Session key, formatted yyyy-MM-dd.", example="2024-03-01")
    status: SessionStatus
    scheduled_time: datetime
    started_at: datetime | None = None
    ended_at: datetime | None = None
    scheduled_by: str = ""
    temp_attendance: dict[str, AttendanceStatus] = Field(default_factory=dict)
    absence_reasons: dict[str, str] = Field(default_factory=dict)

    class Config:
        from_attributes = True


class AttendanceRecordRead(BaseModel):
    """
    Public representation of a persisted attendance record.
    """

    id: str = Field(..., example="2024-03-01_uid-123")
    session_id: str = Field(..., example="2024-03-01")
    employee_uid: str
    employee_name: str
    employee_email: str
    employee_code: str | None = None
    status: AttendanceStatus
    reason: str | None = None
    scheduled_at: datetime
    marked_at: datetime

    class Config:
        from_attributes = True


class ScheduleRequest(BaseModel):
    date: date_type = Field(..., description="Calendar date of the session.", example="2024-03-01")
    time: str = Field(
        ...,
        description="Start time in 24-hour HH:MM format.",
        example="09:00",
    )


class AttendanceMark(BaseModel):
    status: AttendanceStatus = Field(..., example="Present")
    reason: str | None = Field(
        default=None,
        description="Required when status is 'Not Available'.",
        example="On approved leave",
    )


class RosterEntry(BaseModel):
    employee_uid: str
    name: str
    email: str
    employee_code: str | None = None
    status: AttendanceStatus
    reason: str | None = None


class SessionStats(BaseModel):
    total: int = 0
    present: int = 0
    absent: int = 0
    missed: int = 0
    not_available: int = 0


class SessionView(BaseModel):
    """
    Role-shaped read model of today's session.

    Non-admins never receive the live roster of an active session; once the
    session has ended everybody sees the final, read-only roster.
    """

    kind: SessionKind
    session_id: str
    status: SessionStatus | None = Field(
        None,
        description="None when no session has been scheduled for the day.",
    )
    scheduled_time: datetime | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    scheduled_by: str | None = None
    message: str | None = None
    read_only: bool = True
    elapsed: str | None = Field(
        None,
        description="Elapsed time of an active session (MM:SS or HH:MM:SS).",
    )
    roster: list[RosterEntry] | None = None
    stats: SessionStats | None = None


class StopResult(BaseModel):
    session: SessionRecord
    records: list[AttendanceRecordRead]
