# standup_sync/models/attendance.py
from sqlalchemy import Column, DateTime, String, Text

from standup_sync.db.base import Base


class AttendanceColumnsMixin:
    """
    One attendance record per (session, employee), keyed ``{sessionId}_{uid}``.

    Employee name/email/code are denormalized at write time so the record
    stays readable after the employee is archived or deleted.
    """

    id = Column(String(160), primary_key=True)

    session_id = Column(String(10), nullable=False, index=True)
    employee_uid = Column(String(128), nullable=False, index=True)

    employee_name = Column(String(255), nullable=False, default="")
    employee_email = Column(String(320), nullable=False, default="")
    employee_code = Column(String(64), nullable=True)

    status = Column(String(16), nullable=False, default="Missed")
    reason = Column(Text, nullable=True)

    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    marked_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} session_id={self.session_id} "
            f"employee_uid={self.employee_uid} status={self.status}>"
        )


class StandupAttendance(AttendanceColumnsMixin, Base):
    __tablename__ = "attendance"


class LearningHourAttendance(AttendanceColumnsMixin, Base):
    __tablename__ = "learning_hours_attendance"
