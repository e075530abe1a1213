# standup_sync/models/session.py
from sqlalchemy import JSON, Column, DateTime, String

from standup_sync.db.base import Base


class SessionColumnsMixin:
    """
    Columns shared by the per-day session collections.

    The primary key is the calendar date formatted as ``yyyy-MM-dd``, which
    enforces at most one session per day for each session kind.
    """

    id = Column(String(10), primary_key=True)

    status = Column(String(16), nullable=False, default="scheduled")

    scheduled_time = Column(DateTime(timezone=True), nullable=False)
    started_at = Column(DateTime(timezone=True), nullable=True)
    ended_at = Column(DateTime(timezone=True), nullable=True)

    scheduled_by = Column(String(255), nullable=False, default="")

    # Working state of the admin running the session; cleared on stop.
    temp_attendance = Column(JSON, nullable=False, default=dict)
    absence_reasons = Column(JSON, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id} status={self.status}>"


class Standup(SessionColumnsMixin, Base):
    __tablename__ = "standups"


class LearningHour(SessionColumnsMixin, Base):
    __tablename__ = "learning_hours"
