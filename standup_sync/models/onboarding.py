# standup_sync/models/onboarding.py
from sqlalchemy import Column, DateTime, String

from standup_sync.db.base import Base


class UserOnboardingStatus(Base):
    """
    Per-employee onboarding progress marker (INPROGRESS / COMPLETED).
    """

    __tablename__ = "userOnboardingStatus"

    uid = Column(String(128), primary_key=True)
    onboarding_status = Column(String(16), nullable=False, default="INPROGRESS")
    started_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<UserOnboardingStatus uid={self.uid} status={self.onboarding_status}>"
