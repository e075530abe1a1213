# standup_sync/models/employee.py
from sqlalchemy import Boolean, Column, DateTime, String, func

from standup_sync.db.base import Base


class Employee(Base):
    """
    Team member profile, keyed by the uid issued by the auth provider.

    Created on first sign-in and completed through the setup flow. Admin
    status is not stored here: it is a claim asserted by the auth layer.
    """

    __tablename__ = "employees"

    uid = Column(String(128), primary_key=True)

    name = Column(String(255), nullable=False, default="")
    email = Column(String(320), nullable=False, index=True)

    # Organization-issued code, distinct from the auth uid.
    employee_id = Column(String(64), nullable=True)

    feedback_sheet_url = Column(String(2048), nullable=True)

    has_completed_setup = Column(Boolean, nullable=False, default=False)
    # Set for self-registered accounts until an admin approves them.
    admin_approval_required = Column(Boolean, nullable=False, default=False)
    archived = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Employee uid={self.uid} email={self.email}>"
