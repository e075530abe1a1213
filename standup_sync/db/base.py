# standup_sync/db/base.py
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models in the Standup Sync service.

    Each table mirrors one document collection (employees, sessions,
    attendance, onboarding status).
    """
    pass


# Import ORM model modules so that Base.metadata is aware of them.
# Plain module imports keep this safe when a model module is imported first.
import standup_sync.models.employee  # noqa: E402,F401
import standup_sync.models.session  # noqa: E402,F401
import standup_sync.models.attendance  # noqa: E402,F401
import standup_sync.models.onboarding  # noqa: E402,F401
