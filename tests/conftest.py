# tests/conftest.py
import asyncio
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo

# Settings are read once at import time; point them at a throwaway DB first.
os.environ["APP_ENV"] = "test"
os.environ["DB_URL"] = "sqlite+aiosqlite:///./test_standup_sync.db"
os.environ.pop("INTERNAL_API_KEY", None)
os.environ.pop("FUNCTIONS_BASE_URL", None)
os.environ.pop("SHEET_SYNC_URL", None)

import pytest
from fastapi.testclient import TestClient

from standup_sync.core.exceptions import NotFoundError, RemoteCallError
from standup_sync.db.session import init_db
from standup_sync.main import create_app
from standup_sync.schemas.employee import EmployeeRead
from standup_sync.schemas.feedback import FeedbackSummary
from standup_sync.schemas.identity import Identity
from standup_sync.schemas.onboarding import OnboardingStatusRead
from standup_sync.schemas.session import AttendanceRecordRead, SessionKind, SessionRecord

IST = ZoneInfo("Asia/Kolkata")

ADMIN_HEADERS = {
    "X-User-Id": "admin-1",
    "X-User-Email": "lead@example.com",
    "X-User-Name": "Team Lead",
    "X-User-Is-Admin": "true",
}

MEMBER_HEADERS = {
    "X-User-Id": "emp-1",
    "X-User-Email": "asha@example.com",
    "X-User-Name": "Asha Rao",
}


@pytest.fixture(scope="session")
def client() -> TestClient:
    """
    Shared TestClient fixture for all API tests.
    """
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def reset_db() -> None:
    """
    Give an API test empty tables.
    """
    asyncio.run(init_db())


class FrozenClock:
    """
    Callable clock whose time only moves when a test says so.
    """

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set_local(self, year: int, month: int, day: int, hour: int, minute: int = 0, second: int = 0) -> None:
        self.now = datetime(year, month, day, hour, minute, second, tzinfo=IST).astimezone(timezone.utc)


@pytest.fixture
def clock() -> FrozenClock:
    """
    Defaults to 2024-03-01 08:00 in Asia/Kolkata.
    """
    frozen = FrozenClock(datetime(2024, 3, 1, 2, 30, tzinfo=timezone.utc))
    return frozen


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return dict(ADMIN_HEADERS)


@pytest.fixture
def member_headers() -> Dict[str, str]:
    return dict(MEMBER_HEADERS)


@pytest.fixture
def admin() -> Identity:
    return Identity(uid="admin-1", email="lead@example.com", display_name="Team Lead", is_admin=True)


@pytest.fixture
def member() -> Identity:
    return Identity(uid="emp-1", email="asha@example.com", display_name="Asha Rao")


class FakeGateway:
    """
    In-memory stand-in for RemoteDataGateway.

    Mirrors the gateway's public methods closely enough for service tests,
    without a database or HTTP.
    """

    def __init__(self) -> None:
        self.employees: Dict[str, EmployeeRead] = {}
        self.sessions: Dict[Tuple[SessionKind, str], SessionRecord] = {}
        self.attendance: Dict[Tuple[SessionKind, str], Dict[str, AttendanceRecordRead]] = {}
        self.onboarding: Dict[str, OnboardingStatusRead] = {}
        self.feedback_summary: Any = {"totalFeedbacks": 0}
        self.feedback_calls: List[Dict[str, Any]] = []
        self.function_calls: List[Tuple[str, Dict[str, Any]]] = []
        self.end_session_calls = 0

    # helpers ------------------------------------------------------------

    def add_employee(self, uid: str, name: str, archived: bool = False, **extra: Any) -> EmployeeRead:
        employee = EmployeeRead(
            uid=uid,
            name=name,
            email=extra.pop("email", f"{uid}@example.com"),
            employee_id=extra.pop("employee_id", f"NW{uid[-2:]}"),
            archived=archived,
            **extra,
        )
        self.employees[uid] = employee
        return employee

    # employees ----------------------------------------------------------

    async def list_employees(self, include_archived: bool = False) -> List[EmployeeRead]:
        found = [e for e in self.employees.values() if include_archived or not e.archived]
        return sorted(found, key=lambda e: (e.name, e.uid))

    async def get_employee(self, uid: str) -> Optional[EmployeeRead]:
        return self.employees.get(uid)

    async def create_employee(
        self,
        uid: str,
        email: str,
        name: str = "",
        approval_required: bool = False,
    ) -> EmployeeRead:
        employee = EmployeeRead(
            uid=uid, email=email, name=name, admin_approval_required=approval_required
        )
        self.employees[uid] = employee
        return employee

    async def list_pending_employees(self) -> List[EmployeeRead]:
        found = [e for e in self.employees.values() if e.admin_approval_required]
        return sorted(found, key=lambda e: (e.name, e.uid))

    async def update_employee(self, uid: str, fields: Dict[str, Any]) -> EmployeeRead:
        if uid not in self.employees:
            raise NotFoundError(f"Employee with uid={uid} not found.")
        self.employees[uid] = self.employees[uid].model_copy(update=fields)
        return self.employees[uid]

    async def remove_employee(self, uid: str) -> None:
        self.employees.pop(uid, None)

    # sessions -----------------------------------------------------------

    async def get_session(self, kind: SessionKind, session_id: str) -> Optional[SessionRecord]:
        return self.sessions.get((kind, session_id))

    async def save_session(self, kind: SessionKind, record: SessionRecord) -> SessionRecord:
        self.sessions[(kind, record.id)] = record
        return record

    async def list_attendance(self, kind: SessionKind, session_id: str) -> List[AttendanceRecordRead]:
        records = self.attendance.get((kind, session_id), {})
        return sorted(records.values(), key=lambda r: r.employee_name)

    async def end_session(
        self,
        kind: SessionKind,
        session: SessionRecord,
        records: List[AttendanceRecordRead],
    ) -> None:
        self.end_session_calls += 1
        bucket = self.attendance.setdefault((kind, session.id), {})
        for record in records:
            bucket[record.id] = record
        self.sessions[(kind, session.id)] = session

    async def update_attendance_record(
        self,
        kind: SessionKind,
        record: AttendanceRecordRead,
    ) -> AttendanceRecordRead:
        self.attendance[(kind, record.session_id)][record.id] = record
        return record

    async def list_employee_attendance(
        self,
        employee_uid: str,
        kind: SessionKind = SessionKind.STANDUP,
    ) -> List[AttendanceRecordRead]:
        return [
            r
            for (k, _), bucket in self.attendance.items()
            if k == kind
            for r in bucket.values()
            if r.employee_uid == employee_uid
        ]

    # onboarding ---------------------------------------------------------

    async def get_onboarding_status(self, uid: str) -> Optional[OnboardingStatusRead]:
        return self.onboarding.get(uid)

    async def save_onboarding_status(self, status: OnboardingStatusRead) -> OnboardingStatusRead:
        self.onboarding[status.uid] = status
        return status

    # functions ----------------------------------------------------------

    async def get_feedback_summary(self, payload: Dict[str, Any]) -> FeedbackSummary:
        self.feedback_calls.append(payload)
        if isinstance(self.feedback_summary, Exception):
            raise self.feedback_summary
        return FeedbackSummary.model_validate(self.feedback_summary)

    async def add_admin_role(self, email: str) -> Any:
        self.function_calls.append(("addAdminRole", {"email": email}))
        return {"message": f"Success! {email} has been made an admin."}

    async def remove_admin_role(self, email: str) -> Any:
        self.function_calls.append(("removeAdminRole", {"email": email}))
        return {"message": f"Admin role removed for {email}."}

    async def delete_employee(self, uid: str) -> None:
        self.function_calls.append(("deleteEmployee", {"uid": uid}))
        await self.remove_employee(uid)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def failing_feedback_gateway() -> FakeGateway:
    fake = FakeGateway()
    fake.feedback_summary = RemoteCallError("internal")
    return fake
