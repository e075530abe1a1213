# standup_sync/services/gateway.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from standup_sync.core.clock import as_utc
from standup_sync.core.exceptions import NotFoundError, RemoteCallError
from standup_sync.models.attendance import LearningHourAttendance, StandupAttendance
from standup_sync.models.employee import Employee
from standup_sync.models.onboarding import UserOnboardingStatus
from standup_sync.models.session import LearningHour, Standup
from standup_sync.schemas.employee import EmployeeRead
from standup_sync.schemas.feedback import FeedbackSummary
from standup_sync.schemas.onboarding import OnboardingStatusRead
from standup_sync.schemas.session import (
    AttendanceRecordRead,
    AttendanceStatus,
    SessionKind,
    SessionRecord,
)
from standup_sync.services.functions_client import FunctionsClient

logger = logging.getLogger(__name__)

SESSION_MODELS = {
    SessionKind.STANDUP: Standup,
    SessionKind.LEARNING_HOUR: LearningHour,
}

ATTENDANCE_MODELS = {
    SessionKind.STANDUP: StandupAttendance,
    SessionKind.LEARNING_HOUR: LearningHourAttendance,
}

FEEDBACK_SUMMARY_FUNCTION = "getFeedbackSummary"
ADD_ADMIN_ROLE_FUNCTION = "addAdminRole"
REMOVE_ADMIN_ROLE_FUNCTION = "removeAdminRole"
DELETE_EMPLOYEE_FUNCTION = "deleteEmployee"


def attendance_key(session_id: str, employee_uid: str) -> str:
    return f"{session_id}_{employee_uid}"


class RemoteDataGateway:
    """
    Typed access to the document collections and the callable functions.

    No business rules live here: methods marshal parameters, map rows to
    schemas and parse remote payloads at the boundary. Everything above this
    layer works with pydantic models only.
    """

    def __init__(
        self,
        db: AsyncSession,
        functions: Optional[FunctionsClient] = None,
        id_token: Optional[str] = None,
    ) -> None:
        self.db = db
        self._functions = functions
        self._id_token = id_token

    @property
    def functions(self) -> FunctionsClient:
        if self._functions is None:
            raise RemoteCallError("Remote functions are not configured.")
        return self._functions

    # ------------------------------------------------------------------
    # employees
    # ------------------------------------------------------------------

    async def list_employees(self, include_archived: bool = False) -> List[EmployeeRead]:
        stmt = select(Employee)
        if not include_archived:
            stmt = stmt.where(Employee.archived.is_(False))
        result = await self.db.execute(stmt.order_by(Employee.name.asc(), Employee.uid.asc()))
        return [EmployeeRead.model_validate(e) for e in result.scalars().all()]

    async def get_employee(self, uid: str) -> Optional[EmployeeRead]:
        employee = await self.db.get(Employee, uid)
        return EmployeeRead.model_validate(employee) if employee else None

    async def create_employee(
        self,
        uid: str,
        email: str,
        name: str = "",
        approval_required: bool = False,
    ) -> EmployeeRead:
        employee = Employee(
            uid=uid,
            email=email,
            name=name,
            has_completed_setup=False,
            admin_approval_required=approval_required,
            archived=False,
        )
        self.db.add(employee)
        await self.db.commit()
        await self.db.refresh(employee)
        return EmployeeRead.model_validate(employee)

    async def list_pending_employees(self) -> List[EmployeeRead]:
        stmt = (
            select(Employee)
            .where(Employee.admin_approval_required.is_(True))
            .order_by(Employee.name.asc(), Employee.uid.asc())
        )
        result = await self.db.execute(stmt)
        return [EmployeeRead.model_validate(e) for e in result.scalars().all()]

    async def update_employee(self, uid: str, fields: Dict[str, Any]) -> EmployeeRead:
        employee = await self.db.get(Employee, uid)
        if employee is None:
            raise NotFoundError(f"Employee with uid={uid} not found.")

        for field, value in fields.items():
            setattr(employee, field, value)

        await self.db.commit()
        await self.db.refresh(employee)
        return EmployeeRead.model_validate(employee)

    async def remove_employee(self, uid: str) -> None:
        employee = await self.db.get(Employee, uid)
        if employee is None:
            return
        await self.db.delete(employee)
        await self.db.commit()

    # ------------------------------------------------------------------
    # sessions + attendance
    # ------------------------------------------------------------------

    async def get_session(self, kind: SessionKind, session_id: str) -> Optional[SessionRecord]:
        row = await self.db.get(SESSION_MODELS[kind], session_id)
        return _session_from_row(row) if row else None

    async def save_session(self, kind: SessionKind, record: SessionRecord) -> SessionRecord:
        """
        Create or overwrite the session document with the given state.
        """
        model = SESSION_MODELS[kind]
        row = await self.db.get(model, record.id)
        if row is None:
            row = model(id=record.id)
            self.db.add(row)

        _apply_session(row, record)
        await self.db.commit()
        return record

    async def list_attendance(self, kind: SessionKind, session_id: str) -> List[AttendanceRecordRead]:
        model = ATTENDANCE_MODELS[kind]
        stmt = (
            select(model)
            .where(model.session_id == session_id)
            .order_by(model.employee_name.asc(), model.employee_uid.asc())
        )
        result = await self.db.execute(stmt)
        return [_attendance_from_row(r) for r in result.scalars().all()]

    async def end_session(
        self,
        kind: SessionKind,
        session: SessionRecord,
        records: List[AttendanceRecordRead],
    ) -> None:
        """
        Persist the attendance batch and the session status flip together.

        Both writes share one transaction, so a failure leaves neither the
        records nor the ``ended`` status behind.
        """
        attendance_model = ATTENDANCE_MODELS[kind]
        session_model = SESSION_MODELS[kind]

        try:
            for record in records:
                await self.db.merge(attendance_model(**_attendance_fields(record)))

            row = await self.db.get(session_model, session.id)
            if row is None:
                row = session_model(id=session.id)
                self.db.add(row)
            _apply_session(row, session)

            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(
                "Failed to end %s session %s; no records were written.",
                kind.value,
                session.id,
            )
            raise

    async def update_attendance_record(
        self,
        kind: SessionKind,
        record: AttendanceRecordRead,
    ) -> AttendanceRecordRead:
        model = ATTENDANCE_MODELS[kind]
        row = await self.db.get(model, record.id)
        if row is None:
            raise NotFoundError(f"Attendance record {record.id} not found.")

        row.status = record.status.value
        row.reason = record.reason
        row.marked_at = record.marked_at
        await self.db.commit()
        return _attendance_from_row(row)

    async def list_employee_attendance(
        self,
        employee_uid: str,
        kind: SessionKind = SessionKind.STANDUP,
    ) -> List[AttendanceRecordRead]:
        model = ATTENDANCE_MODELS[kind]
        stmt = (
            select(model)
            .where(model.employee_uid == employee_uid)
            .order_by(model.scheduled_at.desc())
        )
        result = await self.db.execute(stmt)
        return [_attendance_from_row(r) for r in result.scalars().all()]

    # ------------------------------------------------------------------
    # onboarding
    # ------------------------------------------------------------------

    async def get_onboarding_status(self, uid: str) -> Optional[OnboardingStatusRead]:
        row = await self.db.get(UserOnboardingStatus, uid)
        if row is None:
            return None
        return OnboardingStatusRead(
            uid=row.uid,
            onboarding_status=row.onboarding_status,
            started_at=as_utc(row.started_at),
            completed_at=as_utc(row.completed_at),
        )

    async def save_onboarding_status(self, status: OnboardingStatusRead) -> OnboardingStatusRead:
        row = await self.db.get(UserOnboardingStatus, status.uid)
        if row is None:
            row = UserOnboardingStatus(uid=status.uid)
            self.db.add(row)

        row.onboarding_status = status.onboarding_status.value
        row.started_at = status.started_at
        row.completed_at = status.completed_at
        await self.db.commit()
        return status

    # ------------------------------------------------------------------
    # callable functions
    # ------------------------------------------------------------------

    async def get_feedback_summary(self, payload: Dict[str, Any]) -> FeedbackSummary:
        """
        Invoke ``getFeedbackSummary`` and validate the response shape.
        """
        raw = await self.functions.call(
            FEEDBACK_SUMMARY_FUNCTION, payload, id_token=self._id_token
        )
        try:
            return FeedbackSummary.model_validate(raw)
        except PydanticValidationError as exc:
            logger.error("getFeedbackSummary returned an invalid payload: %s", exc)
            raise RemoteCallError("Feedback summary response was malformed.") from exc

    async def add_admin_role(self, email: str) -> Any:
        return await self.functions.call(
            ADD_ADMIN_ROLE_FUNCTION, {"email": email}, id_token=self._id_token
        )

    async def remove_admin_role(self, email: str) -> Any:
        return await self.functions.call(
            REMOVE_ADMIN_ROLE_FUNCTION, {"email": email}, id_token=self._id_token
        )

    async def delete_employee(self, uid: str) -> None:
        """
        Delete the auth account through ``deleteEmployee``, then the profile row.
        """
        await self.functions.call(
            DELETE_EMPLOYEE_FUNCTION, {"uid": uid}, id_token=self._id_token
        )
        await self.remove_employee(uid)


# ----------------------------------------------------------------------
# row <-> schema mapping
# ----------------------------------------------------------------------

def _session_from_row(row: Any) -> SessionRecord:
    return SessionRecord(
        id=row.id,
        status=row.status,
        scheduled_time=as_utc(row.scheduled_time),
        started_at=as_utc(row.started_at),
        ended_at=as_utc(row.ended_at),
        scheduled_by=row.scheduled_by or "",
        temp_attendance=dict(row.temp_attendance or {}),
        absence_reasons=dict(row.absence_reasons or {}),
    )


def _apply_session(row: Any, record: SessionRecord) -> None:
    row.status = record.status.value
    row.scheduled_time = record.scheduled_time
    row.started_at = record.started_at
    row.ended_at = record.ended_at
    row.scheduled_by = record.scheduled_by
    # JSON columns: store plain strings, and assign new dicts so the change
    # is detected.
    row.temp_attendance = {
        uid: AttendanceStatus(status).value
        for uid, status in record.temp_attendance.items()
    }
    row.absence_reasons = dict(record.absence_reasons)


def _attendance_fields(record: AttendanceRecordRead) -> Dict[str, Any]:
    fields = record.model_dump()
    fields["status"] = record.status.value
    return fields


def _attendance_from_row(row: Any) -> AttendanceRecordRead:
    return AttendanceRecordRead(
        id=row.id,
        session_id=row.session_id,
        employee_uid=row.employee_uid,
        employee_name=row.employee_name,
        employee_email=row.employee_email,
        employee_code=row.employee_code,
        status=row.status,
        reason=row.reason,
        scheduled_at=as_utc(row.scheduled_at),
        marked_at=as_utc(row.marked_at),
    )
