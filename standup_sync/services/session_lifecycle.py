# standup_sync/services/session_lifecycle.py
from __future__ import annotations

import logging
import re
from datetime import date as date_type, datetime, time, timezone, tzinfo
from typing import Dict, List, Optional

from standup_sync.core.clock import Clock, format_elapsed, session_key, utc_now
from standup_sync.core.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    SessionStateError,
    ValidationError,
)
from standup_sync.schemas.employee import EmployeeRead
from standup_sync.schemas.identity import Identity
from standup_sync.schemas.session import (
    AttendanceRecordRead,
    AttendanceStatus,
    RosterEntry,
    SessionKind,
    SessionRecord,
    SessionStats,
    SessionStatus,
    SessionView,
    StopResult,
)
from standup_sync.services.gateway import RemoteDataGateway, attendance_key
from standup_sync.services.session_events import SessionBroadcaster, SessionUpdate

logger = logging.getLogger(__name__)

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")

NO_REASON_PLACEHOLDER = "No reason provided"
IN_PROGRESS_MESSAGE = "Session in progress. Attendance will be visible once it ends."
NOT_SCHEDULED_MESSAGE = "No session has been scheduled for this day."


def parse_session_time(value: str) -> time:
    """
    Parse a 24-hour ``HH:MM`` string.

    Raises ValidationError for anything else, e.g. "25:00" or "9am".
    """
    match = _TIME_PATTERN.match((value or "").strip())
    if match is None:
        raise ValidationError("Please enter a valid time in HH:MM format (24-hour).")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValidationError("Please enter a valid time in HH:MM format (24-hour).")
    return time(hours, minutes)


def require_reason(status: AttendanceStatus, reason: Optional[str]) -> Optional[str]:
    """
    Return the normalized reason for ``status``.

    'Not Available' needs a non-empty reason; other statuses carry none.
    """
    if status != AttendanceStatus.NOT_AVAILABLE:
        return None
    cleaned = (reason or "").strip()
    if not cleaned:
        raise ValidationError("A reason is required when marking someone as Not Available.")
    return cleaned


def compute_stats(statuses: List[AttendanceStatus]) -> SessionStats:
    return SessionStats(
        total=len(statuses),
        present=sum(1 for s in statuses if s == AttendanceStatus.PRESENT),
        absent=sum(1 for s in statuses if s == AttendanceStatus.ABSENT),
        missed=sum(1 for s in statuses if s == AttendanceStatus.MISSED),
        not_available=sum(1 for s in statuses if s == AttendanceStatus.NOT_AVAILABLE),
    )


def filter_roster(
    roster: List[RosterEntry],
    status_filter: Optional[AttendanceStatus] = None,
    search: Optional[str] = None,
) -> List[RosterEntry]:
    """
    Narrow a roster by status and by a case-insensitive name/email search.
    """
    entries = roster
    if status_filter is not None:
        entries = [e for e in entries if e.status == status_filter]
    if search:
        needle = search.lower()
        entries = [
            e for e in entries
            if needle in e.name.lower() or needle in e.email.lower()
        ]
    return entries


class SessionLifecycleController:
    """
    Owns the scheduled -> active -> ended lifecycle of one daily session kind.

    Admin actions mutate the session document; everybody else only reads it
    through ``view`` or the live broadcaster. Writes are not retried and
    concurrent admins resolve by last write wins.
    """

    def __init__(
        self,
        gateway: RemoteDataGateway,
        kind: SessionKind,
        tz: tzinfo,
        clock: Clock = utc_now,
        broadcaster: Optional[SessionBroadcaster] = None,
    ) -> None:
        self.gateway = gateway
        self.kind = kind
        self.tz = tz
        self.clock = clock
        self.broadcaster = broadcaster

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def today_key(self) -> str:
        return session_key(self.clock().astimezone(self.tz).date())

    def _require_admin(self, actor: Identity, action: str) -> None:
        if not actor.is_admin:
            raise PermissionDeniedError(f"Only admins can {action} a session.")

    async def _require_status(
        self,
        session_id: str,
        expected: SessionStatus,
        action: str,
    ) -> SessionRecord:
        session = await self.load(session_id)
        if session is None:
            raise SessionStateError(
                f"Cannot {action}: no {self.kind.value} exists for {session_id}."
            )
        if session.status != expected:
            raise SessionStateError(
                f"Cannot {action}: session is '{session.status.value}', "
                f"expected '{expected.value}'."
            )
        return session

    async def _save(self, session: SessionRecord) -> SessionRecord:
        await self.gateway.save_session(self.kind, session)
        await self._publish(session.id)
        return session

    async def _publish(self, session_id: str) -> None:
        if self.broadcaster is None:
            return
        if self.broadcaster.subscriber_count(self.kind, session_id) == 0:
            return
        session = await self.gateway.get_session(self.kind, session_id)
        update = SessionUpdate(
            admin_view=await self._render(session_id, session, is_admin=True),
            member_view=await self._render(session_id, session, is_admin=False),
        )
        self.broadcaster.publish(self.kind, session_id, update)

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------

    async def load(self, session_id: Optional[str] = None) -> Optional[SessionRecord]:
        """
        Fetch the session, repairing an interrupted stop.

        A session still marked ``active`` while attendance records already
        exist for it is treated as ended at the latest ``marked_at``.
        """
        session_id = session_id or self.today_key()
        session = await self.gateway.get_session(self.kind, session_id)
        if session is None or session.status != SessionStatus.ACTIVE:
            return session

        records = await self.gateway.list_attendance(self.kind, session_id)
        if not records:
            return session

        logger.warning(
            "%s %s is active but has %d attendance records; marking it ended.",
            self.kind.value,
            session_id,
            len(records),
        )
        repaired = session.model_copy(
            update={
                "status": SessionStatus.ENDED,
                "ended_at": max(r.marked_at for r in records),
                "temp_attendance": {},
                "absence_reasons": {},
            }
        )
        await self.gateway.save_session(self.kind, repaired)
        return repaired

    async def view(
        self,
        actor: Identity,
        session_id: Optional[str] = None,
        status_filter: Optional[AttendanceStatus] = None,
        search: Optional[str] = None,
    ) -> SessionView:
        session_id = session_id or self.today_key()
        session = await self.load(session_id)
        view = await self._render(session_id, session, is_admin=actor.is_admin)
        if view.roster is not None:
            view.roster = filter_roster(view.roster, status_filter, search)
        return view

    async def _render(
        self,
        session_id: str,
        session: Optional[SessionRecord],
        is_admin: bool,
    ) -> SessionView:
        if session is None:
            return SessionView(
                kind=self.kind,
                session_id=session_id,
                message=NOT_SCHEDULED_MESSAGE,
                read_only=not is_admin,
            )

        view = SessionView(
            kind=self.kind,
            session_id=session.id,
            status=session.status,
            scheduled_time=session.scheduled_time,
            started_at=session.started_at,
            ended_at=session.ended_at,
            scheduled_by=session.scheduled_by,
            read_only=not is_admin,
        )

        if session.status == SessionStatus.ACTIVE:
            if session.started_at is not None:
                elapsed = (self.clock() - session.started_at).total_seconds()
                view.elapsed = format_elapsed(elapsed)
            if not is_admin:
                view.message = IN_PROGRESS_MESSAGE
                return view
            employees = await self.gateway.list_employees()
            roster = _live_roster(employees, session)
            view.roster = roster
            view.stats = compute_stats([e.status for e in roster])
            return view

        if session.status == SessionStatus.ENDED:
            records = await self.gateway.list_attendance(self.kind, session.id)
            roster = [
                RosterEntry(
                    employee_uid=r.employee_uid,
                    name=r.employee_name,
                    email=r.employee_email,
                    employee_code=r.employee_code,
                    status=r.status,
                    reason=r.reason,
                )
                for r in records
            ]
            view.roster = roster
            view.stats = compute_stats([e.status for e in roster])
            # Only standups support the admin re-edit flow after ending.
            view.read_only = not (is_admin and self.kind == SessionKind.STANDUP)

        return view

    # ------------------------------------------------------------------
    # admin actions
    # ------------------------------------------------------------------

    async def schedule(self, actor: Identity, day: date_type, time_value: str) -> SessionRecord:
        """
        Create or overwrite the session for ``day`` with status ``scheduled``.
        """
        self._require_admin(actor, "schedule")
        at = parse_session_time(time_value)

        scheduled_local = datetime.combine(day, at, tzinfo=self.tz)
        now_local = self.clock().astimezone(self.tz).replace(second=0, microsecond=0)
        if scheduled_local < now_local:
            raise ValidationError(
                "The session cannot be scheduled for the past. Please choose a future time."
            )

        session_id = session_key(day)
        existing = await self.load(session_id)
        if existing is not None and existing.status != SessionStatus.SCHEDULED:
            raise SessionStateError(
                f"The {self.kind.value} for {session_id} is already "
                f"'{existing.status.value}' and cannot be rescheduled."
            )

        session = SessionRecord(
            id=session_id,
            status=SessionStatus.SCHEDULED,
            scheduled_time=scheduled_local.astimezone(timezone.utc),
            scheduled_by=actor.display_name or actor.email,
        )
        logger.info(
            "%s %s scheduled for %s by %s",
            self.kind.value,
            session_id,
            scheduled_local.isoformat(),
            actor.uid,
        )
        return await self._save(session)

    async def start(self, actor: Identity, session_id: Optional[str] = None) -> SessionRecord:
        """
        Move a scheduled session to ``active`` and seed everyone as Missed.
        """
        self._require_admin(actor, "start")
        session_id = session_id or self.today_key()
        session = await self._require_status(session_id, SessionStatus.SCHEDULED, "start")

        employees = await self.gateway.list_employees()
        started = session.model_copy(
            update={
                "status": SessionStatus.ACTIVE,
                "started_at": self.clock(),
                "temp_attendance": {e.uid: AttendanceStatus.MISSED for e in employees},
                "absence_reasons": {},
            }
        )
        logger.info(
            "%s %s started by %s with %d employees",
            self.kind.value,
            session_id,
            actor.uid,
            len(employees),
        )
        return await self._save(started)

    async def set_attendance(
        self,
        actor: Identity,
        employee_uid: str,
        status: AttendanceStatus,
        reason: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> SessionRecord:
        """
        Update one employee's working status while the session is active.
        """
        self._require_admin(actor, "mark attendance in")
        reason = require_reason(status, reason)

        session_id = session_id or self.today_key()
        session = await self._require_status(session_id, SessionStatus.ACTIVE, "mark attendance")

        employee = await self.gateway.get_employee(employee_uid)
        if employee is None or employee.archived:
            raise NotFoundError(f"Employee with uid={employee_uid} not found.")

        temp = dict(session.temp_attendance)
        temp[employee_uid] = status
        reasons = dict(session.absence_reasons)
        if reason is None:
            reasons.pop(employee_uid, None)
        else:
            reasons[employee_uid] = reason

        updated = session.model_copy(
            update={"temp_attendance": temp, "absence_reasons": reasons}
        )
        return await self._save(updated)

    async def stop(self, actor: Identity, session_id: Optional[str] = None) -> StopResult:
        """
        End an active session, writing one attendance record per employee.

        Employees never marked during the session are recorded as Missed.
        """
        self._require_admin(actor, "stop")
        session_id = session_id or self.today_key()
        session = await self._require_status(session_id, SessionStatus.ACTIVE, "stop")

        employees = await self.gateway.list_employees()
        now = self.clock()
        records = [
            _final_record(session, employee, now)
            for employee in employees
        ]

        ended = session.model_copy(
            update={
                "status": SessionStatus.ENDED,
                "ended_at": now,
                "temp_attendance": {},
                "absence_reasons": {},
            }
        )
        await self.gateway.end_session(self.kind, ended, records)
        await self._publish(session_id)

        logger.info(
            "%s %s ended by %s; %d attendance records written",
            self.kind.value,
            session_id,
            actor.uid,
            len(records),
        )
        return StopResult(session=ended, records=records)

    async def edit_final_attendance(
        self,
        actor: Identity,
        session_id: str,
        employee_uid: str,
        status: AttendanceStatus,
        reason: Optional[str] = None,
    ) -> AttendanceRecordRead:
        """
        Admin correction of a saved record after a standup has ended.
        """
        self._require_admin(actor, "edit attendance of")
        if self.kind != SessionKind.STANDUP:
            raise SessionStateError("Attendance of an ended learning hour is read-only.")
        reason = require_reason(status, reason)

        await self._require_status(session_id, SessionStatus.ENDED, "edit attendance")

        record_id = attendance_key(session_id, employee_uid)
        records: Dict[str, AttendanceRecordRead] = {
            r.id: r for r in await self.gateway.list_attendance(self.kind, session_id)
        }
        existing = records.get(record_id)
        if existing is None:
            raise NotFoundError(f"No attendance record for {employee_uid} in {session_id}.")

        updated = await self.gateway.update_attendance_record(
            self.kind,
            existing.model_copy(
                update={"status": status, "reason": reason, "marked_at": self.clock()}
            ),
        )
        await self._publish(session_id)
        return updated


def _live_roster(employees: List[EmployeeRead], session: SessionRecord) -> List[RosterEntry]:
    return [
        RosterEntry(
            employee_uid=e.uid,
            name=e.name,
            email=e.email,
            employee_code=e.employee_id,
            status=session.temp_attendance.get(e.uid, AttendanceStatus.MISSED),
            reason=session.absence_reasons.get(e.uid),
        )
        for e in employees
    ]


def _final_record(
    session: SessionRecord,
    employee: EmployeeRead,
    marked_at: datetime,
) -> AttendanceRecordRead:
    status = session.temp_attendance.get(employee.uid, AttendanceStatus.MISSED)
    reason = None
    if status == AttendanceStatus.NOT_AVAILABLE:
        reason = session.absence_reasons.get(employee.uid) or NO_REASON_PLACEHOLDER
    return AttendanceRecordRead(
        id=attendance_key(session.id, employee.uid),
        session_id=session.id,
        employee_uid=employee.uid,
        employee_name=employee.name,
        employee_email=employee.email,
        employee_code=employee.employee_id,
        status=status,
        reason=reason,
        scheduled_at=session.scheduled_time,
        marked_at=marked_at,
    )
