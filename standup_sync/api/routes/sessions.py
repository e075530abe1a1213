# standup_sync/api/routes/sessions.py
import json
import logging
from http import HTTPStatus
from typing import AsyncIterator, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from fastapi.responses import StreamingResponse

from standup_sync.api.dependencies.identity import get_identity
from standup_sync.api.dependencies.services import session_controller
from standup_sync.api.errors import to_http_exception
from standup_sync.core.exceptions import DomainError
from standup_sync.schemas.identity import Identity
from standup_sync.schemas.session import (
    AttendanceMark,
    AttendanceRecordRead,
    AttendanceStatus,
    ScheduleRequest,
    SessionKind,
    SessionRecord,
    SessionView,
    StopResult,
)
from standup_sync.services.session_events import get_broadcaster
from standup_sync.services.session_lifecycle import SessionLifecycleController
from standup_sync.services.sheet_sync import sync_attendance_to_sheet

logger = logging.getLogger(__name__)

STREAM_ERROR_MESSAGE = "Could not load session."

_STATE_RESPONSES = {
    400: {"description": "Invalid input, e.g. a malformed time or a missing reason."},
    401: {"description": "No identity headers, or a wrong internal API key."},
    403: {"description": "The caller is not an admin."},
    409: {"description": "The session is not in the state this transition requires."},
}


def _sse(event: str, data: str) -> str:
    return f"event: {event}\ndata: {data}\n\n"


async def _error_stream() -> AsyncIterator[str]:
    yield _sse("error", json.dumps({"message": STREAM_ERROR_MESSAGE}))


def build_session_router(kind: SessionKind, prefix: str, tag: str) -> APIRouter:
    """
    Router exposing the lifecycle of one session kind.

    Standups and learning hours share every endpoint; only standups allow
    editing attendance after the session has ended.
    """
    router = APIRouter(prefix=prefix, tags=[tag])
    get_controller = session_controller(kind)
    label = "standup" if kind == SessionKind.STANDUP else "learning hour"

    @router.get(
        "/today",
        response_model=SessionView,
        summary=f"Today's {label}",
        description=(
            "Role-shaped view of today's session.\n\n"
            "- Admins get the live roster while the session is active.\n"
            "- Everyone else sees only a progress message until it ends.\n"
            "- After it ends, the final roster is visible to all, read-only.\n\n"
            "`status` and `q` filter the roster; `q` matches name or email."
        ),
        responses={401: _STATE_RESPONSES[401]},
    )
    async def get_today(
        status: Optional[AttendanceStatus] = Query(default=None, example="Present"),
        q: Optional[str] = Query(default=None, description="Name/email substring."),
        identity: Identity = Depends(get_identity),
        controller: SessionLifecycleController = Depends(get_controller),
    ) -> SessionView:
        try:
            return await controller.view(identity, status_filter=status, search=q)
        except DomainError as exc:
            raise to_http_exception(exc) from exc

    @router.get(
        "/today/events",
        summary=f"Live updates of today's {label}",
        description=(
            "Server-sent events. The first `session` event carries the current "
            "view; each state change pushes a new one. A failing subscription "
            "emits a single `error` event and closes the stream."
        ),
        response_class=StreamingResponse,
    )
    async def stream_today(
        request: Request,
        identity: Identity = Depends(get_identity),
        controller: SessionLifecycleController = Depends(get_controller),
    ) -> StreamingResponse:
        session_id = controller.today_key()
        broadcaster = get_broadcaster()

        # Subscribe before the initial read; writes landing in between queue up.
        queue = broadcaster.subscribe(kind, session_id)
        try:
            initial = await controller.view(identity, session_id)
        except DomainError as exc:
            broadcaster.unsubscribe(kind, session_id, queue)
            raise to_http_exception(exc) from exc
        except Exception:
            broadcaster.unsubscribe(kind, session_id, queue)
            logger.exception("Could not load %s %s for the live stream", kind.value, session_id)
            return StreamingResponse(_error_stream(), media_type="text/event-stream")

        async def event_source() -> AsyncIterator[str]:
            try:
                yield _sse("session", initial.model_dump_json())
                async for view in broadcaster.iter_views(
                    kind, session_id, queue, identity.is_admin
                ):
                    if await request.is_disconnected():
                        break
                    yield _sse("session", view.model_dump_json())
            except Exception:
                logger.exception("Live %s stream for %s failed", kind.value, session_id)
                yield _sse("error", json.dumps({"message": STREAM_ERROR_MESSAGE}))
            finally:
                broadcaster.unsubscribe(kind, session_id, queue)

        return StreamingResponse(event_source(), media_type="text/event-stream")

    @router.get(
        "/{session_id}",
        response_model=SessionView,
        summary=f"A {label} by day",
        description="Same view as `/today` for an arbitrary `YYYY-MM-DD` session id.",
    )
    async def get_session(
        session_id: str,
        status: Optional[AttendanceStatus] = Query(default=None),
        q: Optional[str] = Query(default=None),
        identity: Identity = Depends(get_identity),
        controller: SessionLifecycleController = Depends(get_controller),
    ) -> SessionView:
        try:
            return await controller.view(identity, session_id, status_filter=status, search=q)
        except DomainError as exc:
            raise to_http_exception(exc) from exc

    @router.post(
        "/schedule",
        response_model=SessionRecord,
        status_code=HTTPStatus.CREATED,
        summary=f"Schedule a {label}",
        description=(
            "Create or overwrite the session for `date` at `time` (24-hour, "
            "interpreted in the configured timezone). The time must not be in "
            "the past. A session already started or ended cannot be rescheduled."
        ),
        responses=_STATE_RESPONSES,
    )
    async def schedule(
        payload: ScheduleRequest,
        identity: Identity = Depends(get_identity),
        controller: SessionLifecycleController = Depends(get_controller),
    ) -> SessionRecord:
        try:
            return await controller.schedule(identity, payload.date, payload.time)
        except DomainError as exc:
            raise to_http_exception(exc) from exc

    @router.post(
        "/today/start",
        response_model=SessionRecord,
        summary=f"Start today's {label}",
        description="Transition scheduled -> active. Every employee starts as Missed.",
        responses=_STATE_RESPONSES,
    )
    async def start(
        identity: Identity = Depends(get_identity),
        controller: SessionLifecycleController = Depends(get_controller),
    ) -> SessionRecord:
        try:
            return await controller.start(identity)
        except DomainError as exc:
            raise to_http_exception(exc) from exc

    @router.put(
        "/today/attendance/{employee_uid}",
        response_model=SessionRecord,
        summary="Mark an employee during the session",
        description="Only while the session is active. 'Not Available' requires a reason.",
        responses={**_STATE_RESPONSES, 404: {"description": "Unknown or archived employee."}},
    )
    async def mark_attendance(
        employee_uid: str,
        payload: AttendanceMark,
        identity: Identity = Depends(get_identity),
        controller: SessionLifecycleController = Depends(get_controller),
    ) -> SessionRecord:
        try:
            return await controller.set_attendance(
                identity,
                employee_uid,
                payload.status,
                payload.reason,
            )
        except DomainError as exc:
            raise to_http_exception(exc) from exc

    @router.post(
        "/today/stop",
        response_model=StopResult,
        summary=f"End today's {label}",
        description=(
            "Transition active -> ended and persist one attendance record per "
            "employee in the same transaction. Unmarked employees are recorded "
            "as Missed. Records are then pushed to the spreadsheet webhook in "
            "the background, if configured."
        ),
        responses=_STATE_RESPONSES,
    )
    async def stop(
        background_tasks: BackgroundTasks,
        identity: Identity = Depends(get_identity),
        controller: SessionLifecycleController = Depends(get_controller),
    ) -> StopResult:
        try:
            result = await controller.stop(identity)
        except DomainError as exc:
            raise to_http_exception(exc) from exc
        background_tasks.add_task(sync_attendance_to_sheet, kind, result.records)
        return result

    if kind == SessionKind.STANDUP:

        @router.put(
            "/{session_id}/attendance/{employee_uid}",
            response_model=AttendanceRecordRead,
            summary="Correct final attendance",
            description="Admin edit of one record after the standup has ended.",
            responses={**_STATE_RESPONSES, 404: {"description": "No such record."}},
        )
        async def edit_final_attendance(
            session_id: str,
            employee_uid: str,
            payload: AttendanceMark,
            identity: Identity = Depends(get_identity),
            controller: SessionLifecycleController = Depends(get_controller),
        ) -> AttendanceRecordRead:
            try:
                return await controller.edit_final_attendance(
                    identity,
                    session_id,
                    employee_uid,
                    payload.status,
                    payload.reason,
                )
            except DomainError as exc:
                raise to_http_exception(exc) from exc

    return router


standups_router = build_session_router(SessionKind.STANDUP, "/standups", "Standups")
learning_hours_router = build_session_router(
    SessionKind.LEARNING_HOUR, "/learning-hours", "Learning Hours"
)
