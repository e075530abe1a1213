# standup_sync/services/standup_automation.py
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta

from standup_sync.core.clock import session_key
from standup_sync.core.config import get_settings
from standup_sync.db.session import AsyncSessionLocal
from standup_sync.schemas.automation import AutomationAction, AutomationTickResult
from standup_sync.schemas.identity import Identity
from standup_sync.schemas.session import SessionKind, SessionStatus
from standup_sync.services.gateway import RemoteDataGateway
from standup_sync.services.session_events import get_broadcaster
from standup_sync.services.session_lifecycle import SessionLifecycleController, parse_session_time
from standup_sync.services.sheet_sync import sync_attendance_to_sheet

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = Identity(
    uid="system",
    display_name="System Automation",
    is_admin=True,
)

SUNDAY = 6


class StandupAutomation:
    """
    Runs today's standup without an admin.

    Rules (local time, Monday to Saturday)
    -----
    1) No session yet, before the start time        => schedule it at the start time
    2) Scheduled, its time reached, before the end  => start it
    3) Active, started before the end, end reached  => end it; unmarked employees
                                                       are written as Missed
    Sundays are skipped. A session an admin scheduled for later than the end
    time is left for the admin to run.
    """

    def __init__(
        self,
        controller: SessionLifecycleController,
        start_time: str = "09:00",
        duration_minutes: int = 15,
    ) -> None:
        if controller.kind != SessionKind.STANDUP:
            raise ValueError("Automation only runs standups.")
        self.controller = controller
        self.start_time = parse_session_time(start_time)
        self.duration = timedelta(minutes=duration_minutes)

    async def tick(self) -> AutomationTickResult:
        now = self.controller.clock()
        local = now.astimezone(self.controller.tz)
        day = local.date()
        session_id = session_key(day)

        if local.weekday() == SUNDAY:
            return AutomationTickResult(session_id=session_id, action=AutomationAction.SKIPPED)

        start_at = datetime.combine(day, self.start_time, tzinfo=self.controller.tz)
        end_at = start_at + self.duration
        session = await self.controller.load(session_id)

        if session is None:
            if local >= start_at:
                return AutomationTickResult(session_id=session_id, action=AutomationAction.IDLE)
            await self.controller.schedule(
                SYSTEM_ACTOR, day, self.start_time.strftime("%H:%M")
            )
            return AutomationTickResult(session_id=session_id, action=AutomationAction.SCHEDULED)

        if session.status == SessionStatus.SCHEDULED:
            if session.scheduled_time <= now < end_at:
                await self.controller.start(SYSTEM_ACTOR, session_id)
                return AutomationTickResult(session_id=session_id, action=AutomationAction.STARTED)

        elif session.status == SessionStatus.ACTIVE:
            started_in_window = session.started_at is not None and session.started_at < end_at
            if started_in_window and now >= end_at:
                result = await self.controller.stop(SYSTEM_ACTOR, session_id)
                await sync_attendance_to_sheet(SessionKind.STANDUP, result.records)
                return AutomationTickResult(
                    session_id=session_id,
                    action=AutomationAction.ENDED,
                    records_written=len(result.records),
                )

        return AutomationTickResult(session_id=session_id, action=AutomationAction.IDLE)


async def run_automation_loop(interval_seconds: float) -> None:
    """
    Tick the standup automation forever, one database session per tick.

    A failing tick is logged and retried on the next interval.
    """
    settings = get_settings()
    while True:
        try:
            async with AsyncSessionLocal() as db:
                controller = SessionLifecycleController(
                    gateway=RemoteDataGateway(db),
                    kind=SessionKind.STANDUP,
                    tz=settings.tz,
                    broadcaster=get_broadcaster(),
                )
                automation = StandupAutomation(
                    controller,
                    start_time=settings.STANDUP_AUTO_START_TIME,
                    duration_minutes=settings.STANDUP_AUTO_DURATION_MINUTES,
                )
                result = await automation.tick()
            if result.action not in (AutomationAction.IDLE, AutomationAction.SKIPPED):
                logger.info("Standup automation %s %s", result.action.value, result.session_id)
        except Exception:
            logger.exception("Standup automation tick failed")
        await asyncio.sleep(interval_seconds)
