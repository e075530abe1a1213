# standup_sync/api/routes/internal.py
from http import HTTPStatus

from fastapi import APIRouter, Depends

from standup_sync.api.dependencies.identity import verify_internal_api_key
from standup_sync.api.dependencies.services import get_standup_automation
from standup_sync.api.errors import to_http_exception
from standup_sync.core.exceptions import DomainError
from standup_sync.schemas.automation import AutomationTickResult
from standup_sync.services.standup_automation import StandupAutomation

router = APIRouter(
    prefix="/internal",
    tags=["Internal"],
    dependencies=[Depends(verify_internal_api_key)],
)


@router.post(
    "/standups/automation-tick",
    response_model=AutomationTickResult,
    status_code=HTTPStatus.OK,
    summary="Advance today's automated standup",
    description=(
        "Applies whichever automation step is due right now:\n\n"
        "- before the start time, schedule today's standup\n"
        "- from the start time, start it\n"
        "- from the end time, end it and record unmarked employees as Missed\n\n"
        "Sundays are skipped. Intended for a cron job calling every minute when "
        "the in-process loop (`STANDUP_AUTOMATION_ENABLED`) is off. Protected via "
        "the `X-Internal-Api-Key` header when configured."
    ),
    responses={
        401: {"description": "Missing or invalid internal API key (if configured)."},
        409: {"description": "An admin changed the session during the tick."},
    },
)
async def standup_automation_tick(
    automation: StandupAutomation = Depends(get_standup_automation),
) -> AutomationTickResult:
    try:
        return await automation.tick()
    except DomainError as exc:
        raise to_http_exception(exc) from exc
