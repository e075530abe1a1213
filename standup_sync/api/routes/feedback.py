# standup_sync/api/routes/feedback.py
from datetime import date as date_type
from http import HTTPStatus
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from standup_sync.api.dependencies.identity import get_identity
from standup_sync.api.dependencies.services import get_clock, get_gateway
from standup_sync.api.errors import to_http_exception
from standup_sync.core.clock import Clock
from standup_sync.core.config import get_settings
from standup_sync.core.exceptions import DomainError
from standup_sync.schemas.feedback import (
    DateRange,
    FeedbackFilter,
    FeedbackMode,
    FeedbackViewState,
    FeedbackViewStatus,
)
from standup_sync.schemas.identity import Identity
from standup_sync.services.feedback_view import FeedbackFilterView
from standup_sync.services.gateway import RemoteDataGateway

router = APIRouter(
    prefix="/feedback",
    tags=["Feedback"],
)


@router.get(
    "/summary",
    response_model=FeedbackViewState,
    status_code=HTTPStatus.OK,
    summary="Aggregated student feedback for an employee",
    description=(
        "Issue one `getFeedbackSummary` call for the selected window and return "
        "the dashboard state.\n\n"
        "Modes:\n"
        "- `daily`: `date`, defaults to today\n"
        "- `specific`: `date` is required\n"
        "- `monthly`: month of `date` (defaults to this month)\n"
        "- `range`: `start_date` and `end_date`, distinct, inclusive\n"
        "- `full`: all feedback\n\n"
        "A zero count yields the `empty` state; a single bucket renders as a "
        "`bar` chart and a per-day series as a `line` chart. Only admins may "
        "query another employee.\n\n"
        "Each request is answered on its own. Discarding a superseded response "
        "only happens inside one dashboard view as the filter changes, so a "
        "client that fires overlapping requests must keep the latest one itself."
    ),
    responses={
        400: {"description": "Incomplete filter, e.g. a range with one bound."},
        403: {"description": "Non-admin asking for someone else's feedback."},
        502: {"description": "The feedback function failed or returned malformed data."},
    },
)
async def get_feedback_summary(
    mode: FeedbackMode = Query(FeedbackMode.DAILY, example="monthly"),
    date: Optional[date_type] = Query(default=None, example="2024-03-01"),
    start_date: Optional[date_type] = Query(default=None),
    end_date: Optional[date_type] = Query(default=None),
    employee_id: Optional[str] = Query(
        default=None,
        description="Employee uid; defaults to the caller.",
    ),
    identity: Identity = Depends(get_identity),
    gateway: RemoteDataGateway = Depends(get_gateway),
    clock: Clock = Depends(get_clock),
) -> FeedbackViewState:
    target = employee_id or identity.uid
    if target != identity.uid and not identity.is_admin:
        raise HTTPException(
            status_code=HTTPStatus.FORBIDDEN,
            detail="Only admins can view another employee's feedback.",
        )

    if mode == FeedbackMode.MONTHLY:
        anchor = date or clock().astimezone(get_settings().tz).date()
        feedback_filter = FeedbackFilter.monthly(anchor.year, anchor.month)
    else:
        feedback_filter = FeedbackFilter(
            mode=mode,
            date=date,
            date_range=DateRange(start=start_date, end=end_date)
            if mode == FeedbackMode.RANGE
            else None,
        )

    view = FeedbackFilterView(
        gateway=gateway,
        employee_id=target,
        today=clock().astimezone(get_settings().tz).date(),
    )
    try:
        state = await view.apply(feedback_filter)
    except DomainError as exc:
        raise to_http_exception(exc) from exc

    if state.status == FeedbackViewStatus.ERROR:
        raise HTTPException(status_code=HTTPStatus.BAD_GATEWAY, detail=state.message)
    return state
