# standup_sync/services/feedback_view.py
from __future__ import annotations

import logging
from datetime import date as date_type, datetime, timezone
from typing import Any, Dict, Optional

from standup_sync.core.exceptions import RemoteCallError, ValidationError
from standup_sync.schemas.feedback import (
    ChartKind,
    FeedbackFilter,
    FeedbackMode,
    FeedbackSummary,
    FeedbackViewState,
    FeedbackViewStatus,
)
from standup_sync.services.gateway import RemoteDataGateway

logger = logging.getLogger(__name__)

EMPTY_MESSAGE = "No feedback data found for this period."
ERROR_MESSAGE = "Failed to load your feedback summary. Please try refreshing."


def first_of_month_utc(day: date_type) -> str:
    """
    ISO timestamp of midnight UTC on the first day of ``day``'s month,
    e.g. ``2024-03-01T00:00:00.000Z``.
    """
    start = datetime(day.year, day.month, 1, tzinfo=timezone.utc)
    return start.strftime("%Y-%m-%dT%H:%M:%S.000Z")


def build_feedback_request(
    employee_id: str,
    feedback_filter: FeedbackFilter,
    today: date_type,
) -> Dict[str, Any]:
    """
    Translate a filter selection into one ``getFeedbackSummary`` payload.

    Rules
    -----
    - daily    -> ``date`` (defaults to today)
    - specific -> ``date``
    - monthly  -> ``date`` = first-of-month UTC timestamp
    - range    -> ``startDate`` / ``endDate``, inclusive, ordered
    - full     -> no date bounds
    """
    if not feedback_filter.can_apply:
        raise ValidationError(
            "Choose two different dates for a range."
            if feedback_filter.mode == FeedbackMode.RANGE
            else "Choose a date for this filter."
        )

    payload: Dict[str, Any] = {
        "employeeId": employee_id,
        "timeFrame": feedback_filter.mode.value,
    }

    mode = feedback_filter.mode
    if mode == FeedbackMode.DAILY:
        payload["date"] = (feedback_filter.date or today).isoformat()
    elif mode == FeedbackMode.SPECIFIC:
        payload["date"] = feedback_filter.date.isoformat()
    elif mode == FeedbackMode.MONTHLY:
        payload["date"] = first_of_month_utc(feedback_filter.date or today)
    elif mode == FeedbackMode.RANGE:
        start, end = feedback_filter.date_range.start, feedback_filter.date_range.end
        if end < start:
            start, end = end, start
        payload["startDate"] = start.isoformat()
        payload["endDate"] = end.isoformat()

    return payload


def render_summary(summary: FeedbackSummary) -> FeedbackViewState:
    """
    Pick the renderer for a summary: bar for a single bucket, line for a
    series, and the explicit empty state when nothing was submitted.
    """
    if summary.total_feedbacks == 0:
        return FeedbackViewState(status=FeedbackViewStatus.EMPTY, message=EMPTY_MESSAGE)

    chart = ChartKind.LINE if summary.graph_timeseries is not None else ChartKind.BAR

    return FeedbackViewState(status=FeedbackViewStatus.READY, chart=chart, summary=summary)


class FeedbackFilterView:
    """
    Feedback dashboard state for one employee.

    Every ``apply`` captures a generation number before awaiting the remote
    call. A response is applied only if its generation is still the latest,
    so a slow earlier request can never overwrite a faster later one.
    """

    def __init__(
        self,
        gateway: RemoteDataGateway,
        employee_id: str,
        today: date_type,
    ) -> None:
        self.gateway = gateway
        self.employee_id = employee_id
        self.today = today
        self.state = FeedbackViewState(status=FeedbackViewStatus.LOADING)
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    async def apply(self, feedback_filter: FeedbackFilter) -> Optional[FeedbackViewState]:
        """
        Request a summary for ``feedback_filter`` and update the view state.

        Returns the applied state, or None when the response was superseded.
        Filter validation errors propagate before any request is issued.
        """
        payload = build_feedback_request(self.employee_id, feedback_filter, self.today)

        self._generation += 1
        generation = self._generation
        self.state = FeedbackViewState(status=FeedbackViewStatus.LOADING)

        try:
            summary = await self.gateway.get_feedback_summary(payload)
            state = render_summary(summary)
        except RemoteCallError as exc:
            logger.error("Feedback summary for %s failed: %s", self.employee_id, exc)
            state = FeedbackViewState(status=FeedbackViewStatus.ERROR, message=ERROR_MESSAGE)

        if generation != self._generation:
            logger.debug(
                "Discarding feedback response %d; latest request is %d",
                generation,
                self._generation,
            )
            return None

        self.state = state
        return state
