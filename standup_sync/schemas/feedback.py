# standup_sync/schemas/feedback.py
from __future__ import annotations

from datetime import date as date_type
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class FeedbackMode(str, Enum):
    """
    Aggregation window requested from the feedback summary function.
    """

    DAILY = "daily"
    MONTHLY = "monthly"
    SPECIFIC = "specific"
    RANGE = "range"
    FULL = "full"


class DateRange(BaseModel):
    start: date_type | None = None
    end: date_type | None = None


class FeedbackFilter(BaseModel):
    """
    User-selected time window for the feedback dashboard.
    """

    mode: FeedbackMode
    date: date_type | None = None
    date_range: DateRange | None = None

    @classmethod
    def monthly(cls, year: int, month: int) -> "FeedbackFilter":
        """
        Build a monthly filter; the date is always pinned to the first day.
        """
        return cls(mode=FeedbackMode.MONTHLY, date=date_type(year, month, 1))

    @property
    def can_apply(self) -> bool:
        """
        Whether the filter is complete enough to issue a request.

        A range needs both bounds chosen and distinct.
        """
        if self.mode == FeedbackMode.RANGE:
            rng = self.date_range
            return bool(
                rng is not None
                and rng.start is not None
                and rng.end is not None
                and rng.start != rng.end
            )
        if self.mode == FeedbackMode.SPECIFIC:
            return self.date is not None
        return True


# --------------------------------------------------------------------------
# Response schemas of getFeedbackSummary
# --------------------------------------------------------------------------

class GraphData(BaseModel):
    """
    Single-bucket aggregate, rendered as a bar chart.
    """

    total_feedbacks: int = Field(0, alias="totalFeedbacks")
    avg_understanding: float = Field(..., alias="avgUnderstanding")
    avg_instructor: float = Field(..., alias="avgInstructor")

    class Config:
        populate_by_name = True


class GraphTimeseries(BaseModel):
    """
    Per-day series, rendered as a line chart. Days without feedback are null.
    """

    labels: list[str]
    understanding: list[float | None]
    instructor: list[float | None]

    @model_validator(mode="after")
    def _series_aligned(self) -> "GraphTimeseries":
        if not (len(self.labels) == len(self.understanding) == len(self.instructor)):
            raise ValueError("labels, understanding and instructor must have equal length")
        return self


class PositiveFeedback(BaseModel):
    quote: str
    keywords: list[str] = Field(default_factory=list)


class ImprovementArea(BaseModel):
    theme: str
    suggestion: str


class FeedbackSummary(BaseModel):
    """
    Parsed response of the ``getFeedbackSummary`` callable function.

    At most one of ``graph_data`` / ``graph_timeseries`` may be present, and
    a summary with feedback must carry one of them.
    """

    total_feedbacks: int = Field(0, alias="totalFeedbacks", ge=0)
    graph_data: GraphData | None = Field(None, alias="graphData")
    graph_timeseries: GraphTimeseries | None = Field(None, alias="graphTimeseries")
    positive_feedback: list[PositiveFeedback] = Field(
        default_factory=list, alias="positiveFeedback"
    )
    improvement_areas: list[ImprovementArea] = Field(
        default_factory=list, alias="improvementAreas"
    )

    @model_validator(mode="after")
    def _one_renderer_when_counted(self) -> "FeedbackSummary":
        if self.graph_data is not None and self.graph_timeseries is not None:
            raise ValueError("graphData and graphTimeseries are mutually exclusive")
        if self.total_feedbacks > 0 and self.graph_data is None and self.graph_timeseries is None:
            raise ValueError("a summary with feedback needs graphData or graphTimeseries")
        return self

    class Config:
        populate_by_name = True


class FeedbackViewStatus(str, Enum):
    LOADING = "loading"
    EMPTY = "empty"
    READY = "ready"
    ERROR = "error"


class ChartKind(str, Enum):
    BAR = "bar"
    LINE = "line"


class FeedbackViewState(BaseModel):
    status: FeedbackViewStatus
    chart: ChartKind | None = None
    message: str | None = None
    summary: FeedbackSummary | None = None
