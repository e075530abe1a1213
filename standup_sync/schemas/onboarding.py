# standup_sync/schemas/onboarding.py
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class OnboardingStatusValue(str, Enum):
    IN_PROGRESS = "INPROGRESS"
    COMPLETED = "COMPLETED"


class OnboardingStatusRead(BaseModel):
    uid: str
    onboarding_status: OnboardingStatusValue
    started_at: datetime
    completed_at: datetime | None = None

    class Config:
        from_attributes = True


class Resource(BaseModel):
    label: str
    url: str
    note: str | None = None


class QuestionRead(BaseModel):
    """
    Assessment question as shown to the employee (without the answer).
    """

    question: str
    options: list[str]


class OnboardingContent(BaseModel):
    status: OnboardingStatusRead
    video_url: str
    resources: list[Resource]
    checklist_items: list[str]
    questions: list[QuestionRead]


class AssessmentSubmission(BaseModel):
    answers: list[str | None] = Field(
        ...,
        description="Chosen option per question, in question order.",
    )


class AssessmentResult(BaseModel):
    correct: int
    total: int
    score: float = Field(..., description="Percentage of correct answers.", example=60.0)
    passed: bool


class OnboardingProgress(BaseModel):
    """
    Wizard state submitted when the employee presses Submit.

    The service replays it through the wizard gates before persisting.
    """

    max_video_progress: float = Field(
        ...,
        ge=0,
        le=100,
        description="Highest playback progress observed, in percent.",
    )
    visited_resources: list[str] = Field(default_factory=list)
    checked_items: list[str] = Field(default_factory=list)
    assessment_answers: list[str | None] | None = Field(
        default=None,
        description="Answers of the latest assessment attempt, if any.",
    )
