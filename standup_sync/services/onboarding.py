# standup_sync/services/onboarding.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Set

from standup_sync.core.clock import Clock, utc_now
from standup_sync.core.exceptions import ValidationError
from standup_sync.schemas.onboarding import (
    AssessmentResult,
    OnboardingContent,
    OnboardingProgress,
    OnboardingStatusRead,
    OnboardingStatusValue,
    QuestionRead,
    Resource,
)
from standup_sync.services.gateway import RemoteDataGateway

logger = logging.getLogger(__name__)

VIDEO_COMPLETION_THRESHOLD = 80.0
ASSESSMENT_PASS_SCORE = 50.0
VIDEO_POLL_INTERVAL_SECONDS = 1.0

TRAINING_VIDEO_URL = "https://www.youtube.com/watch?v=7k6dHwZTNs0"
WATCHED_VIDEO_ITEM = "Watched training video"


@dataclass(frozen=True)
class Question:
    question: str
    options: Sequence[str]
    answer: str


RESOURCES: List[Resource] = [
    Resource(label="Learning Portal", url="https://learning.ccbp.in/"),
    Resource(
        label="Instructor Handbook",
        url="https://abhinavd.gitbook.io/niat-offline-instructor-handbook/",
    ),
    Resource(
        label="Daily Schedule",
        url="https://docs.google.com/spreadsheets/d/1gNDLTXyDETmJGY4dlX2ZWUF4YTxjQ3DVzuWPmnhHFuk/edit",
    ),
    Resource(
        label="Instructor Worklog Sheet",
        url="https://docs.google.com/spreadsheets/d/1FzF9RaAL9LnAGTSHKRquntCU7zK-aNPzbSE-bOfJ19w/edit",
    ),
    Resource(
        label="Session Count Tracker",
        url="https://docs.google.com/spreadsheets/d/1uhYNuDrvj0MWC2mfWQQPS2YYdiF_5u_3obyhuI983B8/edit",
    ),
    Resource(
        label="Session Progress Tracker",
        url="https://docs.google.com/spreadsheets/d/10DRKIDUMj0YKsq3LngO69xoCCEfdl_nLIxIy0Ju0SdA/edit",
    ),
    Resource(
        label="Learning Hours Sheet",
        url="https://docs.google.com/spreadsheets/d/1RIEItNyirXEN_apxmYOlWaV5-rrTxJucyz6-kDu9dWA/edit",
    ),
    Resource(
        label="Monthly Goal Planning Doc Template",
        url="https://docs.google.com/spreadsheets/d/1Imx7XMuIA-FPwZfX7r2rYnoCsDEpsPYaFNDB7bakFbg/edit",
    ),
]

STANDARD_CHECKLIST_ITEMS: List[str] = [
    "Visited all documentation links",
    "Joined WhatsApp & Teams groups",
    "Reviewed daily & worklog sheets",
]

CHECKLIST_ITEMS: List[str] = STANDARD_CHECKLIST_ITEMS + [WATCHED_VIDEO_ITEM]

QUESTIONS: List[Question] = [
    Question(
        question="What are the responsibilities and expectations from a Tech Educator?",
        options=(
            "Simplify complex concepts",
            "Be thorough with the standard practices and guidelines",
            "Work with different teams to ensure quality",
            "All of the above",
        ),
        answer="All of the above",
    ),
    Question(
        question="Which statement is incorrect?",
        options=(
            "Assume that the users are completely new to the topic",
            "Explain every Technical term",
            "Change the facts",
            "Clearly understand the intent and meaning",
        ),
        answer="Change the facts",
    ),
    Question(
        question="What are the requirements for recording?",
        options=("Laptop", "Dark Background", "Noisy place", "None of the above"),
        answer="Laptop",
    ),
    Question(
        question="How to ensure good session delivery?",
        options=(
            "Content & Explanation",
            "Body language & Tonality",
            "Speaker Tips",
            "All of the above",
        ),
        answer="All of the above",
    ),
    Question(
        question="Choose the correct statement.",
        options=(
            "Maintain a fast pace",
            "Summarize after every section",
            "It is ok to pronounce the word in not so clear way",
            "Make it sound complicated",
        ),
        answer="Summarize after every section",
    ),
]


class OnboardingStep(IntEnum):
    VIDEO = 1
    RESOURCES = 2
    CHECKLIST = 3


def score_assessment(
    answers: Sequence[Optional[str]],
    questions: Sequence[Question] = QUESTIONS,
) -> AssessmentResult:
    """
    Score an attempt as the percentage of correct answers.

    Missing trailing answers count as wrong.
    """
    total = len(questions)
    correct = sum(
        1
        for idx, q in enumerate(questions)
        if idx < len(answers) and answers[idx] == q.answer
    )
    score = (correct / total) * 100 if total else 0.0
    return AssessmentResult(
        correct=correct,
        total=total,
        score=round(score, 2),
        passed=score >= ASSESSMENT_PASS_SCORE,
    )


@dataclass
class OnboardingWizard:
    """
    Three-step linear onboarding flow: video, resources, checklist.

    Gates
    -----
    - Video: continue once playback progress has reached 80% at least once.
    - Resources: continue once every resource url has been visited.
    - Checklist: submit once every item is checked. The "watched training
      video" item is checked by the video gate and also needs one assessment
      attempt; the attempt does not have to pass.

    Going back keeps all answers; retaking the assessment replaces the score.
    """

    resources: Sequence[Resource] = field(default_factory=lambda: list(RESOURCES))
    standard_items: Sequence[str] = field(default_factory=lambda: list(STANDARD_CHECKLIST_ITEMS))
    questions: Sequence[Question] = field(default_factory=lambda: list(QUESTIONS))

    step: OnboardingStep = OnboardingStep.VIDEO
    video_watched: bool = False
    visited: Set[str] = field(default_factory=set)
    checked: Dict[str, bool] = field(default_factory=dict)
    assessment: Optional[AssessmentResult] = None

    # -- step 1 ---------------------------------------------------------

    def record_video_progress(self, percent: float) -> bool:
        """
        Record a playback progress sample; the watched flag never resets.
        """
        if percent >= VIDEO_COMPLETION_THRESHOLD:
            self.video_watched = True
        return self.video_watched

    @property
    def can_continue_from_video(self) -> bool:
        return self.video_watched

    # -- step 2 ---------------------------------------------------------

    def visit_resource(self, url: str) -> str:
        """
        Mark ``url`` as visited and return it for opening in a new tab.
        """
        if url not in {r.url for r in self.resources}:
            raise ValidationError(f"Unknown onboarding resource: {url}")
        self.visited.add(url)
        return url

    @property
    def can_continue_to_checklist(self) -> bool:
        return all(r.url in self.visited for r in self.resources)

    # -- step 3 ---------------------------------------------------------

    def toggle_item(self, item: str) -> bool:
        if item not in self.standard_items:
            raise ValidationError(f"Unknown checklist item: {item}")
        self.checked[item] = not self.checked.get(item, False)
        return self.checked[item]

    def take_assessment(self, answers: Sequence[Optional[str]]) -> AssessmentResult:
        self.assessment = score_assessment(answers, self.questions)
        return self.assessment

    @property
    def watched_item_checked(self) -> bool:
        return self.video_watched and self.assessment is not None

    @property
    def checklist_state(self) -> Dict[str, bool]:
        state = {item: self.checked.get(item, False) for item in self.standard_items}
        state[WATCHED_VIDEO_ITEM] = self.watched_item_checked
        return state

    @property
    def can_submit(self) -> bool:
        return self.video_watched and all(self.checklist_state.values())

    # -- navigation -----------------------------------------------------

    def next(self) -> OnboardingStep:
        if self.step == OnboardingStep.VIDEO and not self.can_continue_from_video:
            raise ValidationError("Please watch at least 80% of the video to proceed.")
        if self.step == OnboardingStep.RESOURCES and not self.can_continue_to_checklist:
            raise ValidationError("Please open every resource link to proceed.")
        if self.step < OnboardingStep.CHECKLIST:
            self.step = OnboardingStep(self.step + 1)
        return self.step

    def back(self) -> OnboardingStep:
        if self.step > OnboardingStep.VIDEO:
            self.step = OnboardingStep(self.step - 1)
        return self.step

    @classmethod
    def replay(cls, progress: OnboardingProgress) -> "OnboardingWizard":
        """
        Rebuild a wizard from submitted progress, walking every gate in order.
        """
        wizard = cls()
        wizard.record_video_progress(progress.max_video_progress)
        wizard.next()
        for url in progress.visited_resources:
            wizard.visit_resource(url)
        wizard.next()
        for item in progress.checked_items:
            if item == WATCHED_VIDEO_ITEM:
                continue
            if not wizard.checked.get(item, False):
                wizard.toggle_item(item)
        if progress.assessment_answers is not None:
            wizard.take_assessment(progress.assessment_answers)
        return wizard


async def poll_video_progress(
    wizard: OnboardingWizard,
    read_progress: Callable[[], Awaitable[float]],
    is_playing: Callable[[], Awaitable[bool]],
    interval: float = VIDEO_POLL_INTERVAL_SECONDS,
    max_polls: Optional[int] = None,
) -> bool:
    """
    Sample playback progress once per ``interval`` while the video plays,
    stopping as soon as the completion threshold has been crossed.
    """
    polls = 0
    while not wizard.video_watched:
        if max_polls is not None and polls >= max_polls:
            break
        polls += 1
        if await is_playing():
            wizard.record_video_progress(await read_progress())
            if wizard.video_watched:
                break
        await asyncio.sleep(interval)
    return wizard.video_watched


class OnboardingService:
    """
    Persists onboarding status around the stateless wizard gates.
    """

    def __init__(self, gateway: RemoteDataGateway, clock: Clock = utc_now) -> None:
        self.gateway = gateway
        self.clock = clock

    async def get_or_start(self, uid: str) -> OnboardingStatusRead:
        """
        Return the status document, creating it as INPROGRESS on first visit.
        """
        status = await self.gateway.get_onboarding_status(uid)
        if status is not None:
            return status

        status = OnboardingStatusRead(
            uid=uid,
            onboarding_status=OnboardingStatusValue.IN_PROGRESS,
            started_at=self.clock(),
        )
        logger.info("Onboarding started for %s", uid)
        return await self.gateway.save_onboarding_status(status)

    async def content_for(self, uid: str) -> OnboardingContent:
        status = await self.get_or_start(uid)
        resources = list(RESOURCES)
        if status.onboarding_status == OnboardingStatusValue.COMPLETED:
            resources = [
                Resource(
                    label="Revisit Training Video",
                    url=TRAINING_VIDEO_URL,
                    note="Watch the main training video again.",
                ),
                *resources,
            ]
        return OnboardingContent(
            status=status,
            video_url=TRAINING_VIDEO_URL,
            resources=resources,
            checklist_items=list(CHECKLIST_ITEMS),
            questions=[QuestionRead(question=q.question, options=list(q.options)) for q in QUESTIONS],
        )

    async def complete(self, uid: str, progress: OnboardingProgress) -> OnboardingStatusRead:
        """
        Replay the submitted progress and mark onboarding COMPLETED.

        Raises ValidationError when a gate is not satisfied.
        """
        status = await self.get_or_start(uid)
        if status.onboarding_status == OnboardingStatusValue.COMPLETED:
            return status

        wizard = OnboardingWizard.replay(progress)
        if not wizard.can_submit:
            missing = [item for item, done in wizard.checklist_state.items() if not done]
            raise ValidationError(f"Checklist incomplete: {', '.join(missing)}")

        completed = status.model_copy(
            update={
                "onboarding_status": OnboardingStatusValue.COMPLETED,
                "completed_at": self.clock(),
            }
        )
        logger.info(
            "Onboarding completed for %s (assessment score %.0f%%)",
            uid,
            wizard.assessment.score if wizard.assessment else 0.0,
        )
        return await self.gateway.save_onboarding_status(completed)
