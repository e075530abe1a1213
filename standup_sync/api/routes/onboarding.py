# standup_sync/api/routes/onboarding.py
from fastapi import APIRouter, Depends

from standup_sync.api.dependencies.identity import get_identity
from standup_sync.api.dependencies.services import get_onboarding_service
from standup_sync.api.errors import to_http_exception
from standup_sync.core.exceptions import DomainError
from standup_sync.schemas.identity import Identity
from standup_sync.schemas.onboarding import (
    AssessmentResult,
    AssessmentSubmission,
    OnboardingContent,
    OnboardingProgress,
    OnboardingStatusRead,
)
from standup_sync.services.onboarding import OnboardingService, score_assessment

router = APIRouter(
    prefix="/onboarding",
    tags=["Onboarding"],
)


@router.get(
    "",
    response_model=OnboardingContent,
    summary="Onboarding content and status",
    description=(
        "Starts onboarding on first visit. Completed users additionally get the "
        "training video listed among the resources."
    ),
)
async def get_onboarding(
    identity: Identity = Depends(get_identity),
    service: OnboardingService = Depends(get_onboarding_service),
) -> OnboardingContent:
    return await service.content_for(identity.uid)


@router.post(
    "/assessment",
    response_model=AssessmentResult,
    summary="Score an assessment attempt",
    description="Scores are not stored; retaking simply returns a new score.",
)
async def submit_assessment(
    payload: AssessmentSubmission,
    identity: Identity = Depends(get_identity),
) -> AssessmentResult:
    return score_assessment(payload.answers)


@router.post(
    "/complete",
    response_model=OnboardingStatusRead,
    summary="Finish onboarding",
    description=(
        "Replays the submitted wizard progress through every gate and marks "
        "onboarding COMPLETED. Fails with 400 naming the unchecked items."
    ),
    responses={400: {"description": "A gate is not satisfied."}},
)
async def complete_onboarding(
    payload: OnboardingProgress,
    identity: Identity = Depends(get_identity),
    service: OnboardingService = Depends(get_onboarding_service),
) -> OnboardingStatusRead:
    try:
        return await service.complete(identity.uid, payload)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
