# tests/test_onboarding.py
import pytest

from standup_sync.core.exceptions import ValidationError
from standup_sync.schemas.onboarding import OnboardingProgress, OnboardingStatusValue
from standup_sync.services.onboarding import (
    QUESTIONS,
    RESOURCES,
    STANDARD_CHECKLIST_ITEMS,
    TRAINING_VIDEO_URL,
    WATCHED_VIDEO_ITEM,
    OnboardingService,
    OnboardingStep,
    OnboardingWizard,
    poll_video_progress,
    score_assessment,
)


def _correct_answers():
    return [q.answer for q in QUESTIONS]


def _complete_progress(**overrides):
    data = {
        "max_video_progress": 85,
        "visited_resources": [r.url for r in RESOURCES],
        "checked_items": list(STANDARD_CHECKLIST_ITEMS),
        "assessment_answers": [None] * len(QUESTIONS),
    }
    data.update(overrides)
    return OnboardingProgress(**data)


def test_video_gate_latches_at_eighty_percent():
    wizard = OnboardingWizard()

    wizard.record_video_progress(79.9)
    with pytest.raises(ValidationError):
        wizard.next()

    wizard.record_video_progress(80)
    wizard.record_video_progress(10)
    assert wizard.can_continue_from_video is True
    assert wizard.next() == OnboardingStep.RESOURCES


def test_resources_gate_needs_every_link():
    wizard = OnboardingWizard()
    wizard.record_video_progress(100)
    wizard.next()

    for resource in RESOURCES[:-1]:
        wizard.visit_resource(resource.url)
    with pytest.raises(ValidationError):
        wizard.next()

    wizard.visit_resource(RESOURCES[-1].url)
    assert wizard.next() == OnboardingStep.CHECKLIST


def test_unknown_resource_or_item_is_rejected():
    wizard = OnboardingWizard()
    with pytest.raises(ValidationError):
        wizard.visit_resource("https://example.com/not-listed")
    with pytest.raises(ValidationError):
        wizard.toggle_item("Something else")


def test_watched_item_needs_an_attempt_not_a_pass():
    wizard = OnboardingWizard()
    wizard.record_video_progress(90)
    for item in STANDARD_CHECKLIST_ITEMS:
        wizard.toggle_item(item)

    assert wizard.checklist_state[WATCHED_VIDEO_ITEM] is False
    assert wizard.can_submit is False

    result = wizard.take_assessment([None] * len(QUESTIONS))
    assert result.passed is False
    assert wizard.checklist_state[WATCHED_VIDEO_ITEM] is True
    assert wizard.can_submit is True


def test_retaking_the_assessment_replaces_the_score():
    wizard = OnboardingWizard()
    assert wizard.take_assessment([]).score == 0
    assert wizard.take_assessment(_correct_answers()).score == 100
    assert wizard.assessment.passed is True


def test_back_keeps_answers():
    wizard = OnboardingWizard()
    wizard.record_video_progress(100)
    wizard.next()
    wizard.visit_resource(RESOURCES[0].url)

    assert wizard.back() == OnboardingStep.VIDEO
    assert wizard.back() == OnboardingStep.VIDEO
    wizard.next()
    assert RESOURCES[0].url in wizard.visited


def test_score_assessment_threshold():
    answers = _correct_answers()
    half = answers[:3] + [None, None]
    two = answers[:2] + [None, None, None]

    assert score_assessment(half).score == 60
    assert score_assessment(half).passed is True
    assert score_assessment(two).passed is False


@pytest.mark.asyncio
async def test_poll_video_progress_stops_once_watched():
    wizard = OnboardingWizard()
    samples = iter([20.0, 50.0, 81.0, 95.0])
    reads = []

    async def read_progress():
        value = next(samples)
        reads.append(value)
        return value

    async def is_playing():
        return True

    watched = await poll_video_progress(wizard, read_progress, is_playing, interval=0)

    assert watched is True
    assert reads == [20.0, 50.0, 81.0]


@pytest.mark.asyncio
async def test_poll_video_progress_skips_samples_while_paused():
    wizard = OnboardingWizard()

    async def read_progress():
        return 100.0

    async def is_playing():
        return False

    watched = await poll_video_progress(wizard, read_progress, is_playing, interval=0, max_polls=3)
    assert watched is False


@pytest.mark.asyncio
async def test_service_starts_and_completes_onboarding(gateway, clock):
    service = OnboardingService(gateway, clock=clock)

    content = await service.content_for("emp-1")
    assert content.status.onboarding_status == OnboardingStatusValue.IN_PROGRESS
    assert content.resources[0].url != TRAINING_VIDEO_URL
    assert WATCHED_VIDEO_ITEM in content.checklist_items

    with pytest.raises(ValidationError) as excinfo:
        await service.complete("emp-1", _complete_progress(assessment_answers=None))
    assert WATCHED_VIDEO_ITEM in str(excinfo.value)

    done = await service.complete("emp-1", _complete_progress())
    assert done.onboarding_status == OnboardingStatusValue.COMPLETED
    assert done.completed_at == clock.now

    revisit = await service.content_for("emp-1")
    assert revisit.resources[0].url == TRAINING_VIDEO_URL


@pytest.mark.asyncio
async def test_service_rejects_progress_that_skips_the_video(gateway, clock):
    service = OnboardingService(gateway, clock=clock)

    with pytest.raises(ValidationError):
        await service.complete("emp-1", _complete_progress(max_video_progress=40))

    status = await gateway.get_onboarding_status("emp-1")
    assert status.onboarding_status == OnboardingStatusValue.IN_PROGRESS
