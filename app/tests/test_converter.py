"""
Tests for the onboarding answer conversion pipeline.
"""
import uuid
from unittest.mock import patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.api.v1.extraction.client import (
    ExtractionCollaborator,
    ExtractionError,
    LocalExtractionCollaborator,
)
from app.api.v1.extraction.topics import get_destination
from app.api.v1.onboarding.converter import OnboardingConverter
from app.models.life_event import LifeEvent
from app.models.onboarding_answer import OnboardingAnswer
from app.models.user import User
from app.schemas.extraction import ExtractedLifeEvent, ExtractionResponse


class FakeCollaborator(ExtractionCollaborator):
    """Records requests and answers with one event per life-event topic."""

    def __init__(self, fail_topics=(), crash_topics=()):
        self.requests = []
        self.fail_topics = set(fail_topics)
        self.crash_topics = set(crash_topics)

    async def extract(self, request):
        self.requests.append(request)
        if request.topic in self.fail_topics:
            raise ExtractionError("upstream unavailable")
        if request.topic in self.crash_topics:
            raise RuntimeError("boom")
        destination = get_destination(request.topic)
        events = []
        if destination.value == "life_event":
            events = [ExtractedLifeEvent(title=f"{request.topic} event", start_date="2001")]
        return ExtractionResponse(success=True, destination=destination, events=events)


async def stored_answers(db_session, user_id):
    stmt = select(OnboardingAnswer).where(OnboardingAnswer.user_id == user_id)
    result = await db_session.execute(stmt.execution_options(populate_existing=True))
    return list(result.scalars().all())


@pytest.mark.asyncio
async def test_conversion_is_idempotent(db_session, test_user, add_answer):
    user_id = test_user.id
    await add_answer("identity", "Sie, ich heiße Anna Berg")
    await add_answer("career", "Erst Bäckerin, dann Lehrerin")
    await add_answer("values", "Ehrlichkeit und Familie")

    collaborator = FakeCollaborator()
    converter = OnboardingConverter(db_session, collaborator)

    first = await converter.convert(user_id)
    assert first.users_updated is True
    assert first.profile_updated is True
    assert first.events_created == 1
    assert first.skipped == 0
    assert first.errors == []

    second = await converter.convert(user_id)
    assert second.skipped == 3
    assert second.events_created == 0
    assert second.users_updated is False
    assert len(collaborator.requests) == 3

    for answer in await stored_answers(db_session, user_id):
        assert answer.answer_json["extracted"] is True
        assert "extracted_at" in answer.answer_json


@pytest.mark.asyncio
async def test_failed_answer_does_not_block_the_others(db_session, test_user, add_answer):
    user_id = test_user.id
    for topic in ("identity", "origins", "family", "education", "career"):
        await add_answer(topic, f"Eine Antwort zum Thema {topic}")

    converter = OnboardingConverter(db_session, FakeCollaborator(fail_topics={"education"}))
    result = await converter.convert(user_id)

    assert result.errors == ["education: upstream unavailable"]
    assert result.events_created == 2

    by_topic = {a.question_topic: a for a in await stored_answers(db_session, user_id)}
    assert by_topic["education"].is_extracted is False
    assert sum(a.is_extracted for a in by_topic.values()) == 4

    # A later run retries only the failed answer.
    retry = FakeCollaborator()
    result = await OnboardingConverter(db_session, retry).convert(user_id)
    assert [r.topic for r in retry.requests] == ["education"]
    assert result.skipped == 4
    assert result.events_created == 1


@pytest.mark.asyncio
async def test_short_answers_are_skipped(db_session, test_user, add_answer):
    user_id = test_user.id
    await add_answer("identity", "  ja ")
    collaborator = FakeCollaborator()

    result = await OnboardingConverter(db_session, collaborator).convert(user_id)

    assert result.skipped == 1
    assert collaborator.requests == []


@pytest.mark.asyncio
async def test_answers_of_other_users_are_not_touched(db_session, test_user, add_answer):
    answer = await add_answer("identity", "Ich heiße Anna Berg")
    answer_id = answer.id
    collaborator = FakeCollaborator()

    result = await OnboardingConverter(db_session, collaborator).convert_answer(answer_id, uuid.uuid4())

    assert result.skipped == 1
    assert collaborator.requests == []


@pytest.mark.asyncio
async def test_fetch_failure_is_reported(db_session, test_user):
    user_id = test_user.id
    converter = OnboardingConverter(db_session, FakeCollaborator())

    with patch.object(db_session, "execute", side_effect=OperationalError("SELECT", {}, Exception("gone"))):
        result = await converter.convert(user_id)

    assert len(result.errors) == 1
    assert result.errors[0].startswith("Failed to fetch answers:")


@pytest.mark.asyncio
async def test_unexpected_error_stops_the_batch(db_session, test_user, add_answer):
    user_id = test_user.id
    await add_answer("identity", "Ich heiße Anna Berg")
    await add_answer("career", "Lehrerin seit 1990")
    await add_answer("values", "Ehrlichkeit")
    collaborator = FakeCollaborator(crash_topics={"career"})

    result = await OnboardingConverter(db_session, collaborator).convert(user_id)

    assert result.errors == ["Unexpected error: boom"]
    assert [r.topic for r in collaborator.requests] == ["identity", "career"]


@pytest.mark.asyncio
async def test_requests_carry_user_and_token(db_session, test_user, add_answer):
    user_id = test_user.id
    await add_answer("origins", "Geboren am 3. März 1950 in Hamburg")
    collaborator = FakeCollaborator()

    await OnboardingConverter(db_session, collaborator).convert(user_id, access_token="tok")

    request = collaborator.requests[0]
    assert request.user_id == str(user_id)
    assert request.access_token == "tok"
    assert request.source == "onboarding"


@pytest.mark.asyncio
async def test_local_collaborator_writes_user_fields(db_session, test_user, add_answer):
    user_id = test_user.id
    await add_answer("identity", "Sie, ich heiße Dr. Anna Berg und mag es sachlich und fachlich")
    await add_answer("origins", "Ich bin am 3. März 1950 in Hamburg geboren")

    converter = OnboardingConverter(db_session, LocalExtractionCollaborator(db_session))
    result = await converter.convert(user_id)

    assert result.users_updated is True
    assert result.errors == []
    user = await db_session.get(User, user_id, populate_existing=True)
    assert user.form_of_address == "sie"
    assert user.full_name == "Dr. Anna Berg"
    assert user.birth_date.isoformat() == "1950-03-03"
    assert user.birth_place == "Hamburg"


@pytest.mark.asyncio
async def test_local_collaborator_falls_back_when_llm_is_down(db_session, test_user, add_answer):
    user_id = test_user.id
    await add_answer("career", "Ich war 20 Jahre Lehrerin in Bremen")

    with patch("app.api.v1.extraction.splitter.get_providers", side_effect=RuntimeError("no key")):
        result = await OnboardingConverter(
            db_session, LocalExtractionCollaborator(db_session)).convert(user_id)

    assert result.events_created == 1
    events = (await db_session.execute(select(LifeEvent).where(LifeEvent.user_id == user_id))).scalars().all()
    assert len(events) == 1
    assert events[0].category == "career"
    assert events[0].event_metadata["date_estimated"] is True
