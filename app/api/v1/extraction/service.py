"""
Topic-routed extraction of one onboarding answer and persistence of the result.

identity/origins   -> rule-based extraction, written onto the users row
influences/values  -> LLM profile extraction, upserted into user_profile
family/education/career -> LLM event splitting, inserted into life_event
"""
import logging
import uuid
from datetime import date, datetime, timezone
from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.v1.extraction.profile_extractor import extract_profile_data
from app.api.v1.extraction.splitter import fallback_event, split_composite_answer
from app.api.v1.extraction.topics import (
    Destination,
    get_category_for_topic,
    get_destination,
    needs_splitting,
)
from app.api.v1.extraction.user_extractor import extract_birth_data, extract_user_data
from app.models.life_event import LifeEvent
from app.models.user import User
from app.models.user_profile import UserProfile
from app.schemas.extraction import (
    ExtractedLifeEvent,
    ExtractedUserData,
    ExtractionRequest,
    ExtractionResponse,
    PersistResult,
)

logger = logging.getLogger(__name__)


async def extract_from_onboarding(content: str, topic: Optional[str]) -> ExtractionResponse:
    normalized = (topic or "").strip().lower()
    destination = get_destination(normalized)

    match destination:
        case Destination.USERS:
            data = extract_user_data(content) if normalized == "identity" else extract_birth_data(content)
            logger.info(f"Extracted user fields {sorted(data)} from '{normalized}' answer")
            return ExtractionResponse(
                success=True, destination=destination, user_data=ExtractedUserData(**data))

        case Destination.USER_PROFILE:
            profile = await extract_profile_data(content, normalized)
            return ExtractionResponse(success=True, destination=destination, profile_data=profile)

        case Destination.LIFE_EVENT:
            category = get_category_for_topic(normalized)
            if needs_splitting(normalized):
                events = await split_composite_answer(content, category)
            else:
                events = [fallback_event(content, category, confidence=0.7)]
            logger.info(f"Extracted {len(events)} life events from '{normalized}' answer")
            return ExtractionResponse(success=True, destination=destination, events=events)

    return ExtractionResponse(success=True, destination=Destination.SKIP)


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _life_event_row(user_id: uuid.UUID, event: ExtractedLifeEvent) -> LifeEvent:
    start_date = _parse_date(event.start_date)
    return LifeEvent(
        user_id=user_id,
        title=event.title,
        description=event.description,
        # start_date is mandatory on the timeline; unknown dates are flagged.
        start_date=start_date or date.today(),
        end_date=_parse_date(event.end_date),
        is_ongoing=event.is_ongoing,
        category=event.category,
        location=event.location,
        event_metadata={
            "source": event.source,
            "confidence": event.confidence,
            "date_estimated": start_date is None,
            "extracted_at": datetime.now(timezone.utc).isoformat(),
        },
    )


async def persist_extraction(
    session: AsyncSession, result: ExtractionResponse, user_id: uuid.UUID
) -> PersistResult:
    """Write an extraction result for user_id. Flushes, the caller commits."""
    try:
        match result.destination:
            case Destination.USERS:
                fields = result.user_data.model_dump(exclude_none=True) if result.user_data else {}
                if fields:
                    user = await session.get(User, user_id)
                    if user is None:
                        return PersistResult(success=False, error="User not found")
                    if "birth_date" in fields:
                        fields["birth_date"] = _parse_date(fields["birth_date"])
                    for key, value in fields.items():
                        setattr(user, key, value)
                    await session.flush()
                return PersistResult(success=True)

            case Destination.USER_PROFILE:
                fields = result.profile_data.model_dump(exclude_none=True) if result.profile_data else {}
                if fields:
                    stmt = select(UserProfile).where(UserProfile.user_id == user_id)
                    profile = (await session.execute(stmt)).scalar_one_or_none()
                    if profile is None:
                        profile = UserProfile(user_id=user_id)
                        session.add(profile)
                    for key, value in fields.items():
                        setattr(profile, key, value)
                    await session.flush()
                    return PersistResult(success=True, ids=[str(profile.id)])
                return PersistResult(success=True)

            case Destination.LIFE_EVENT:
                rows = [_life_event_row(user_id, event) for event in result.events]
                if rows:
                    session.add_all(rows)
                    await session.flush()
                logger.info(f"Inserted {len(rows)} life events for user {user_id}")
                return PersistResult(success=True, ids=[str(row.id) for row in rows])

        return PersistResult(success=True)
    except SQLAlchemyError as e:
        logger.error(f"Failed to persist {result.destination.value} extraction: {str(e)}")
        return PersistResult(success=False, error=str(e))


async def extract_and_persist(
    session: AsyncSession, request: ExtractionRequest, user_id: uuid.UUID
) -> ExtractionResponse:
    if request.source != "onboarding":
        # Chapter chat extraction is handled elsewhere.
        return ExtractionResponse(success=True, destination=Destination.SKIP)

    result = await extract_from_onboarding(request.content, request.topic)
    result.persisted = await persist_extraction(session, result, user_id)
    return result
