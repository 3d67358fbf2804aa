"""
Exactly-once conversion of stored onboarding answers into domain records.

Each answer is re-read under a row lock right before it is processed and its
``extracted`` flag is checked again under that lock, so concurrent runs for
the same user serialize per answer instead of double processing it.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.v1.extraction.client import ExtractionCollaborator, ExtractionError
from app.api.v1.extraction.topics import Destination
from app.core.config import settings
from app.models.onboarding_answer import OnboardingAnswer
from app.schemas.extraction import ConversionResult, ExtractionRequest

logger = logging.getLogger(__name__)


class OnboardingConverter:

    def __init__(
        self,
        session: AsyncSession,
        collaborator: ExtractionCollaborator,
        min_answer_length: int = settings.MIN_ANSWER_LENGTH,
    ):
        self.session = session
        self.collaborator = collaborator
        self.min_answer_length = min_answer_length

    async def convert(self, user_id: uuid.UUID, access_token: Optional[str] = None) -> ConversionResult:
        try:
            stmt = (
                select(OnboardingAnswer.id)
                .where(OnboardingAnswer.user_id == user_id)
                .order_by(OnboardingAnswer.created_at, OnboardingAnswer.id)
            )
            answer_ids = list((await self.session.execute(stmt)).scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch onboarding answers for user {user_id}: {str(e)}")
            await self.session.rollback()
            return ConversionResult(errors=[f"Failed to fetch answers: {str(e)}"])

        logger.info(f"Converting {len(answer_ids)} onboarding answers for user {user_id}")
        result = ConversionResult()
        for answer_id in answer_ids:
            if not await self._run_guarded(answer_id, user_id, access_token, result):
                break
        logger.info(f"Conversion for user {user_id} finished: {result.model_dump()}")
        return result

    async def convert_answer(
        self, answer_id: uuid.UUID, user_id: uuid.UUID, access_token: Optional[str] = None
    ) -> ConversionResult:
        result = ConversionResult()
        await self._run_guarded(answer_id, user_id, access_token, result)
        return result

    async def _run_guarded(
        self, answer_id: uuid.UUID, user_id: uuid.UUID, access_token: Optional[str], result: ConversionResult
    ) -> bool:
        """Process one answer. Returns False when the batch has to stop."""
        try:
            await self._convert_one(answer_id, user_id, access_token, result)
            return True
        except Exception as e:
            logger.error(f"Unexpected error converting answer {answer_id}: {str(e)}", exc_info=True)
            await self.session.rollback()
            result.errors.append(f"Unexpected error: {str(e)}")
            return False

    async def _convert_one(
        self, answer_id: uuid.UUID, user_id: uuid.UUID, access_token: Optional[str], result: ConversionResult
    ) -> None:
        answer = await self.session.get(
            OnboardingAnswer, answer_id, with_for_update=True, populate_existing=True)

        if (answer is None or answer.user_id != user_id or answer.is_extracted
                or len((answer.answer_text or "").strip()) < self.min_answer_length):
            result.skipped += 1
            # Releases the row lock.
            await self.session.commit()
            return

        topic = answer.question_topic
        request = ExtractionRequest(
            content=answer.answer_text,
            source="onboarding",
            topic=topic,
            user_id=str(user_id),
            access_token=access_token,
        )
        try:
            response = await self.collaborator.extract(request)
        except ExtractionError as e:
            logger.warning(f"Extraction failed for '{topic}' answer {answer_id}: {str(e)}")
            await self.session.rollback()
            result.errors.append(f"{topic}: {str(e)}")
            return

        match response.destination:
            case Destination.USERS:
                result.users_updated = True
            case Destination.USER_PROFILE:
                result.profile_updated = True
            case Destination.LIFE_EVENT:
                result.events_created += len(response.events)
            case _:
                result.skipped += 1

        # Reassigned, not mutated, so the JSON column is flagged dirty.
        answer.answer_json = {
            **(answer.answer_json or {}),
            "extracted": True,
            "extracted_at": datetime.now(timezone.utc).isoformat(),
            "destination": response.destination.value,
        }
        await self.session.commit()
