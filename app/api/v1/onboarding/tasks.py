from app.celery_app import celery
from app.api.v1.extraction.client import get_extraction_collaborator
from app.api.v1.onboarding.converter import OnboardingConverter
from app.db.session import create_task_session_maker
import logging
import asyncio
import uuid

logger = logging.getLogger(__name__)


@celery.task(name="app.api.v1.onboarding.tasks.convert_onboarding_answers")
def convert_onboarding_answers_task(user_id: str, access_token: str | None = None) -> dict:
    return asyncio.run(convert_onboarding_answers_internal(user_id, access_token))


async def convert_onboarding_answers_internal(user_id: str, access_token: str | None = None) -> dict:
    session_maker, engine = create_task_session_maker()
    try:
        async with session_maker() as session:
            converter = OnboardingConverter(session, get_extraction_collaborator(session))
            result = await converter.convert(uuid.UUID(user_id), access_token=access_token)
    finally:
        await engine.dispose()

    if result.errors:
        logger.warning(f"Deferred conversion for user {user_id} finished with {len(result.errors)} errors")
    return result.model_dump(by_alias=True)
