import logging
from fastapi import APIRouter, HTTPException, status
from app.schemas.response import APIResponse
from app.schemas.extraction import (
    ConversionQueued,
    ConversionResult,
    ExtractionRequest,
    ExtractionResponse,
)
from app.api.deps import SessionDep, CurrentUser, TokenDep
from app.api.v1.extraction.client import get_extraction_collaborator
from app.api.v1.extraction.service import extract_and_persist
from app.api.v1.onboarding.converter import OnboardingConverter
from app.api.v1.onboarding.tasks import convert_onboarding_answers_task
from app.core.errors import ForbiddenException, InternalServerErrorException

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/extract", response_model=ExtractionResponse, status_code=status.HTTP_200_OK)
async def extract_events(
    session: SessionDep,
    current_user: CurrentUser,
    request: ExtractionRequest
):
    """
    Extract structured data from one answer and store it at the topic's destination.

    The body is returned flat (no response envelope) because remote converters
    call this endpoint directly.
    """
    if request.user_id and request.user_id != str(current_user.id):
        raise ForbiddenException(detail="Cannot extract on behalf of another user")
    try:
        result = await extract_and_persist(session, request, current_user.id)
        if result.persisted is not None and not result.persisted.success:
            await session.rollback()
        else:
            await session.commit()
        logger.info(f"Extraction complete: {result.destination.value}, persisted: {result.persisted}")
        return result
    except HTTPException as http_exc:
        raise http_exc
    except Exception as e:
        logger.error(f"Extraction failed for user {current_user.id}: {str(e)}")
        await session.rollback()
        raise InternalServerErrorException(detail="Extraction failed")


@router.post("/convert-onboarding", response_model=APIResponse[ConversionResult], status_code=status.HTTP_200_OK)
async def convert_onboarding(
    session: SessionDep,
    current_user: CurrentUser,
    token: TokenDep
):
    try:
        converter = OnboardingConverter(session, get_extraction_collaborator(session))
        result = await converter.convert(current_user.id, access_token=token)
        return APIResponse.success_response(data=result, message="Onboarding answers converted")
    except HTTPException as http_exc:
        raise http_exc
    except Exception as e:
        logger.error(f"Failed to convert onboarding answers: {str(e)}")
        await session.rollback()
        raise InternalServerErrorException(detail="Failed to convert onboarding data")


@router.post("/convert-onboarding/deferred", response_model=APIResponse[ConversionQueued], status_code=status.HTTP_202_ACCEPTED)
async def convert_onboarding_deferred(
    current_user: CurrentUser,
    token: TokenDep
):
    try:
        task = convert_onboarding_answers_task.delay(str(current_user.id), token)
        return APIResponse.success_response(
            data=ConversionQueued(task_id=task.id),
            message="Onboarding conversion queued"
        )
    except Exception as e:
        logger.error(f"Failed to queue onboarding conversion: {str(e)}")
        raise InternalServerErrorException(detail="Failed to queue onboarding conversion")
