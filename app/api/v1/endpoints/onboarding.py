import logging
from fastapi import APIRouter, HTTPException, status
from app.schemas.response import APIResponse
from app.schemas.onboarding import (
    AdvanceDraftRequest,
    DemographicFieldData,
    DraftRequest,
    FinalizeRequest,
    FinalizeResponseData,
    LeaveNeutralRequest,
    OnboardingAnswerCreate,
    OnboardingAnswerData,
    OnboardingDraft,
    OptionData,
    PathData,
    PendingOnboardingRequest,
    PendingOnboardingResponseData,
    StartDraftRequest,
    StepData,
)
from app.schemas.extraction import OnboardingAnswerResult
from app.api.deps import SessionDep, CurrentUser, TokenDep
from app.api.v1.extraction.client import get_extraction_collaborator
from app.api.v1.onboarding import machine, steps
from app.api.v1.onboarding.converter import OnboardingConverter
from app.api.v1.onboarding.pending import finalize_onboarding, issue_pending_onboarding
from app.models.onboarding_answer import OnboardingAnswer
from app.core.errors import BadRequestException, InternalServerErrorException

logger = logging.getLogger(__name__)

router = APIRouter()


def _option_data(option: steps.Option) -> OptionData:
    return OptionData(
        id=option.id,
        label=option.label,
        description=option.description,
        cta_label=option.cta_label,
        cta_url=option.cta_url,
    )


def _step_data(step: steps.Step) -> StepData:
    data = StepData(id=step.id, kind=step.kind, title=step.title, text=step.text)
    match step:
        case steps.SingleStep() | steps.MultiStep() | steps.DecisionStep():
            data.options = [_option_data(o) for o in step.options]
        case steps.DemographicsStep():
            data.fields = [
                DemographicFieldData(
                    id=f.id, label=f.label, multiple=f.multiple,
                    options=[_option_data(o) for o in f.options],
                )
                for f in step.fields
            ]
    return data


@router.get("/alt/paths/{path}", response_model=APIResponse[PathData])
async def read_path(path: steps.Path):
    data = PathData(
        path=path,
        label=steps.PATH_LABELS[path],
        steps=[_step_data(step) for step in steps.PATH_STEPS[path]],
        registration_anchor=steps.get_registration_anchor_step_id(path),
        neutral_return=machine.get_neutral_return_step_id(path),
    )
    return APIResponse.success_response(data=data)


@router.post("/alt/start", response_model=APIResponse[OnboardingDraft])
async def start_draft(request: StartDraftRequest):
    try:
        draft = machine.start_draft(request.entry_answer_id)
    except machine.InvalidTransitionError as e:
        raise BadRequestException(detail=str(e))
    return APIResponse.success_response(data=draft)


@router.post("/alt/advance", response_model=APIResponse[OnboardingDraft])
async def advance_draft(request: AdvanceDraftRequest):
    try:
        draft = machine.advance_draft(request.draft, request.value)
    except machine.InvalidTransitionError as e:
        raise BadRequestException(detail=str(e))
    return APIResponse.success_response(data=draft)


@router.post("/alt/back", response_model=APIResponse[OnboardingDraft])
async def retreat_draft(request: DraftRequest):
    try:
        draft = machine.retreat_draft(request.draft)
    except machine.InvalidTransitionError as e:
        raise BadRequestException(detail=str(e))
    return APIResponse.success_response(data=draft)


@router.post("/alt/neutral", response_model=APIResponse[OnboardingDraft])
async def leave_neutral(request: LeaveNeutralRequest):
    try:
        draft = machine.leave_neutral(request.draft, request.target)
    except machine.InvalidTransitionError as e:
        raise BadRequestException(detail=str(e))
    return APIResponse.success_response(data=draft)


@router.post("/alt/pending", response_model=APIResponse[PendingOnboardingResponseData], status_code=status.HTTP_201_CREATED)
async def create_pending_onboarding(
    session: SessionDep,
    request: PendingOnboardingRequest
):
    try:
        record = await issue_pending_onboarding(session, request)
        return APIResponse.success_response(
            data=PendingOnboardingResponseData(token=record.token, expires_at=record.expires_at),
            message="Onboarding link stored"
        )
    except HTTPException as http_exc:
        raise http_exc
    except Exception as e:
        logger.error(f"Failed to store pending onboarding: {str(e)}")
        await session.rollback()
        raise InternalServerErrorException(detail="Failed to store onboarding link")


@router.post("/alt/complete", response_model=APIResponse[FinalizeResponseData])
async def complete_onboarding(
    session: SessionDep,
    current_user: CurrentUser,
    request: FinalizeRequest
):
    try:
        data = await finalize_onboarding(session, current_user, request)
        return APIResponse.success_response(data=data, message="Onboarding completed")
    except HTTPException as http_exc:
        raise http_exc
    except Exception as e:
        logger.error(f"Failed to finalize onboarding for user {current_user.id}: {str(e)}")
        await session.rollback()
        raise InternalServerErrorException(detail="Failed to store onboarding data")


@router.post("/answers", response_model=APIResponse[OnboardingAnswerResult], status_code=status.HTTP_201_CREATED)
async def submit_onboarding_answer(
    session: SessionDep,
    current_user: CurrentUser,
    token: TokenDep,
    request: OnboardingAnswerCreate
):
    try:
        answer = OnboardingAnswer(
            user_id=current_user.id,
            question_topic=request.question_topic,
            answer_text=request.answer_text,
            answer_json={"extracted": False},
        )
        session.add(answer)
        await session.commit()

        conversion = None
        if request.extract:
            converter = OnboardingConverter(session, get_extraction_collaborator(session))
            conversion = await converter.convert_answer(answer.id, current_user.id, access_token=token)

        await session.refresh(answer)
        return APIResponse.success_response(
            data=OnboardingAnswerResult(
                answer=OnboardingAnswerData.model_validate(answer),
                conversion=conversion,
            ),
            message="Onboarding answer saved"
        )
    except HTTPException as http_exc:
        raise http_exc
    except Exception as e:
        logger.error(f"Failed to save onboarding answer: {str(e)}")
        await session.rollback()
        raise InternalServerErrorException(detail="Failed to save onboarding answer")
