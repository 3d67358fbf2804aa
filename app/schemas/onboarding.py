import uuid
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from app.api.v1.onboarding.steps import (
    ALT_ONBOARDING_VERSION,
    AnswerValue,
    EntryAnswerId,
    Path,
    RegistrationSource,
    Stage,
)

AddressPreference = Literal["du", "sie"]


class CamelModel(BaseModel):
    """Wire models use camelCase keys and accept snake_case on input."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EntrySelection(CamelModel):
    answer_id: EntryAnswerId
    path: Path


class RegistrationDraft(CamelModel):
    first_name_or_nickname: str = Field(..., min_length=1)
    last_name: str = ""
    email: EmailStr
    method: Literal["password", "google"]


class OnboardingPayloadBase(CamelModel):
    registration: RegistrationDraft
    entry: Optional[EntrySelection]
    path: Optional[Path]
    responses: Dict[str, Any]
    neutral_block_visited: bool


class PendingOnboardingRequest(OnboardingPayloadBase):
    """Body of the unauthenticated pending issue call, also the stored payload."""
    address_preference: Optional[AddressPreference] = None


class DirectFinalizeRequest(OnboardingPayloadBase):
    address_preference: AddressPreference


class PendingFinalizeRequest(CamelModel):
    pending_token: str = Field(..., min_length=1)
    address_preference: Optional[AddressPreference] = None


FinalizeRequest = Union[DirectFinalizeRequest, PendingFinalizeRequest]


class PendingOnboardingResponseData(CamelModel):
    token: str
    expires_at: datetime


class FinalizeResponseData(CamelModel):
    user_id: uuid.UUID
    completed_at: datetime


class OnboardingDraft(CamelModel):
    """Server-side mirror of the client questionnaire draft."""
    version: str = ALT_ONBOARDING_VERSION
    stage: Stage = "entry"
    entry: Optional[EntrySelection] = None
    path: Optional[Path] = None
    current_step_id: Optional[str] = None
    responses: Dict[str, AnswerValue] = Field(default_factory=dict)
    neutral_block_visited: bool = False
    route_to_registration_source: Optional[RegistrationSource] = None
    address_preference: Optional[AddressPreference] = None


class StartDraftRequest(CamelModel):
    entry_answer_id: EntryAnswerId


class AdvanceDraftRequest(CamelModel):
    draft: OnboardingDraft
    value: Optional[AnswerValue] = None


class DraftRequest(CamelModel):
    draft: OnboardingDraft


class LeaveNeutralRequest(CamelModel):
    draft: OnboardingDraft
    target: Literal["path", "registration"]


class OptionData(CamelModel):
    id: str
    label: str
    description: Optional[str] = None
    cta_label: Optional[str] = None
    cta_url: Optional[str] = None


class DemographicFieldData(CamelModel):
    id: str
    label: str
    multiple: bool = False
    options: List[OptionData]


class StepData(CamelModel):
    id: str
    kind: str
    title: str
    text: str
    options: List[OptionData] = Field(default_factory=list)
    fields: List[DemographicFieldData] = Field(default_factory=list)


class PathData(CamelModel):
    path: Path
    label: str
    steps: List[StepData]
    registration_anchor: str
    neutral_return: str


class OnboardingAnswerCreate(CamelModel):
    question_topic: str = Field(..., min_length=1, max_length=64)
    answer_text: str
    extract: bool = False

    @field_validator("question_topic")
    @classmethod
    def normalize_topic(cls, v: str) -> str:
        return v.strip().lower()


class OnboardingAnswerData(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    question_topic: str
    answer_text: str
    answer_json: Dict[str, Any]
    created_at: datetime
