from typing import List, Literal, Optional
from pydantic import BaseModel, Field
from app.api.v1.extraction.topics import Destination
from app.schemas.onboarding import CamelModel, OnboardingAnswerData

ExtractionSource = Literal["onboarding", "chapter_chat", "manual"]
InfluenceType = Literal["author", "philosopher", "person", "mentor", "public_figure", "historical", "other"]


# Structured outputs requested from the LLM. Every field is required and
# nullable so the schema stays valid in strict mode.

class SplitEvent(BaseModel):
    title: str = Field(..., description="Brief, descriptive title of the event")
    description: str = Field(..., description="1-2 sentences with context")
    start_date: Optional[str] = Field(..., description="YYYY-MM-DD or YYYY, null if truly unknown")
    end_date: Optional[str] = Field(..., description="YYYY-MM-DD or YYYY if the event has ended")
    is_ongoing: Optional[bool] = Field(..., description="True if this is still current")
    location: Optional[str] = Field(..., description="City or place if mentioned")


class EventSplitResponse(BaseModel):
    events: List[SplitEvent] = Field(..., description="Every distinct event found in the answer")


class Influence(BaseModel):
    name: str
    type: InfluenceType = "other"
    why: Optional[str] = None


class RoleModel(BaseModel):
    name: str
    relationship: Optional[str] = None
    traits: List[str] = Field(default_factory=list)


class ProfileExtractionResponse(BaseModel):
    values: Optional[List[str]] = Field(..., description="Up to 3 core life values")
    motto: Optional[str] = Field(..., description="Life motto or guiding principle")
    influences: Optional[List[Influence]] = Field(..., description="People who shaped their thinking")
    role_models: Optional[List[RoleModel]] = Field(..., description="Personal role models")
    favorite_authors: Optional[List[str]] = Field(..., description="Author names if mentioned")


# Collaborator wire contract

class ExtractedLifeEvent(BaseModel):
    title: str
    description: str = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    is_ongoing: bool = False
    category: str = "personal"
    location: Optional[str] = None
    confidence: float = Field(default=0.5, ge=0, le=1)
    source: ExtractionSource = "onboarding"


class ExtractedProfileData(BaseModel):
    values: Optional[List[str]] = None
    motto: Optional[str] = None
    influences: Optional[List[Influence]] = None
    role_models: Optional[List[RoleModel]] = None
    favorite_authors: Optional[List[str]] = None


class ExtractedUserData(BaseModel):
    full_name: Optional[str] = None
    form_of_address: Optional[Literal["du", "sie"]] = None
    language_style: Optional[Literal["prosa", "fachlich", "locker"]] = None
    birth_date: Optional[str] = None
    birth_place: Optional[str] = None


class PersistResult(BaseModel):
    success: bool
    ids: List[str] = Field(default_factory=list)
    error: Optional[str] = None


class ExtractionRequest(CamelModel):
    content: str = Field(..., min_length=1)
    source: ExtractionSource = "onboarding"
    topic: Optional[str] = None
    user_id: Optional[str] = None
    # Forwarded as a bearer header, never in the body.
    access_token: Optional[str] = Field(default=None, exclude=True)


class ExtractionResponse(CamelModel):
    success: bool
    destination: Destination = Destination.SKIP
    events: List[ExtractedLifeEvent] = Field(default_factory=list)
    user_data: Optional[ExtractedUserData] = None
    profile_data: Optional[ExtractedProfileData] = None
    persisted: Optional[PersistResult] = None
    error: Optional[str] = None


class ConversionResult(CamelModel):
    users_updated: bool = False
    profile_updated: bool = False
    events_created: int = 0
    skipped: int = 0
    errors: List[str] = Field(default_factory=list)


class OnboardingAnswerResult(CamelModel):
    answer: OnboardingAnswerData
    conversion: Optional[ConversionResult] = None


class ConversionQueued(CamelModel):
    task_id: str
