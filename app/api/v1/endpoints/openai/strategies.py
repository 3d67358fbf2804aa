from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Union
import logging

from pydantic import BaseModel
from app.core.config import settings
from app.schemas.extraction import EventSplitResponse, ProfileExtractionResponse

logger = logging.getLogger(__name__)


@dataclass
class EventSplitInput:
    answer: str
    category: str
    response_format: type[EventSplitResponse] = EventSplitResponse


@dataclass
class ProfileInput:
    answer: str
    topic: str
    response_format: type[ProfileExtractionResponse] = ProfileExtractionResponse


class AIAnalysisStrategy(ABC):
    @abstractmethod
    async def execute(self, *, input: Union[EventSplitInput, ProfileInput]) -> BaseModel:
        pass


class EventSplittingStrategy(AIAnalysisStrategy):
    """Splits one composite answer ("erst A, dann B, jetzt C") into discrete events."""

    def __init__(self, provider):
        self.provider = provider

    async def execute(self, *, input: EventSplitInput) -> EventSplitResponse:
        guidance = settings.EVENT_SPLIT_GUIDANCE.get(
            input.category, settings.EVENT_SPLIT_GUIDANCE["default"])
        user_prompt = settings.EVENT_SPLIT_USER_PROMPT.format(
            category=input.category,
            guidance=guidance.strip(),
            answer=input.answer,
        )
        logger.info(f"Splitting {input.category} answer: {input.answer[:50]}...")
        return await self.provider.parse_json(
            model=settings.OPENAI_MODEL_NAME,
            system_prompt=settings.EVENT_SPLIT_SYSTEM_PROMPT,
            user_prompt=user_prompt,
            response_format=input.response_format,
        )


class ProfileExtractionStrategy(AIAnalysisStrategy):

    def __init__(self, provider):
        self.provider = provider

    async def execute(self, *, input: ProfileInput) -> ProfileExtractionResponse:
        guidance = settings.PROFILE_GUIDANCE.get(input.topic, "")
        user_prompt = settings.PROFILE_USER_PROMPT.format(
            topic=input.topic,
            guidance=guidance.strip(),
            answer=input.answer,
        )
        return await self.provider.parse_json(
            model=settings.OPENAI_MODEL_NAME,
            system_prompt=settings.PROFILE_SYSTEM_PROMPT,
            user_prompt=user_prompt,
            response_format=input.response_format,
        )
