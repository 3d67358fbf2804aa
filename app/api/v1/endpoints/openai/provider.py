import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from openai import AsyncOpenAI
from pydantic import BaseModel
from app.core.config import settings

logger = logging.getLogger(__name__)


class AIProvider(ABC):

    @abstractmethod
    async def parse_json(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        response_format: type[BaseModel]
    ) -> BaseModel:
        pass


class OpenAIProvider(AIProvider):
    """Structured output through the Responses API, parsed into response_format."""

    def __init__(self, client: AsyncOpenAI, temperature: float = 0.3):
        self.client = client
        self.temperature = temperature

    async def parse_json(
            self,
            *,
            model: str,
            system_prompt: str,
            user_prompt: str,
            response_format: type[BaseModel]) -> BaseModel:
        response = await self.client.responses.parse(
            model=model,
            input=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            text_format=response_format,
            temperature=self.temperature,
        )
        if response.output_parsed is None:
            raise ValueError(f"{model} returned no parseable {response_format.__name__}")
        if response.usage:
            logger.debug(f"{response_format.__name__} via {model}: {response.usage.total_tokens} tokens")
        return response.output_parsed


@dataclass(frozen=True)
class ProviderRegistry:
    openai: AIProvider


def init_providers(settings) -> ProviderRegistry:
    if not settings.OPENAI_API_KEY:
        raise ValueError("OPENAI_API_KEY is not configured")
    openai_client = AsyncOpenAI(
        api_key=settings.OPENAI_API_KEY,
        timeout=settings.EXTRACTION_TIMEOUT_SECONDS,
    )
    return ProviderRegistry(openai=OpenAIProvider(openai_client))


@lru_cache
def get_providers() -> ProviderRegistry:
    return init_providers(settings)
