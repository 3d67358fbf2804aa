from app.api.v1.endpoints.openai.enums import AITask
from app.api.v1.endpoints.openai.provider import ProviderRegistry
from app.api.v1.endpoints.openai.strategies import EventSplittingStrategy, ProfileExtractionStrategy


class AIAnalysisFactory:

    def __init__(self, providers: ProviderRegistry):
        self.providers = providers

    def create(self, task: AITask):
        match task:

            case AITask.EVENT_SPLITTING:
                return EventSplittingStrategy(
                    provider=self.providers.openai
                )

            case AITask.PROFILE_EXTRACTION:
                return ProfileExtractionStrategy(
                    provider=self.providers.openai
                )

        raise ValueError(f"Unsupported task: {task}")
