import logging
import re
from app.api.v1.endpoints.openai.enums import AITask
from app.api.v1.endpoints.openai.factory import AIAnalysisFactory
from app.api.v1.endpoints.openai.provider import get_providers
from app.api.v1.endpoints.openai.strategies import ProfileInput
from app.schemas.extraction import ExtractedProfileData, Influence

logger = logging.getLogger(__name__)

_LIST_SEPARATORS = re.compile(r"[,;]|\s+und\s+|\s+and\s+", re.IGNORECASE)
MAX_VALUES = 5


def _split_list(text: str, prefixes: str, max_length: int) -> list[str]:
    text = re.sub(rf"^\s*(?:{prefixes})\s*", "", text, flags=re.IGNORECASE)
    items = [part.strip().rstrip(".") for part in _LIST_SEPARATORS.split(text)]
    return [item for item in items if 1 < len(item) < max_length]


def extract_influences_simple(text: str) -> ExtractedProfileData:
    names = _split_list(text, r"influences:|einflüsse:|vorbilder:", 100)
    if not names:
        return ExtractedProfileData()
    return ExtractedProfileData(influences=[Influence(name=name, type="other") for name in names])


def extract_values_simple(text: str) -> ExtractedProfileData:
    values = _split_list(text, r"values:|werte:", 50)[:MAX_VALUES]
    if not values:
        return ExtractedProfileData()
    return ExtractedProfileData(values=values)


def simple_profile_extraction(text: str, topic: str) -> ExtractedProfileData:
    if topic == "influences":
        return extract_influences_simple(text)
    return extract_values_simple(text)


async def extract_profile_data(text: str, topic: str) -> ExtractedProfileData:
    """LLM profile extraction; falls back to a plain list split when the model is unavailable."""
    topic = topic.strip().lower()
    try:
        strategy = AIAnalysisFactory(get_providers()).create(AITask.PROFILE_EXTRACTION)
        parsed = await strategy.execute(input=ProfileInput(answer=text, topic=topic))
    except Exception as e:
        logger.error(f"Profile extraction failed, using rule-based split: {str(e)}")
        return simple_profile_extraction(text, topic)

    return ExtractedProfileData(
        values=(parsed.values or [])[:MAX_VALUES] or None,
        motto=(parsed.motto or "").strip() or None,
        influences=parsed.influences or None,
        role_models=parsed.role_models or None,
        favorite_authors=parsed.favorite_authors or None,
    )
