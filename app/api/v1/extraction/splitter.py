import logging
import re
from typing import Optional
from app.api.v1.endpoints.openai.enums import AITask
from app.api.v1.endpoints.openai.factory import AIAnalysisFactory
from app.api.v1.endpoints.openai.provider import get_providers
from app.api.v1.endpoints.openai.strategies import EventSplitInput
from app.schemas.extraction import ExtractedLifeEvent

logger = logging.getLogger(__name__)

MIN_SPLIT_LENGTH = 10
MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000
_YEAR = re.compile(r"\b(19\d{2}|20\d{2})\b")


def sanitize_title(title: str) -> str:
    return " ".join(title.split())[:MAX_TITLE_LENGTH]


def sanitize_description(description: str) -> str:
    text = description.strip().replace("\r\n", "\n")
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text[:MAX_DESCRIPTION_LENGTH]


def normalize_date(value: Optional[str]) -> Optional[str]:
    """Coerce LLM dates ("2015", "ca. 2003", "2015-03-01") to YYYY-MM-DD."""
    if not value:
        return None
    value = value.strip()
    if re.fullmatch(r"\d{4}-\d{2}-\d{2}", value):
        return value
    if re.fullmatch(r"\d{4}", value):
        return f"{value}-01-01"
    match = _YEAR.search(value)
    if match:
        return f"{match.group(1)}-01-01"
    return None


def fallback_event(answer_text: str, category: str, confidence: float = 0.5) -> ExtractedLifeEvent:
    """One low-confidence event carrying the whole answer."""
    snippet = answer_text[:50] + ("..." if len(answer_text) > 50 else "")
    return ExtractedLifeEvent(
        title=sanitize_title(f"{category.capitalize()}: {snippet}"),
        description=sanitize_description(answer_text),
        start_date=None,
        category=category,
        confidence=confidence,
        source="onboarding",
    )


async def split_composite_answer(answer_text: str, category: str) -> list[ExtractedLifeEvent]:
    if not answer_text or len(answer_text.strip()) < MIN_SPLIT_LENGTH:
        logger.warning("Answer too short to split into events")
        return []

    try:
        strategy = AIAnalysisFactory(get_providers()).create(AITask.EVENT_SPLITTING)
        parsed = await strategy.execute(
            input=EventSplitInput(answer=answer_text, category=category))

        events = []
        for item in parsed.events:
            start_date = normalize_date(item.start_date)
            events.append(ExtractedLifeEvent(
                title=sanitize_title(item.title or ""),
                description=sanitize_description(item.description or ""),
                start_date=start_date,
                end_date=normalize_date(item.end_date),
                is_ongoing=bool(item.is_ongoing),
                category=category,
                location=item.location or None,
                confidence=0.9 if start_date else 0.75,
                source="onboarding",
            ))
        logger.info(f"Split {category} answer into {len(events)} events")
        return events
    except Exception as e:
        logger.error(f"Event splitting failed, falling back to a single event: {str(e)}")
        return [fallback_event(answer_text, category)]
