"""
Tests for LLM-backed event splitting and profile extraction with their fallbacks.
"""
from unittest.mock import patch

import pytest

from app.api.v1.endpoints.openai.provider import AIProvider, ProviderRegistry
from app.api.v1.extraction import profile_extractor, splitter
from app.schemas.extraction import (
    EventSplitResponse,
    Influence,
    ProfileExtractionResponse,
    SplitEvent,
)


class FakeProvider(AIProvider):

    def __init__(self, output):
        self.output = output
        self.calls = []

    async def parse_json(self, *, model, system_prompt, user_prompt, response_format):
        self.calls.append({"user_prompt": user_prompt, "response_format": response_format})
        return self.output


def split_event(title, start_date=None, **kwargs):
    fields = dict(description="", end_date=None, is_ongoing=None, location=None)
    fields.update(kwargs)
    return SplitEvent(title=title, start_date=start_date, **fields)


@pytest.mark.parametrize("value,expected", [
    ("2015-03-01", "2015-03-01"),
    ("2015", "2015-01-01"),
    ("ca. 2003", "2003-01-01"),
    ("Sommer 1987", "1987-01-01"),
    ("irgendwann", None),
    (None, None),
])
def test_normalize_date(value, expected):
    assert splitter.normalize_date(value) == expected


def test_fallback_event_truncates_title():
    event = splitter.fallback_event("x" * 80, "career")
    assert event.title == "Career: " + "x" * 50 + "..."
    assert event.start_date is None
    assert event.confidence == 0.5


@pytest.mark.asyncio
async def test_split_maps_events_and_confidence():
    provider = FakeProvider(EventSplitResponse(events=[
        split_event("Lehrerin in Bremen", "1990", is_ongoing=True, location="Bremen"),
        split_event("  Bäckerlehre  ", None, description="Drei Jahre\n\n\n\nim Betrieb"),
    ]))
    with patch.object(splitter, "get_providers", return_value=ProviderRegistry(openai=provider)):
        events = await splitter.split_composite_answer("Erst Bäckerlehre, dann Lehrerin seit 1990", "career")

    assert [e.title for e in events] == ["Lehrerin in Bremen", "Bäckerlehre"]
    assert events[0].start_date == "1990-01-01"
    assert events[0].confidence == 0.9
    assert events[0].is_ongoing is True
    assert events[1].confidence == 0.75
    assert events[1].description == "Drei Jahre\n\nim Betrieb"
    assert all(e.category == "career" for e in events)
    assert provider.calls[0]["response_format"] is EventSplitResponse
    assert "CAREER EXTRACTION RULES" in provider.calls[0]["user_prompt"]


@pytest.mark.asyncio
async def test_split_falls_back_on_provider_error():
    with patch.object(splitter, "get_providers", side_effect=RuntimeError("no api key")):
        events = await splitter.split_composite_answer("Wir haben 1975 geheiratet", "family")

    assert len(events) == 1
    assert events[0].title.startswith("Family: ")
    assert events[0].confidence == 0.5


@pytest.mark.asyncio
async def test_short_answer_is_not_split():
    assert await splitter.split_composite_answer("kurz", "career") == []


def test_simple_values_split():
    data = profile_extractor.extract_values_simple("Werte: Ehrlichkeit, Mut und Familie; Humor")
    assert data.values == ["Ehrlichkeit", "Mut", "Familie", "Humor"]


def test_simple_values_capped():
    data = profile_extractor.extract_values_simple("a1, b2, c3, d4, e5, f6")
    assert data.values == ["a1", "b2", "c3", "d4", "e5"]


def test_simple_influences():
    data = profile_extractor.extract_influences_simple("Hermann Hesse und meine Großmutter")
    assert [i.name for i in data.influences] == ["Hermann Hesse", "meine Großmutter"]
    assert all(i.type == "other" for i in data.influences)


@pytest.mark.asyncio
async def test_profile_uses_llm_output():
    provider = FakeProvider(ProfileExtractionResponse(
        values=["Mut", "Treue", "Neugier", "Ruhe", "Humor", "Fleiß"],
        motto="  Leben und leben lassen ",
        influences=[Influence(name="Hermann Hesse", type="author")],
        role_models=None,
        favorite_authors=[],
    ))
    with patch.object(profile_extractor, "get_providers", return_value=ProviderRegistry(openai=provider)):
        data = await profile_extractor.extract_profile_data("Hesse hat mich geprägt", "Influences")

    assert data.values == ["Mut", "Treue", "Neugier", "Ruhe", "Humor"]
    assert data.motto == "Leben und leben lassen"
    assert data.influences[0].type == "author"
    assert data.role_models is None
    assert data.favorite_authors is None


@pytest.mark.asyncio
async def test_profile_falls_back_on_provider_error():
    with patch.object(profile_extractor, "get_providers", side_effect=RuntimeError("quota")):
        data = await profile_extractor.extract_profile_data("Ehrlichkeit und Mut", "values")

    assert data.values == ["Ehrlichkeit", "Mut"]
