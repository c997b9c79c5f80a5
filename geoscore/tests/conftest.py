# geoscore/tests/conftest.py
import asyncio
import json
import pytest
from typing import Dict, List, Optional, Union

from geoscore.config.scoring import ScoringConfig
from geoscore.config.settings import Settings
from geoscore.core.exceptions import ContentReadException
from geoscore.core.pipeline import GeoAnalysisPipeline
from geoscore.models.internal import ContentDocument
from geoscore.services.text_generation import TextGenerator

SAMPLE_CONTENT = """# Python Testing Guide

Python testing tools are used by 500 companies in 2024. Pytest reduces boilerplate by 40 lines per module.

## Why pytest

- Fixtures replace setup methods
- Plain assert statements
- Large plugin ecosystem

Teams report 30% faster feedback than with unittest. Adoption grew in March.

## Getting started

Install the package and write a test function. Run the suite from the project root.
"""

SEMANTIC_REPLY = {
    "triples": [
        {"subject": "Pytest", "predicate": "reduces", "object": "boilerplate", "confidence": 0.9},
        {"subject": "Fixtures", "predicate": "replace", "object": "setup methods", "confidence": 0.8},
        {"subject": "Teams", "predicate": "report", "object": "faster feedback", "confidence": 0.7},
    ],
    "entities": [
        {"text": "Python", "type": "TECHNOLOGY", "context": "language", "importance": 0.9},
        {"text": "pytest", "type": "PRODUCT", "context": "test runner", "importance": 0.8},
        {"text": "unittest", "type": "PRODUCT", "context": "baseline", "importance": 0.5},
        {"text": "30%", "type": "METRIC", "context": "feedback speed", "importance": 0.6},
    ],
    "coherence": {"coherent": True, "missingContext": [], "selfContained": True},
    "relevance": 0.85,
}


class FakeTextGenerator(TextGenerator):
    """Returns scripted replies and records every call"""

    def __init__(self, response: Union[str, Dict, None] = None, error: Optional[Exception] = None):
        self.response = json.dumps(SEMANTIC_REPLY) if response is None else response
        self.error = error
        self.calls: List[Dict] = []
        self.closed = False

    async def run(self, model_id, messages, max_tokens, temperature):
        self.calls.append({
            "model_id": model_id,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        if self.error is not None:
            raise self.error
        if isinstance(self.response, dict):
            return self.response
        return {"response": self.response}

    async def health_check(self) -> str:
        return "healthy"

    async def close(self):
        self.closed = True


class FakeContentReader:
    """Serves documents from memory; an Exception value is raised on read"""

    def __init__(
        self,
        pages: Optional[Dict] = None,
        search_results: Optional[List[ContentDocument]] = None,
        search_error: Optional[Exception] = None
    ):
        self.pages = pages or {}
        self.search_results = search_results or []
        self.search_error = search_error
        self.reads: List[str] = []
        self.searches: List[str] = []
        self.closed = False

    async def read(self, url, options=None):
        self.reads.append(url)
        page = self.pages.get(url)
        if page is None:
            raise ContentReadException("Jina Reader failed: 404", status_code=404, target=url)
        if isinstance(page, Exception):
            raise page
        return page

    async def search(self, query, options=None):
        self.searches.append(query)
        if self.search_error is not None:
            raise self.search_error
        return list(self.search_results)

    async def read_batch(self, urls, options=None):
        return list(await asyncio.gather(*(self.read(url, options) for url in urls), return_exceptions=True))

    async def close(self):
        self.closed = True


def make_document(url: str, content: str = SAMPLE_CONTENT, title: str = "Python Testing Guide") -> ContentDocument:
    return ContentDocument(title=title, url=url, content=content, usage_tokens=120)


@pytest.fixture
def scoring_config():
    return ScoringConfig()

@pytest.fixture
def test_settings():
    return Settings(MAX_CONTENT_SIZE=5000, LLM_PROVIDER="ollama")

@pytest.fixture
def fake_generator():
    return FakeTextGenerator()

@pytest.fixture
def fake_reader():
    return FakeContentReader(pages={
        "https://example.com/guide": make_document("https://example.com/guide"),
        "https://example.com/short": make_document(
            "https://example.com/short", content="Short sentence. Another short one.", title="Short"
        ),
        "https://competitor.com/a": make_document("https://competitor.com/a", title="Competitor A"),
    })

@pytest.fixture
def pipeline(test_settings, fake_generator, fake_reader):
    return GeoAnalysisPipeline(config=test_settings, generator=fake_generator, reader=fake_reader)
