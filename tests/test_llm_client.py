import asyncio

import pytest

from bankai.config import LLMSettings, Settings
from bankai.errors import ConfigurationError
from bankai.models.paper import Paper
from bankai.services.llm_client import GeminiClient, GroqClient, build_chat_client, build_gemini_client


@pytest.fixture()
def settings(tmp_path):
    Settings.reset()
    yield Settings(db_path=tmp_path / "bankai.db", metadata_dir=tmp_path, gemini_api_key=None)
    Settings.reset()


def test_gemini_requires_key():
    with pytest.raises(ConfigurationError):
        GeminiClient("")


def test_groq_without_key_fails_before_network():
    with pytest.raises(ConfigurationError):
        asyncio.run(GroqClient(None).generate("hello"))


def test_groq_cannot_web_search():
    with pytest.raises(ConfigurationError):
        asyncio.run(GroqClient("gsk-test").generate("find papers", web_search=True))


def test_builders_respect_provider_and_key(settings):
    assert build_gemini_client(settings) is None
    assert build_chat_client(settings, LLMSettings()) is None

    groq = build_chat_client(settings, LLMSettings(provider="groq", groq_api_key="gsk", groq_model="mixtral"))
    assert isinstance(groq, GroqClient)
    assert groq.model == "mixtral"


def test_paper_serializes_to_camel_case():
    paper = Paper(
        id="1",
        title="T",
        abstract="A",
        authors=["X"],
        publication_date="2025-01-01",
        source="ArXiv",
        url="https://example.org",
    )
    data = paper.to_dict()
    assert data["publicationDate"] == "2025-01-01"
    assert data["bankingDomain"] == "General Banking AI"
    assert data["isFavorite"] is False
    assert Paper.from_dict(data) == paper
