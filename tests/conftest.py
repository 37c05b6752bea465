"""Pytest configuration and shared fixtures."""

import os
from typing import Generator

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing settings
os.environ.update({
    "ENVIRONMENT": "development",
    "EMBEDDING_PROVIDER": "openai",
    "INDEX_ON_STARTUP": "false",  # Tests index explicitly
    "OPENAI_API_KEY": "test-openai-key",
    "PERPLEXITY_API_KEY": "",
})

from askjohn.knowledge.embeddings import EmbeddingProvider  # noqa: E402

# Vocabulary for the fake provider: one dimension per term
VOCABULARY = [
    "enrollment",
    "special",
    "open",
    "deductible",
    "premium",
    "medicaid",
    "subsidy",
    "bronze",
]


class FakeEmbeddings(EmbeddingProvider):
    """Deterministic bag-of-words embeddings over a fixed vocabulary.

    Texts sharing no vocabulary term with the query score 0 and are
    never returned.
    """

    def __init__(self, vocabulary: list[str] | None = None) -> None:
        self.vocabulary = vocabulary or VOCABULARY
        self.calls: list[str] = []
        self.fail_on: set[str] = set()
        self.empty_on: set[str] = set()
        self.overrides: dict[str, list[float]] = {}

    @property
    def model(self) -> str:
        return "fake-embedding-model"

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        lowered = text.lower()
        for marker, vector in self.overrides.items():
            if marker in lowered:
                return vector
        if any(marker in lowered for marker in self.fail_on):
            raise RuntimeError("provider unavailable")
        if any(marker in lowered for marker in self.empty_on):
            return []
        return [float(lowered.count(term)) for term in self.vocabulary]


@pytest.fixture
def fake_embeddings() -> FakeEmbeddings:
    """Provide a deterministic embedding provider."""
    return FakeEmbeddings()


@pytest.fixture
def knowledge_file(tmp_path):
    """Write a markdown knowledge document and return its path."""
    def _write(text: str, name: str = "knowledge.md"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def sep_document(knowledge_file):
    """Single-chunk document about Special Enrollment Periods."""
    return knowledge_file("Special enrollment lasts 60 days after a qualifying event.")


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Provide FastAPI test client."""
    from askjohn.main import app
    with TestClient(app) as c:
        yield c
