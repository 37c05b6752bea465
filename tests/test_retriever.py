"""Tests for retrieval scoring and the knowledge retriever."""

import math

import pytest

from askjohn.knowledge.models import Chunk, ScoredChunk
from askjohn.knowledge.retriever import (
    KnowledgeRetriever,
    dot_product,
    score_chunks,
    top_matches,
)
from askjohn.knowledge.store import ChunkStore
from tests.conftest import FakeEmbeddings


def _chunk(n: int, *vector: float) -> Chunk:
    return Chunk(id=f"chunk-{n}", text=f"text {n}", embedding=tuple(vector))


class TestDotProduct:
    """Tests for the similarity function."""

    def test_raw_dot_product(self):
        """Default score is the plain dot product."""
        assert dot_product([1.0, 2.0, 3.0], [4.0, 5.0, 6.0]) == pytest.approx(32.0)

    def test_dimension_mismatch_scores_zero(self):
        """Vectors of different sizes score 0."""
        assert dot_product([1.0, 2.0], [1.0, 2.0, 3.0]) == 0.0

    def test_empty_vector_scores_zero(self):
        """An empty vector scores 0."""
        assert dot_product([], []) == 0.0

    def test_normalized_is_cosine(self):
        """With normalize the score is cosine similarity."""
        score = dot_product([3.0, 4.0], [6.0, 8.0], normalize=True)
        assert score == pytest.approx(1.0)

    def test_normalized_zero_vector(self):
        """A zero vector stays zero instead of dividing by zero."""
        assert dot_product([0.0, 0.0], [1.0, 1.0], normalize=True) == 0.0


class TestScoreChunks:
    """Tests for scoring a whole index."""

    def test_scores_in_index_order(self):
        """One score per chunk, in index order."""
        chunks = (_chunk(0, 1.0, 0.0), _chunk(1, 0.0, 1.0), _chunk(2, 2.0, 2.0))

        scored = score_chunks([1.0, 0.5], chunks)

        assert [s.chunk.id for s in scored] == ["chunk-0", "chunk-1", "chunk-2"]
        assert [s.score for s in scored] == pytest.approx([1.0, 0.5, 3.0])

    def test_mismatched_chunk_scores_zero(self):
        """A chunk of the wrong size scores 0 without failing the rest."""
        chunks = (_chunk(0, 1.0, 1.0), _chunk(1, 1.0, 1.0, 1.0))

        scored = score_chunks([1.0, 1.0], chunks)

        assert scored[0].score == pytest.approx(2.0)
        assert scored[1].score == 0.0

    def test_normalize_changes_ranking(self):
        """Normalising removes the advantage of long vectors."""
        chunks = (_chunk(0, 10.0, 10.0), _chunk(1, 1.0, 0.0))
        query = [1.0, 0.0]

        raw = score_chunks(query, chunks)
        cosine = score_chunks(query, chunks, normalize=True)

        assert raw[0].score > raw[1].score
        assert cosine[1].score == pytest.approx(1.0)
        assert cosine[0].score == pytest.approx(1 / math.sqrt(2))


class TestTopMatches:
    """Tests for ranking."""

    def test_filters_non_positive(self):
        """Zero and negative scores are never returned."""
        scored = [
            ScoredChunk(_chunk(0, 1.0), 0.0),
            ScoredChunk(_chunk(1, 1.0), -0.5),
            ScoredChunk(_chunk(2, 1.0), 0.2),
        ]

        assert [s.chunk.id for s in top_matches(scored, 3)] == ["chunk-2"]

    def test_sorted_descending_and_truncated(self):
        """Best first, at most ``count``."""
        scored = [ScoredChunk(_chunk(i, 1.0), s) for i, s in enumerate([0.1, 0.9, 0.5, 0.7])]

        result = top_matches(scored, 2)

        assert [s.chunk.id for s in result] == ["chunk-1", "chunk-3"]

    def test_ties_keep_index_order(self):
        """Equal scores keep their original order."""
        scored = [ScoredChunk(_chunk(i, 1.0), 0.5) for i in range(4)]

        result = top_matches(scored, 3)

        assert [s.chunk.id for s in result] == ["chunk-0", "chunk-1", "chunk-2"]


class TestKnowledgeRetriever:
    """Tests for KnowledgeRetriever."""

    @pytest.fixture
    def store(self) -> ChunkStore:
        provider = FakeEmbeddings()
        texts = [
            "Open enrollment starts in November.",
            "Your deductible resets every year.",
            "Medicaid has no enrollment period.",
        ]
        store = ChunkStore()
        store.replace([
            Chunk(
                id=f"chunk-{n}",
                text=text,
                embedding=tuple(float(text.lower().count(t)) for t in provider.vocabulary),
            )
            for n, text in enumerate(texts)
        ])
        return store

    @pytest.mark.asyncio
    async def test_retrieve_returns_texts(self, store):
        """Matching chunk texts come back best first."""
        retriever = KnowledgeRetriever(FakeEmbeddings(), store)

        texts = await retriever.retrieve("open enrollment", count=3)

        assert texts == [
            "Open enrollment starts in November.",
            "Medicaid has no enrollment period.",
        ]

    @pytest.mark.asyncio
    async def test_count_limits_results(self, store):
        """No more than ``count`` results."""
        retriever = KnowledgeRetriever(FakeEmbeddings(), store)

        texts = await retriever.retrieve("open enrollment", count=1)

        assert texts == ["Open enrollment starts in November."]

    @pytest.mark.asyncio
    async def test_search_returns_scores(self, store):
        """search() exposes the scores."""
        retriever = KnowledgeRetriever(FakeEmbeddings(), store)

        results = await retriever.search("deductible")

        assert len(results) == 1
        assert results[0].text == "Your deductible resets every year."
        assert results[0].score == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_no_overlap_returns_empty(self, store):
        """A query sharing nothing with the index returns nothing."""
        retriever = KnowledgeRetriever(FakeEmbeddings(), store)
        assert await retriever.retrieve("weather tomorrow") == []

    @pytest.mark.asyncio
    async def test_blank_query(self, store):
        """Blank query returns nothing and skips the provider."""
        provider = FakeEmbeddings()
        retriever = KnowledgeRetriever(provider, store)

        assert await retriever.retrieve("   ") == []
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_non_positive_count(self, store):
        """count below one returns nothing."""
        retriever = KnowledgeRetriever(FakeEmbeddings(), store)
        assert await retriever.retrieve("open enrollment", count=0) == []

    @pytest.mark.asyncio
    async def test_empty_store(self):
        """Empty index returns nothing without embedding the query."""
        provider = FakeEmbeddings()
        retriever = KnowledgeRetriever(provider, ChunkStore())

        assert await retriever.retrieve("open enrollment") == []
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_query_embedding_failure(self, store):
        """Provider failure on the query degrades to no results."""
        provider = FakeEmbeddings()
        provider.fail_on = {"enrollment"}
        retriever = KnowledgeRetriever(provider, store)

        assert await retriever.retrieve("open enrollment") == []

    @pytest.mark.asyncio
    async def test_empty_query_embedding(self, store):
        """Empty query vector degrades to no results."""
        provider = FakeEmbeddings()
        provider.empty_on = {"enrollment"}
        retriever = KnowledgeRetriever(provider, store)

        assert await retriever.retrieve("open enrollment") == []

    @pytest.mark.asyncio
    async def test_query_dimension_mismatch(self, store):
        """A query vector of the wrong size matches nothing."""
        provider = FakeEmbeddings()
        provider.overrides = {"enrollment": [1.0, 1.0]}
        retriever = KnowledgeRetriever(provider, store)

        assert await retriever.retrieve("open enrollment") == []
