"""Knowledge retriever.

Embeds a query with the same provider that built the index, scores every
chunk by dot product and returns the best matches.

Retrieval is best effort: every failure degrades to an empty result and
is logged, never raised to the caller.
"""

import time

import numpy as np

from askjohn.config.constants import KB
from askjohn.exceptions import AskJohnError, EmbeddingError, RetrievalError
from askjohn.knowledge.embeddings import EmbeddingProvider
from askjohn.knowledge.models import Chunk, ScoredChunk
from askjohn.knowledge.store import ChunkStore
from askjohn.observability.logging import KnowledgeLogger
from askjohn.observability.metrics import record_retrieval
from askjohn.utils.async_timeout import with_timeout


def dot_product(a, b, normalize: bool = False) -> float:
    """Similarity of two vectors.

    Returns 0.0 when either vector is empty or their sizes differ.
    With ``normalize`` both vectors are scaled to unit length first,
    which turns the score into cosine similarity.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.size == 0 or va.shape != vb.shape:
        return 0.0
    if normalize:
        va = _unit(va)
        vb = _unit(vb)
    return float(np.dot(va, vb))


def _unit(v: np.ndarray) -> np.ndarray:
    norm = np.linalg.norm(v, axis=-1, keepdims=True)
    return np.divide(v, norm, out=np.zeros_like(v), where=norm > 0)


def score_chunks(
    query_vector,
    chunks: tuple[Chunk, ...] | list[Chunk],
    normalize: bool = False,
) -> list[ScoredChunk]:
    """Score every chunk against the query, in index order."""
    query = np.asarray(query_vector, dtype=np.float64)
    if normalize:
        query = _unit(query)

    scores = [0.0] * len(chunks)
    matching = [i for i, c in enumerate(chunks) if c.embedding and c.dimensions == query.size]
    if matching and query.size:
        matrix = np.array([chunks[i].embedding for i in matching], dtype=np.float64)
        if normalize:
            matrix = _unit(matrix)
        for i, score in zip(matching, matrix @ query):
            scores[i] = float(score)

    return [ScoredChunk(chunk=c, score=s) for c, s in zip(chunks, scores)]


def top_matches(scored: list[ScoredChunk], count: int) -> list[ScoredChunk]:
    """Keep positive scores, best first, at most ``count``.

    Ties keep index order.
    """
    positive = [s for s in scored if s.score > 0]
    positive.sort(key=lambda s: s.score, reverse=True)
    return positive[:count]


def _preview(query: str) -> str:
    return query[: KB.QUERY_LOG_PREVIEW_CHARS]


class KnowledgeRetriever:
    """Answers queries against a ``ChunkStore``."""

    def __init__(
        self,
        provider: EmbeddingProvider,
        store: ChunkStore,
        normalize: bool = False,
        timeout_s: float = KB.EMBEDDING_TIMEOUT_S,
        logger: KnowledgeLogger | None = None,
    ) -> None:
        self._provider = provider
        self._store = store
        self._normalize = normalize
        self._timeout_s = timeout_s
        self._log = logger or KnowledgeLogger()

    async def search(self, query: str, count: int = KB.TOP_K) -> list[ScoredChunk]:
        """Best-matching chunks with their scores.

        Args:
            query: User question
            count: Maximum number of chunks to return

        Returns:
            Up to ``count`` chunks with a positive score, best first.
            Empty on blank input, an empty index or any failure.
        """
        if not query or not query.strip() or count < 1:
            return []

        start = time.perf_counter()
        chunks = self._store.snapshot()
        if not chunks:
            self._log.knowledge_empty(_preview(query))
            record_retrieval("empty", (time.perf_counter() - start) * 1000)
            return []

        try:
            query_vector = await self._embed_query(query)
            results = self._rank(query_vector, chunks, count)
        except AskJohnError as e:
            elapsed_ms = (time.perf_counter() - start) * 1000
            self._log.retrieval_failed(_preview(query), e.message)
            record_retrieval("failed", elapsed_ms)
            return []

        elapsed_ms = (time.perf_counter() - start) * 1000
        self._log.retrieval_completed(_preview(query), count, len(results), elapsed_ms)
        record_retrieval("hit" if results else "empty", elapsed_ms)
        return results

    async def retrieve(self, query: str, count: int = KB.TOP_K) -> list[str]:
        """Texts of the best-matching chunks, most relevant first."""
        return [match.text for match in await self.search(query, count)]

    async def _embed_query(self, query: str) -> list[float]:
        try:
            vector = await with_timeout(
                self._provider.embed(query),
                self._timeout_s,
                operation="embed query",
            )
        except AskJohnError:
            raise
        except Exception as e:
            raise EmbeddingError(str(e), model=self._provider.model) from e

        if not vector:
            raise EmbeddingError("empty query embedding", model=self._provider.model)
        return vector

    def _rank(
        self,
        query_vector: list[float],
        chunks: tuple[Chunk, ...],
        count: int,
    ) -> list[ScoredChunk]:
        try:
            return top_matches(score_chunks(query_vector, chunks, self._normalize), count)
        except Exception as e:
            raise RetrievalError(str(e)) from e
