"""Knowledge Base - lifecycle facade over the indexer and retriever.

Owns the chunk store, the embedding provider and the index state:

    UNINITIALIZED -> INDEXING -> READY
    READY -> INDEXING -> READY      (explicit reindex)

Usage:
    kb = KnowledgeBase.from_settings(get_settings())
    await kb.initialize()
    texts = await kb.retrieve("When can I enroll?")
    context = format_context(texts)
"""

import asyncio

from askjohn.config.constants import KB
from askjohn.config.settings import Settings, get_settings
from askjohn.knowledge.chunker import MarkdownChunker
from askjohn.knowledge.embeddings import EmbeddingProvider, create_embedding_provider
from askjohn.knowledge.indexer import KnowledgeIndexer
from askjohn.knowledge.models import IndexReport, IndexState, ScoredChunk
from askjohn.knowledge.retriever import KnowledgeRetriever
from askjohn.knowledge.store import ChunkStore
from askjohn.observability.logging import KnowledgeLogger, get_logger

logger = get_logger(__name__)


class KnowledgeBase:
    """Process-wide knowledge index for the assistant."""

    def __init__(
        self,
        provider: EmbeddingProvider,
        source_path: str,
        chunk_size: int = KB.CHUNK_SIZE,
        chunk_overlap: int = KB.CHUNK_OVERLAP,
        top_k: int = KB.TOP_K,
        concurrency: int = KB.EMBEDDING_CONCURRENCY,
        timeout_s: float = KB.EMBEDDING_TIMEOUT_S,
        normalize: bool = False,
    ) -> None:
        self._provider = provider
        self._store = ChunkStore()
        self._top_k = top_k
        self._log = KnowledgeLogger(source=str(source_path))
        self._indexer = KnowledgeIndexer(
            chunker=MarkdownChunker(chunk_size, chunk_overlap),
            provider=provider,
            store=self._store,
            source_path=source_path,
            concurrency=concurrency,
            timeout_s=timeout_s,
            logger=self._log,
        )
        self._retriever = KnowledgeRetriever(
            provider=provider,
            store=self._store,
            normalize=normalize,
            timeout_s=timeout_s,
            logger=self._log,
        )
        self._state = IndexState.UNINITIALIZED
        self._report: IndexReport | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        provider: EmbeddingProvider | None = None,
    ) -> "KnowledgeBase":
        """Build a knowledge base from application settings."""
        return cls(
            provider=provider or create_embedding_provider(settings),
            source_path=settings.knowledge_base_path,
            chunk_size=settings.chunk_size,
            chunk_overlap=settings.chunk_overlap,
            top_k=settings.retrieval_top_k,
            concurrency=settings.embedding_concurrency,
            timeout_s=settings.embedding_timeout_s,
            normalize=settings.normalize_embeddings,
        )

    @property
    def state(self) -> IndexState:
        return self._state

    @property
    def report(self) -> IndexReport | None:
        """Report of the last completed indexing pass."""
        return self._report

    @property
    def is_ready(self) -> bool:
        return self._state == IndexState.READY

    @property
    def chunk_count(self) -> int:
        return len(self._store)

    @property
    def provider(self) -> EmbeddingProvider:
        return self._provider

    async def initialize(self) -> IndexReport:
        """Index the source once.

        Later calls return the existing report without re-indexing.
        Concurrent callers wait for the same pass.
        """
        async with self._lock:
            if self._report is not None:
                return self._report
            return await self._run_pass()

    async def reindex(self) -> IndexReport:
        """Rebuild the index from the source and swap it in."""
        async with self._lock:
            return await self._run_pass()

    async def _run_pass(self) -> IndexReport:
        previous = self._state
        self._state = IndexState.INDEXING
        try:
            report = await self._indexer.index()
        except BaseException:
            self._state = previous
            raise
        self._report = report
        self._state = IndexState.READY
        logger.info(
            "knowledge_base_ready",
            chunks=report.chunks_indexed,
            dropped=report.chunks_dropped,
            ok=report.ok,
        )
        return report

    async def search(self, query: str, count: int | None = None) -> list[ScoredChunk]:
        """Best-matching chunks with scores. Never raises."""
        if self._report is None:
            await self.initialize()
        return await self._retriever.search(query, self._top_k if count is None else count)

    async def retrieve(self, query: str, count: int | None = None) -> list[str]:
        """Texts of the chunks most relevant to ``query``, best first.

        Indexes the source first if no pass has completed yet, waiting
        on a pass another caller already started. Returns an empty list
        when nothing matches or anything fails.
        """
        return [match.text for match in await self.search(query, count)]

    async def close(self) -> None:
        await self._provider.close()


def format_context(
    texts: list[str],
    max_chars: int = KB.CONTEXT_MAX_CHARS,
) -> str:
    """Format retrieved texts as context for the LLM.

    Args:
        texts: Retrieved chunk texts, best first
        max_chars: Maximum total characters of chunk text

    Returns:
        Texts joined by a horizontal rule, or "" when there are none
    """
    if not texts:
        return ""

    context_parts = []
    total_chars = 0

    for text in texts:
        if total_chars + len(text) > max_chars:
            break
        context_parts.append(text)
        total_chars += len(text)

    return KB.CONTEXT_SEPARATOR.join(context_parts)


# Global knowledge base instance
_knowledge_base: KnowledgeBase | None = None


def get_knowledge_base() -> KnowledgeBase:
    """Get or create the global knowledge base (not yet indexed)."""
    global _knowledge_base

    if _knowledge_base is None:
        _knowledge_base = KnowledgeBase.from_settings(get_settings())

    return _knowledge_base


def set_knowledge_base(kb: KnowledgeBase | None) -> None:
    """Replace the global knowledge base (tests, custom wiring)."""
    global _knowledge_base
    _knowledge_base = kb


async def retrieve_relevant_context(query: str, count: int = KB.TOP_K) -> list[str]:
    """Convenience function to query the shared knowledge base.

    Args:
        query: User's question
        count: Number of chunks

    Returns:
        Chunk texts, most relevant first
    """
    return await get_knowledge_base().retrieve(query, count)
