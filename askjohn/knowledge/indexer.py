"""Knowledge indexer.

Reads the knowledge document, splits it into overlapping chunks, embeds
every chunk and swaps the result into the ``ChunkStore``.

Failure policy:
- Source unreadable: the pass is aborted, logged, and the store keeps
  whatever it held before.
- A chunk that cannot be embedded (error, timeout, empty vector or a
  vector of the wrong size) is dropped; the pass carries on.
"""

import asyncio
import time
from pathlib import Path

from askjohn.config.constants import KB
from askjohn.exceptions import SourceReadError
from askjohn.knowledge.chunker import MarkdownChunker
from askjohn.knowledge.embeddings import EmbeddingProvider
from askjohn.knowledge.models import Chunk, IndexReport
from askjohn.knowledge.store import ChunkStore
from askjohn.observability.logging import KnowledgeLogger
from askjohn.observability.metrics import record_index_pass
from askjohn.utils.async_timeout import with_timeout


def read_source(path: Path) -> str:
    """Read the knowledge document as UTF-8.

    Raises:
        SourceReadError: If the file is missing, unreadable or not UTF-8
    """
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SourceReadError(str(path), str(e)) from e


class KnowledgeIndexer:
    """Builds the chunk index for one source document."""

    def __init__(
        self,
        chunker: MarkdownChunker,
        provider: EmbeddingProvider,
        store: ChunkStore,
        source_path: str | Path,
        concurrency: int = KB.EMBEDDING_CONCURRENCY,
        timeout_s: float = KB.EMBEDDING_TIMEOUT_S,
        logger: KnowledgeLogger | None = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._chunker = chunker
        self._provider = provider
        self._store = store
        self._source_path = Path(source_path)
        self._concurrency = concurrency
        self._timeout_s = timeout_s
        self._log = logger or KnowledgeLogger(source=str(self._source_path))

    @property
    def source_path(self) -> Path:
        return self._source_path

    async def index(self) -> IndexReport:
        """Run one indexing pass.

        Never raises; the outcome is described by the returned report.
        """
        start = time.perf_counter()
        report = IndexReport(source=str(self._source_path))
        self._log.index_started(self._chunker.chunk_size, self._chunker.chunk_overlap)

        try:
            text = read_source(self._source_path)
        except SourceReadError as e:
            report.ok = False
            report.error = e.message
            report.elapsed_ms = (time.perf_counter() - start) * 1000
            self._log.index_failed(e.message, report.elapsed_ms)
            record_index_pass("failed", report.elapsed_ms)
            return report

        pieces = self._chunker.split(text)
        report.chunks_total = len(pieces)
        self._log.document_split(len(pieces))

        embeddings = await self._embed_all(pieces)

        chunks: list[Chunk] = []
        for n, (piece, result) in enumerate(zip(pieces, embeddings)):
            chunk_id = f"{KB.CHUNK_ID_PREFIX}{n}"
            if isinstance(result, BaseException):
                reason = getattr(result, "message", None) or str(result) or type(result).__name__
                self._drop(report, chunk_id, reason)
                continue
            if not result:
                self._drop(report, chunk_id, "empty embedding")
                continue
            if report.dimensions is None:
                report.dimensions = len(result)
            elif len(result) != report.dimensions:
                self._drop(
                    report,
                    chunk_id,
                    f"dimension mismatch: expected {report.dimensions}, got {len(result)}",
                )
                continue
            chunks.append(Chunk(id=chunk_id, text=piece, embedding=tuple(result)))

        self._store.replace(chunks)
        report.chunks_indexed = len(chunks)
        report.elapsed_ms = (time.perf_counter() - start) * 1000

        self._log.index_completed(
            report.chunks_indexed, report.chunks_dropped, report.elapsed_ms
        )
        record_index_pass(
            "success",
            report.elapsed_ms,
            indexed=report.chunks_indexed,
            dropped=report.chunks_dropped,
        )
        return report

    async def _embed_all(self, pieces: list[str]) -> list[list[float] | BaseException]:
        """Embed every piece with at most ``concurrency`` calls in flight.

        Results line up with ``pieces``; a failed call yields its exception.
        """
        semaphore = asyncio.Semaphore(self._concurrency)

        async def embed_one(n: int, piece: str) -> list[float]:
            async with semaphore:
                return await with_timeout(
                    self._provider.embed(piece),
                    self._timeout_s,
                    operation=f"embed {KB.CHUNK_ID_PREFIX}{n}",
                )

        return await asyncio.gather(
            *(embed_one(n, piece) for n, piece in enumerate(pieces)),
            return_exceptions=True,
        )

    def _drop(self, report: IndexReport, chunk_id: str, reason: str) -> None:
        report.chunks_dropped += 1
        report.dropped_ids.append(chunk_id)
        self._log.chunk_dropped(chunk_id, reason)

