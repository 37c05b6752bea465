"""Knowledge base data model.

A ``Chunk`` is only ever stored once it carries an embedding; the index
is an immutable tuple of chunks that is replaced wholesale on re-index.
"""

from dataclasses import dataclass, field
from enum import Enum


class IndexState(Enum):
    """Lifecycle of the process-wide knowledge index."""

    UNINITIALIZED = "uninitialized"
    INDEXING = "indexing"
    READY = "ready"


@dataclass(frozen=True)
class Chunk:
    """An embedded slice of the knowledge document."""

    id: str
    text: str
    embedding: tuple[float, ...]

    @property
    def dimensions(self) -> int:
        return len(self.embedding)


@dataclass(frozen=True)
class ScoredChunk:
    """A chunk paired with its similarity to a query."""

    chunk: Chunk
    score: float

    @property
    def text(self) -> str:
        return self.chunk.text


@dataclass
class IndexReport:
    """Outcome of one indexing pass."""

    source: str
    chunks_total: int = 0
    chunks_indexed: int = 0
    chunks_dropped: int = 0
    dimensions: int | None = None
    elapsed_ms: float = 0.0
    ok: bool = True
    error: str | None = None
    dropped_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Serialize for API responses and logs."""
        return {
            "source": self.source,
            "chunks_total": self.chunks_total,
            "chunks_indexed": self.chunks_indexed,
            "chunks_dropped": self.chunks_dropped,
            "dimensions": self.dimensions,
            "elapsed_ms": round(self.elapsed_ms, 2),
            "ok": self.ok,
            "error": self.error,
        }
