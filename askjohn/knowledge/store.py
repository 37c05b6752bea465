"""In-memory chunk store.

The store owns the current index as an immutable tuple. Readers take the
tuple reference once per call; an indexing pass builds a new tuple and
swaps the reference, so a query racing a re-index scores either the old
index or the new one, never a mix.
"""

from askjohn.knowledge.models import Chunk


class ChunkStore:
    """Holds the embedded chunks of the knowledge document."""

    def __init__(self) -> None:
        self._chunks: tuple[Chunk, ...] = ()

    def snapshot(self) -> tuple[Chunk, ...]:
        """Current index. Never mutated after it is returned."""
        return self._chunks

    def replace(self, chunks: list[Chunk] | tuple[Chunk, ...]) -> None:
        """Swap in a freshly built index."""
        self._chunks = tuple(chunks)

    @property
    def dimensions(self) -> int | None:
        chunks = self._chunks
        return chunks[0].dimensions if chunks else None

    def __len__(self) -> int:
        return len(self._chunks)

    def __bool__(self) -> bool:
        return bool(self._chunks)
