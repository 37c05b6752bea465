"""Markdown chunking for the knowledge document.

Uses langchain's MarkdownTextSplitter, which splits on markdown structure
and paragraph breaks before falling back to lines, words and finally
characters, then merges pieces into windows of at most
``chunk_size`` characters with ``chunk_overlap`` characters carried over.
"""

from langchain_text_splitters import MarkdownTextSplitter

from askjohn.config.constants import KB


class MarkdownChunker:
    """Split markdown text into overlapping chunks."""

    def __init__(
        self,
        chunk_size: int = KB.CHUNK_SIZE,
        chunk_overlap: int = KB.CHUNK_OVERLAP,
    ) -> None:
        """
        Args:
            chunk_size: Maximum chunk size in characters
            chunk_overlap: Overlap between consecutive chunks

        Raises:
            ValueError: If the sizes are not a valid window
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if chunk_overlap < 0:
            raise ValueError("chunk_overlap must be non-negative")
        if chunk_overlap >= chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")

        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self._splitter = MarkdownTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            length_function=len,
        )

    def split(self, text: str) -> list[str]:
        """Split ``text`` into non-empty chunks, in document order."""
        if not text or not text.strip():
            return []
        return [chunk for chunk in self._splitter.split_text(text) if chunk.strip()]
