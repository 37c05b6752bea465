"""Knowledge Base Constants - Defaults for indexing and retrieval.

Chunking values match the splitter settings the calculator's chat
assistant was tuned with; settings may override them per deployment.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Final

PACKAGE_DIR: Final[Path] = Path(__file__).resolve().parent.parent


@dataclass(frozen=True)
class KnowledgeBaseConstants:
    """Immutable knowledge-base defaults.

    Sizes are in characters, timeouts in seconds.
    """

    # Chunking
    CHUNK_SIZE: Final[int] = 1000  # Target characters per chunk
    CHUNK_OVERLAP: Final[int] = 100  # Characters shared by neighbouring chunks

    # Retrieval
    TOP_K: Final[int] = 3  # Chunks returned per query
    CONTEXT_MAX_CHARS: Final[int] = 4000  # Budget for formatted prompt context
    CONTEXT_SEPARATOR: Final[str] = "\n\n---\n\n"

    # Embedding
    EMBEDDING_MODEL: Final[str] = "text-embedding-3-small"
    LOCAL_EMBEDDING_MODEL: Final[str] = "all-MiniLM-L6-v2"
    EMBEDDING_CONCURRENCY: Final[int] = 4  # Parallel embedding requests per pass
    EMBEDDING_TIMEOUT_S: Final[float] = 10.0

    # Diagnostics
    CHUNK_ID_PREFIX: Final[str] = "chunk-"
    QUERY_LOG_PREVIEW_CHARS: Final[int] = 100


# Singleton instance for import convenience
KB = KnowledgeBaseConstants()

DEFAULT_KNOWLEDGE_BASE_PATH: Final[Path] = PACKAGE_DIR / "data" / "knowledge_base.md"
