"""Ask John - ACA health insurance assistant with knowledge-base retrieval."""

__version__ = "0.1.0"

# Export exception hierarchy for easy importing
from askjohn.exceptions import (
    AskJohnError,
    ConfigurationError,
    MissingConfigError,
    InvalidConfigError,
    KnowledgeError,
    SourceReadError,
    EmbeddingError,
    RetrievalError,
    SearchError,
    WebSearchError,
    LLMError,
    LLMConnectionError,
    LLMGenerationError,
)

__all__ = [
    "__version__",
    # Base
    "AskJohnError",
    # Configuration
    "ConfigurationError",
    "MissingConfigError",
    "InvalidConfigError",
    # Knowledge base
    "KnowledgeError",
    "SourceReadError",
    "EmbeddingError",
    "RetrievalError",
    # Search
    "SearchError",
    "WebSearchError",
    # LLM
    "LLMError",
    "LLMConnectionError",
    "LLMGenerationError",
]
