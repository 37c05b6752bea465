"""Ask John Exception Hierarchy.

Provides structured exception classes for better error handling.

Hierarchy:
    AskJohnError (base)
    ├── ConfigurationError
    │   ├── MissingConfigError
    │   └── InvalidConfigError
    ├── KnowledgeError
    │   ├── SourceReadError
    │   ├── EmbeddingError
    │   └── RetrievalError
    ├── SearchError
    │   └── WebSearchError
    └── LLMError
        ├── LLMConnectionError
        └── LLMGenerationError
"""

from typing import Any


class AskJohnError(Exception):
    """Base exception for all Ask John errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the error can be recovered from
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(AskJohnError):
    """Base exception for configuration-related errors."""

    pass


class MissingConfigError(ConfigurationError):
    """Raised when a required configuration is missing."""

    def __init__(self, config_key: str, description: str | None = None) -> None:
        message = f"Missing required configuration: {config_key}"
        if description:
            message += f" - {description}"
        super().__init__(
            message=message,
            details={"config_key": config_key},
            recoverable=False,
        )


class InvalidConfigError(ConfigurationError):
    """Raised when a configuration value is invalid."""

    def __init__(
        self,
        config_key: str,
        value: Any,
        reason: str,
    ) -> None:
        super().__init__(
            message=f"Invalid configuration for {config_key}: {reason}",
            details={
                "config_key": config_key,
                "value": str(value),
                "reason": reason,
            },
            recoverable=False,
        )


# =============================================================================
# Knowledge Base Errors
# =============================================================================


class KnowledgeError(AskJohnError):
    """Base exception for knowledge-base errors."""

    pass


class SourceReadError(KnowledgeError):
    """Raised when the knowledge document cannot be read."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            message=f"Failed to read knowledge source {path}: {reason}",
            details={"path": path, "reason": reason},
            recoverable=True,  # Source may appear before the next pass
        )
        self.path = path


class EmbeddingError(KnowledgeError):
    """Raised when the embedding provider fails or returns an empty vector."""

    def __init__(
        self,
        reason: str,
        model: str | None = None,
        chunk_id: str | None = None,
    ) -> None:
        details: dict[str, Any] = {"reason": reason}
        if model:
            details["model"] = model
        if chunk_id:
            details["chunk_id"] = chunk_id
        super().__init__(
            message=f"Embedding failed: {reason}",
            details=details,
            recoverable=True,
        )
        self.chunk_id = chunk_id


class RetrievalError(KnowledgeError):
    """Raised when scoring or ranking chunks fails."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            message=f"Retrieval failed: {reason}",
            details={"reason": reason},
            recoverable=True,
        )


# =============================================================================
# Search Errors
# =============================================================================


class SearchError(AskJohnError):
    """Base exception for web-search errors."""

    pass


class WebSearchError(SearchError):
    """Raised when the web-search provider fails."""

    def __init__(
        self,
        reason: str,
        status_code: int | None = None,
    ) -> None:
        details: dict[str, Any] = {"reason": reason}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(
            message=f"Web search failed: {reason}",
            details=details,
            recoverable=True,
        )
        self.status_code = status_code


# =============================================================================
# LLM Errors
# =============================================================================


class LLMError(AskJohnError):
    """Base exception for LLM-related errors."""

    pass


class LLMConnectionError(LLMError):
    """Raised when LLM service connection fails."""

    def __init__(self, backend: str, reason: str) -> None:
        super().__init__(
            message=f"Failed to connect to LLM backend {backend}: {reason}",
            details={"backend": backend, "reason": reason},
            recoverable=True,  # Connection can be retried
        )


class LLMGenerationError(LLMError):
    """Raised when LLM generation fails."""

    def __init__(
        self,
        reason: str,
        model: str | None = None,
    ) -> None:
        details: dict[str, Any] = {"reason": reason}
        if model:
            details["model"] = model
        super().__init__(
            message=f"LLM generation failed: {reason}",
            details=details,
            recoverable=False,
        )
