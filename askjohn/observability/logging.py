"""Structured Logging - JSON logs with correlation.

Provides structured logging for:
- Knowledge-base indexing passes
- Dropped chunks (per-chunk embedding failures)
- Retrieval outcomes
- Request correlation across a chat turn

All knowledge-base events carry an ``event_type`` of the form
``knowledge.<event>`` so they can be filtered in the log pipeline.
"""

import logging
import sys
from typing import Any

import structlog


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
) -> None:
    """Configure structured logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: If True, output JSON; else human-readable
    """
    level_name = "WARNING" if level.upper() == "WARN" else level.upper()

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level_name)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Also configure standard logging (httpx, openai, uvicorn)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level_name),
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structured logger.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Bound structlog logger
    """
    return structlog.get_logger(name)


def bind_request(request_id: str) -> None:
    """Bind request_id to all logs in current context."""
    structlog.contextvars.bind_contextvars(request_id=request_id)


def unbind_request() -> None:
    """Remove request_id from log context."""
    structlog.contextvars.unbind_contextvars("request_id")


# -----------------------------------------------------------------------------
# Event-specific logging
# -----------------------------------------------------------------------------


class KnowledgeLogger:
    """Logger for knowledge-base indexing and retrieval events."""

    def __init__(self, source: str | None = None) -> None:
        self._log = get_logger("knowledge")
        if source:
            self._log = self._log.bind(source=source)

    def index_started(self, chunk_size: int, chunk_overlap: int) -> None:
        """Log the start of an indexing pass."""
        self._log.info(
            "index_started",
            event_type="knowledge.index_started",
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
        )

    def document_split(self, chunks: int) -> None:
        """Log how many chunks the document produced."""
        self._log.info(
            "document_split",
            event_type="knowledge.document_split",
            chunks=chunks,
        )

    def index_completed(
        self,
        chunks_indexed: int,
        chunks_dropped: int,
        elapsed_ms: float,
    ) -> None:
        """Log a successful indexing pass."""
        self._log.info(
            "index_completed",
            event_type="knowledge.index_completed",
            chunks_indexed=chunks_indexed,
            chunks_dropped=chunks_dropped,
            elapsed_ms=elapsed_ms,
        )

    def index_failed(self, error: str, elapsed_ms: float) -> None:
        """Log an aborted indexing pass (source unreadable)."""
        self._log.error(
            "index_failed",
            event_type="knowledge.index_failed",
            error=error,
            elapsed_ms=elapsed_ms,
        )

    def chunk_dropped(self, chunk_id: str, reason: str) -> None:
        """Log a chunk discarded because it could not be embedded."""
        self._log.warning(
            "chunk_dropped",
            event_type="knowledge.chunk_dropped",
            chunk_id=chunk_id,
            reason=reason,
        )

    def retrieval_completed(
        self,
        query_preview: str,
        requested: int,
        returned: int,
        elapsed_ms: float,
    ) -> None:
        """Log a retrieval call."""
        self._log.debug(
            "retrieval_completed",
            event_type="knowledge.retrieval_completed",
            query=query_preview,
            requested=requested,
            returned=returned,
            elapsed_ms=elapsed_ms,
        )

    def retrieval_failed(self, query_preview: str, error: str) -> None:
        """Log a retrieval call that degraded to no context."""
        self._log.error(
            "retrieval_failed",
            event_type="knowledge.retrieval_failed",
            query=query_preview,
            error=error,
        )

    def knowledge_empty(self, query_preview: str, **context: Any) -> None:
        """Log a query against an empty index."""
        self._log.warning(
            "knowledge_empty",
            event_type="knowledge.empty",
            query=query_preview,
            **context,
        )


def init_logging(json_format: bool = True, level: str = "INFO") -> None:
    """Initialize logging with defaults.

    Call this once at application startup.
    """
    configure_logging(level=level, json_format=json_format)
