"""Observability module - structured logging and Prometheus metrics."""

from askjohn.observability.logging import (
    KnowledgeLogger,
    configure_logging,
    get_logger,
    init_logging,
)

__all__ = [
    "KnowledgeLogger",
    "configure_logging",
    "get_logger",
    "init_logging",
]
