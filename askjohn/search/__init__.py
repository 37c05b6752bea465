"""Search module - web search tool for the assistant."""

from askjohn.search.perplexity import (
    TOOL_NAME,
    TOOL_SCHEMA,
    PerplexityConfig,
    PerplexitySearch,
)

__all__ = [
    "TOOL_NAME",
    "TOOL_SCHEMA",
    "PerplexityConfig",
    "PerplexitySearch",
]
