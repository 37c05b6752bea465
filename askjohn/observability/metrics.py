"""Prometheus Metrics - knowledge base and assistant observability.

Exports:
- Indexed chunk count and dropped chunk totals
- Indexing pass duration
- Retrieval latency and empty-result counts
- Web-search and LLM call outcomes
"""

from prometheus_client import Counter, Gauge, Histogram

# -----------------------------------------------------------------------------
# Latency Histograms
# -----------------------------------------------------------------------------

INDEX_DURATION = Histogram(
    "askjohn_index_duration_seconds",
    "Duration of a full knowledge-base indexing pass",
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
)

RETRIEVAL_LATENCY = Histogram(
    "askjohn_retrieval_latency_seconds",
    "Retrieval latency (query embedding + scoring)",
    buckets=[0.01, 0.05, 0.1, 0.2, 0.3, 0.5, 1.0, 2.0],
)

# -----------------------------------------------------------------------------
# Counters
# -----------------------------------------------------------------------------

INDEX_PASSES = Counter(
    "askjohn_index_passes_total",
    "Indexing passes by outcome",
    ["status"],  # success, failed
)

CHUNKS_DROPPED = Counter(
    "askjohn_chunks_dropped_total",
    "Chunks dropped because their embedding could not be produced",
)

RETRIEVALS = Counter(
    "askjohn_retrievals_total",
    "Retrieval calls by outcome",
    ["status"],  # hit, empty, failed
)

WEB_SEARCHES = Counter(
    "askjohn_web_searches_total",
    "Web-search tool calls by outcome",
    ["status"],  # ok, unconfigured, error
)

LLM_CALLS = Counter(
    "askjohn_llm_calls_total",
    "Chat completion calls by outcome",
    ["status"],  # ok, empty, error
)

# -----------------------------------------------------------------------------
# Gauges
# -----------------------------------------------------------------------------

INDEXED_CHUNKS = Gauge(
    "askjohn_indexed_chunks",
    "Chunks currently held in the knowledge-base index",
)


# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------


def record_index_pass(
    status: str,
    elapsed_ms: float,
    indexed: int | None = None,
    dropped: int = 0,
) -> None:
    """Record an indexing pass. ``indexed`` is None when the store was not swapped."""
    INDEX_PASSES.labels(status=status).inc()
    INDEX_DURATION.observe(elapsed_ms / 1000.0)
    if dropped:
        CHUNKS_DROPPED.inc(dropped)
    if indexed is not None:
        INDEXED_CHUNKS.set(indexed)


def record_retrieval(status: str, elapsed_ms: float) -> None:
    """Record a retrieval call."""
    RETRIEVALS.labels(status=status).inc()
    RETRIEVAL_LATENCY.observe(elapsed_ms / 1000.0)


def record_web_search(status: str) -> None:
    """Record a web-search tool call."""
    WEB_SEARCHES.labels(status=status).inc()


def record_llm_call(status: str) -> None:
    """Record a chat completion call."""
    LLM_CALLS.labels(status=status).inc()
