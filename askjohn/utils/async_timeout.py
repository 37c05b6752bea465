"""Async Timeout Utilities.

Bounds calls to external providers (embeddings, LLM, web search) so a
stalled request cannot hang an indexing pass or a chat turn.
"""

import asyncio
from typing import Awaitable, TypeVar

from askjohn.exceptions import AskJohnError

T = TypeVar("T")


class AsyncTimeoutError(AskJohnError):
    """Raised when an async operation times out."""

    def __init__(
        self,
        operation: str,
        timeout_s: float,
        details: dict | None = None,
    ) -> None:
        super().__init__(
            message=f"{operation} timed out after {timeout_s}s",
            details={
                "operation": operation,
                "timeout_s": timeout_s,
                **(details or {}),
            },
            recoverable=True,  # Caller can retry
        )
        self.operation = operation
        self.timeout_s = timeout_s


async def with_timeout(
    coro: Awaitable[T],
    timeout_s: float,
    operation: str = "operation",
) -> T:
    """Execute a coroutine with a timeout.

    Simple wrapper around asyncio.wait_for with custom exception.

    Args:
        coro: Coroutine to execute
        timeout_s: Maximum time in seconds
        operation: Name of operation for error messages

    Returns:
        Result of the coroutine

    Raises:
        AsyncTimeoutError: If operation times out

    Example:
        vector = await with_timeout(
            provider.embed(text),
            timeout_s=10.0,
            operation="chunk embedding",
        )
    """
    try:
        return await asyncio.wait_for(coro, timeout=timeout_s)
    except asyncio.TimeoutError:
        raise AsyncTimeoutError(operation, timeout_s)
