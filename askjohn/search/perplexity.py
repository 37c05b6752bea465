"""Perplexity Web Search - the assistant's ``searchWeb`` tool.

Answers queries that fall outside the knowledge document (current dates,
FPL figures for a given year, general news) by asking Perplexity's
online model.

The tool never raises: every failure is turned into a short sentence the
LLM can read back to the user.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from askjohn.config.settings import Settings, get_settings
from askjohn.exceptions import WebSearchError
from askjohn.observability.logging import get_logger
from askjohn.observability.metrics import record_web_search

logger = get_logger(__name__)

TOOL_NAME = "searchWeb"

SEARCH_SYSTEM_PROMPT = (
    "You are a helpful AI assistant. Provide concise and relevant search results."
)

TOOL_SCHEMA: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": TOOL_NAME,
        "description": (
            "Searches the web for current information, like specific dates or events, "
            "or general knowledge not typically found in internal documents. "
            "Use this for very recent news or broad topics."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "searchQuery": {
                    "type": "string",
                    "description": "A concise query for web search.",
                },
            },
            "required": ["searchQuery"],
        },
    },
}


@dataclass
class PerplexityConfig:
    """Configuration for the Perplexity client."""

    api_key: str | None = None
    api_url: str = "https://api.perplexity.ai/chat/completions"
    model: str = "sonar"
    max_tokens: int = 300
    timeout_s: float = 20.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "PerplexityConfig":
        return cls(
            api_key=settings.perplexity_api_key,
            api_url=settings.perplexity_api_url,
            model=settings.perplexity_model,
            max_tokens=settings.perplexity_max_tokens,
            timeout_s=settings.perplexity_timeout_s,
        )


class PerplexitySearch:
    """Web search backed by the Perplexity chat-completions API.

    Usage:
        search = PerplexitySearch()
        results = await search.search("2025 federal poverty level")
        await search.close()
    """

    def __init__(
        self,
        config: PerplexityConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or PerplexityConfig.from_settings(get_settings())
        self._client = client
        self._owns_client = client is None

    @property
    def is_configured(self) -> bool:
        return bool(self._config.api_key)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._config.timeout_s)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def search(self, query: str) -> str:
        """Search the web and return a summary of the results.

        Args:
            query: A concise search query

        Returns:
            Result text, or a sentence describing why the search failed
        """
        logger.info("web_search_started", query=query[:100])

        if not self.is_configured:
            logger.warning("web_search_unconfigured")
            record_web_search("unconfigured")
            return f'Web search for "{query}" requires a Perplexity API key to be configured.'

        try:
            payload = await self._request(query)
        except WebSearchError as e:
            record_web_search("error")
            if e.status_code is not None:
                return f"Error performing web search: Perplexity API returned {e.status_code}."
            return f'Error during web search for "{query}": {e.details["reason"]}'

        result = self._extract(payload)
        record_web_search("ok" if result.ok else "error")
        logger.info("web_search_completed", ok=result.ok, preview=result.text[:200])
        return result.text

    async def _request(self, query: str) -> Any:
        """POST the query; return the decoded JSON body.

        Raises:
            WebSearchError: On transport failure, non-2xx status or invalid JSON
        """
        body = {
            "model": self._config.model,
            "messages": [
                {"role": "system", "content": SEARCH_SYSTEM_PROMPT},
                {"role": "user", "content": query},
            ],
            "max_tokens": self._config.max_tokens,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._config.api_key}",
        }

        try:
            response = await self._get_client().post(
                self._config.api_url, json=body, headers=headers
            )
        except httpx.HTTPError as e:
            logger.error("web_search_transport_error", error=str(e), error_type=type(e).__name__)
            raise WebSearchError(str(e) or type(e).__name__) from e

        if not response.is_success:
            logger.error(
                "web_search_http_error",
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise WebSearchError(
                f"HTTP {response.status_code}", status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            logger.error("web_search_invalid_json", error=str(e))
            raise WebSearchError(f"invalid JSON response: {e}") from e

    def _extract(self, payload: Any) -> "_SearchResult":
        if not isinstance(payload, dict):
            logger.warning("web_search_unexpected_structure", payload=str(payload)[:200])
            return _SearchResult("Web search returned an unexpected data structure.", ok=False)

        error = payload.get("error")
        if error:
            logger.error("web_search_api_error", error=str(error)[:500])
            message = error.get("message") if isinstance(error, dict) else None
            return _SearchResult(f"Error from Perplexity API: {message or error}", ok=False)

        try:
            content = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None

        if not isinstance(content, str) or not content:
            logger.warning("web_search_unexpected_structure", payload=str(payload)[:200])
            return _SearchResult("Web search returned an unexpected data structure.", ok=False)

        return _SearchResult(content, ok=True)


@dataclass
class _SearchResult:
    text: str
    ok: bool
