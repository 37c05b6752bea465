"""Ask John - chat flow for the ACA insurance assistant.

One turn:
1. Retrieve knowledge-base context for the query (empty is fine)
2. Build the John prompt with the prior conversation
3. Call the chat model with the ``searchWeb`` tool, running tool calls
   until the model answers or the round limit is reached

The flow never raises to its caller. LLM failures, empty answers and
unexpected errors each map to a fixed apology answer.
"""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, Field

from askjohn.assistant.prompts import build_messages
from askjohn.config.settings import Settings, get_settings
from askjohn.exceptions import AskJohnError, LLMConnectionError, LLMError, LLMGenerationError
from askjohn.knowledge.base import KnowledgeBase, format_context, get_knowledge_base
from askjohn.observability.logging import get_logger
from askjohn.observability.metrics import record_llm_call
from askjohn.search.perplexity import TOOL_NAME, TOOL_SCHEMA, PerplexitySearch
from askjohn.utils.async_timeout import AsyncTimeoutError, with_timeout

logger = get_logger(__name__)

LLM_ERROR_ANSWER = "There was an issue communicating with the AI model. Please try again shortly."
EMPTY_ANSWER = (
    "I'm having a bit of trouble processing that request. "
    "Please try rephrasing or asking something else."
)
UNEXPECTED_ERROR_ANSWER = (
    "An unexpected error occurred while processing your request. Please try again."
)


class ChatTurn(BaseModel):
    """One prior message in the conversation."""

    role: Literal["user", "model"]
    text: str


class AskJohnInput(BaseModel):
    """A user question plus the conversation leading up to it."""

    query: str = Field(description="The user's current question for John.")
    chat_history: list[ChatTurn] = Field(
        default_factory=list,
        description="The history of the conversation leading up to the current query.",
    )


class AskJohnOutput(BaseModel):
    answer: str = Field(description="John's answer to the query.")


class AskJohnAssistant:
    """ACA insurance assistant backed by an OpenAI chat model.

    Usage:
        assistant = AskJohnAssistant()
        output = await assistant.ask(AskJohnInput(query="When is open enrollment?"))
        print(output.answer)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        knowledge_base: KnowledgeBase | None = None,
        web_search: PerplexitySearch | None = None,
        client: Any | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._knowledge_base = knowledge_base
        self._web_search = web_search
        self._client = client

    def _get_client(self):
        if self._client is None:
            from openai import AsyncOpenAI, OpenAIError

            try:
                self._client = AsyncOpenAI(
                    api_key=self._settings.openai_api_key,
                    base_url=self._settings.openai_base_url,
                    timeout=self._settings.llm_timeout_s,
                )
            except OpenAIError as e:
                raise LLMConnectionError("openai", str(e)) from e
        return self._client

    def _get_knowledge_base(self) -> KnowledgeBase:
        if self._knowledge_base is None:
            self._knowledge_base = get_knowledge_base()
        return self._knowledge_base

    def _get_web_search(self) -> PerplexitySearch:
        if self._web_search is None:
            self._web_search = PerplexitySearch()
        return self._web_search

    async def ask(self, request: AskJohnInput) -> AskJohnOutput:
        """Answer one user question. Never raises."""
        logger.info("ask_john_started", query=request.query[:100], history=len(request.chat_history))

        try:
            texts = await self._get_knowledge_base().retrieve(request.query)
            messages = build_messages(
                request.query,
                history=[(turn.role, turn.text) for turn in request.chat_history],
                context=format_context(texts),
            )

            try:
                answer = await self._complete(messages)
            except LLMError as e:
                logger.error("ask_john_llm_error", **e.to_dict())
                record_llm_call("error")
                return AskJohnOutput(answer=LLM_ERROR_ANSWER)

            if not answer or not answer.strip():
                logger.warning("ask_john_empty_answer", query=request.query[:100])
                record_llm_call("empty")
                return AskJohnOutput(answer=EMPTY_ANSWER)

            record_llm_call("ok")
            logger.info("ask_john_completed", context_chunks=len(texts), answer_chars=len(answer))
            return AskJohnOutput(answer=answer)

        except Exception:
            logger.exception("ask_john_unexpected_error")
            return AskJohnOutput(answer=UNEXPECTED_ERROR_ANSWER)

    async def _complete(self, messages: list[dict[str, Any]]) -> str:
        """Run the chat model, executing tool calls between rounds.

        Raises:
            LLMError: If the model cannot be reached or fails to respond
        """
        client = self._get_client()
        max_rounds = self._settings.llm_max_tool_rounds

        for round_no in range(max_rounds + 1):
            params: dict[str, Any] = {
                "model": self._settings.llm_model,
                "messages": messages,
                "temperature": self._settings.llm_temperature,
            }
            # Last round must answer in text
            if round_no < max_rounds:
                params["tools"] = [TOOL_SCHEMA]

            try:
                response = await with_timeout(
                    client.chat.completions.create(**params),
                    self._settings.llm_timeout_s,
                    operation="chat completion",
                )
            except AsyncTimeoutError as e:
                raise LLMGenerationError(e.message, model=self._settings.llm_model) from e
            except AskJohnError:
                raise
            except Exception as e:
                raise LLMGenerationError(str(e), model=self._settings.llm_model) from e

            if not response.choices:
                return ""
            message = response.choices[0].message

            if not message.tool_calls:
                return message.content or ""

            messages.append({
                "role": "assistant",
                "content": message.content,
                "tool_calls": [
                    {
                        "id": call.id,
                        "type": "function",
                        "function": {
                            "name": call.function.name,
                            "arguments": call.function.arguments,
                        },
                    }
                    for call in message.tool_calls
                ],
            })
            for call in message.tool_calls:
                messages.append({
                    "role": "tool",
                    "tool_call_id": call.id,
                    "content": await self._run_tool(call.function.name, call.function.arguments),
                })

        return ""

    async def _run_tool(self, name: str, arguments: str) -> str:
        if name != TOOL_NAME:
            logger.warning("ask_john_unknown_tool", tool=name)
            return f"Unknown tool: {name}"

        try:
            args = json.loads(arguments or "{}")
        except json.JSONDecodeError:
            logger.warning("ask_john_bad_tool_arguments", tool=name, arguments=arguments[:200])
            return "Invalid arguments for web search."

        query = args.get("searchQuery", "") if isinstance(args, dict) else ""
        if not query:
            return "Web search needs a non-empty searchQuery."

        logger.info("ask_john_tool_call", tool=name, query=query[:100])
        return await self._get_web_search().search(query)

    async def close(self) -> None:
        if self._web_search is not None:
            await self._web_search.close()
        if self._client is not None:
            await self._client.close()


# Global assistant instance
_assistant: AskJohnAssistant | None = None


def get_assistant() -> AskJohnAssistant:
    """Get or create the global assistant."""
    global _assistant

    if _assistant is None:
        _assistant = AskJohnAssistant()

    return _assistant


def set_assistant(assistant: AskJohnAssistant | None) -> None:
    global _assistant
    _assistant = assistant


async def ask_john(request: AskJohnInput) -> AskJohnOutput:
    """Convenience function: answer with the global assistant."""
    return await get_assistant().ask(request)
