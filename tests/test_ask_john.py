"""Tests for the Ask John assistant flow."""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from askjohn.assistant.ask_john import (
    EMPTY_ANSWER,
    LLM_ERROR_ANSWER,
    UNEXPECTED_ERROR_ANSWER,
    AskJohnAssistant,
    AskJohnInput,
    ChatTurn,
)
from askjohn.assistant.prompts import build_messages, render_history
from askjohn.config.settings import Settings


def _completion(content=None, tool_calls=None):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _tool_call(call_id: str, query: str, name: str = "searchWeb"):
    return SimpleNamespace(
        id=call_id,
        function=SimpleNamespace(name=name, arguments=json.dumps({"searchQuery": query})),
    )


@pytest.fixture
def knowledge_base():
    kb = MagicMock()
    kb.retrieve = AsyncMock(return_value=["Open Enrollment runs November 1 to January 15."])
    return kb


@pytest.fixture
def web_search():
    search = MagicMock()
    search.search = AsyncMock(return_value="The 2024 FPL for one person is $15,060.")
    search.close = AsyncMock()
    return search


@pytest.fixture
def llm():
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=_completion("Hello from John."))
    client.close = AsyncMock()
    return client


@pytest.fixture
def assistant(knowledge_base, web_search, llm):
    return AskJohnAssistant(
        settings=Settings(_env_file=None, llm_max_tool_rounds=2),
        knowledge_base=knowledge_base,
        web_search=web_search,
        client=llm,
    )


class TestPrompts:
    """Tests for prompt building."""

    def test_render_history(self):
        """Turns render as User:/John: lines."""
        history = render_history([("user", "Hi"), ("model", "Hello!"), ("user", "When?")])
        assert history == "User: Hi\nJohn: Hello!\nUser: When?"

    def test_messages_without_context(self):
        """Without context the system prompt is the plain persona."""
        messages = build_messages("What is a deductible?")

        assert messages[0]["role"] == "system"
        assert "You are John" in messages[0]["content"]
        assert "knowledge base" not in messages[0]["content"]
        assert messages[1]["content"] == "Current user query: What is a deductible?"

    def test_messages_with_context_and_history(self):
        """Context goes into the system prompt, history before the query."""
        messages = build_messages(
            "And after that?",
            history=[("user", "When is open enrollment?")],
            context="Open Enrollment runs November 1 to January 15.",
        )

        assert "Open Enrollment runs November 1" in messages[0]["content"]
        assert messages[1]["content"] == (
            "Previous conversation:\nUser: When is open enrollment?\n\n"
            "Current user query: And after that?"
        )


class TestAskJohnAssistant:
    """Tests for AskJohnAssistant.ask."""

    @pytest.mark.asyncio
    async def test_direct_answer(self, assistant, knowledge_base, llm):
        """A plain model answer is returned with knowledge context in the prompt."""
        output = await assistant.ask(AskJohnInput(query="When is open enrollment?"))

        assert output.answer == "Hello from John."
        knowledge_base.retrieve.assert_awaited_once_with("When is open enrollment?")
        kwargs = llm.chat.completions.create.await_args.kwargs
        assert "Open Enrollment runs November 1" in kwargs["messages"][0]["content"]
        assert kwargs["tools"][0]["function"]["name"] == "searchWeb"

    @pytest.mark.asyncio
    async def test_history_in_prompt(self, assistant, llm):
        """Prior turns are rendered into the user message."""
        request = AskJohnInput(
            query="Can I still enroll?",
            chat_history=[
                ChatTurn(role="user", text="I lost my job."),
                ChatTurn(role="model", text="Sorry to hear that."),
            ],
        )

        await assistant.ask(request)

        user_message = llm.chat.completions.create.await_args.kwargs["messages"][1]["content"]
        assert "User: I lost my job.\nJohn: Sorry to hear that." in user_message
        assert user_message.endswith("Current user query: Can I still enroll?")

    @pytest.mark.asyncio
    async def test_empty_context_still_answers(self, assistant, knowledge_base):
        """No retrieved context is not an error."""
        knowledge_base.retrieve.return_value = []

        output = await assistant.ask(AskJohnInput(query="Hi"))

        assert output.answer == "Hello from John."

    @pytest.mark.asyncio
    async def test_tool_call_runs_web_search(self, assistant, llm, web_search):
        """A searchWeb call is executed and its result sent back."""
        llm.chat.completions.create.side_effect = [
            _completion(tool_calls=[_tool_call("call-1", "2024 FPL one person")]),
            _completion("The 2024 FPL for one person is $15,060."),
        ]

        output = await assistant.ask(AskJohnInput(query="What is the FPL for 2024?"))

        assert output.answer == "The 2024 FPL for one person is $15,060."
        web_search.search.assert_awaited_once_with("2024 FPL one person")
        messages = llm.chat.completions.create.await_args_list[1].kwargs["messages"]
        assert messages[-2]["role"] == "assistant"
        assert messages[-2]["tool_calls"][0]["id"] == "call-1"
        assert messages[-1] == {
            "role": "tool",
            "tool_call_id": "call-1",
            "content": "The 2024 FPL for one person is $15,060.",
        }

    @pytest.mark.asyncio
    async def test_unknown_tool(self, assistant, llm, web_search):
        """An unknown tool name is answered without searching."""
        llm.chat.completions.create.side_effect = [
            _completion(tool_calls=[_tool_call("call-1", "x", name="lookupPlan")]),
            _completion("Done."),
        ]

        await assistant.ask(AskJohnInput(query="q"))

        web_search.search.assert_not_awaited()
        messages = llm.chat.completions.create.await_args_list[1].kwargs["messages"]
        assert messages[-1]["content"] == "Unknown tool: lookupPlan"

    @pytest.mark.asyncio
    async def test_tool_rounds_limited(self, assistant, llm):
        """After the round limit the model must answer without tools."""
        llm.chat.completions.create.side_effect = [
            _completion(tool_calls=[_tool_call("call-1", "a")]),
            _completion(tool_calls=[_tool_call("call-2", "b")]),
            _completion("Final answer."),
        ]

        output = await assistant.ask(AskJohnInput(query="q"))

        assert output.answer == "Final answer."
        calls = llm.chat.completions.create.await_args_list
        assert len(calls) == 3
        assert "tools" in calls[1].kwargs
        assert "tools" not in calls[2].kwargs

    @pytest.mark.asyncio
    async def test_llm_error(self, assistant, llm):
        """A failing model call returns the communication apology."""
        llm.chat.completions.create.side_effect = RuntimeError("503 from upstream")

        output = await assistant.ask(AskJohnInput(query="q"))

        assert output.answer == LLM_ERROR_ANSWER

    @pytest.mark.asyncio
    async def test_llm_timeout(self, knowledge_base, web_search, llm):
        """A model call past the timeout returns the communication apology."""
        async def slow(**kwargs):
            await asyncio.sleep(1.0)

        llm.chat.completions.create = AsyncMock(side_effect=slow)
        assistant = AskJohnAssistant(
            settings=Settings(_env_file=None, llm_timeout_s=0.05),
            knowledge_base=knowledge_base,
            web_search=web_search,
            client=llm,
        )

        output = await assistant.ask(AskJohnInput(query="q"))

        assert output.answer == LLM_ERROR_ANSWER

    @pytest.mark.asyncio
    async def test_empty_answer(self, assistant, llm):
        """A blank answer returns the rephrase apology."""
        llm.chat.completions.create.return_value = _completion("   ")

        output = await assistant.ask(AskJohnInput(query="q"))

        assert output.answer == EMPTY_ANSWER

    @pytest.mark.asyncio
    async def test_unexpected_error(self, assistant, knowledge_base):
        """Any other failure returns the generic apology."""
        knowledge_base.retrieve.side_effect = RuntimeError("boom")

        output = await assistant.ask(AskJohnInput(query="q"))

        assert output.answer == UNEXPECTED_ERROR_ANSWER

    @pytest.mark.asyncio
    async def test_close(self, assistant, llm, web_search):
        """close() releases the web search and model clients."""
        await assistant.close()

        web_search.close.assert_awaited_once()
        llm.close.assert_awaited_once()
