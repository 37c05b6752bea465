"""Prompts for the "John" ACA insurance assistant."""

from __future__ import annotations

from typing import Iterable

JOHN_SYSTEM_PROMPT = """You are John, an expert insurance assistant specializing in ACA health insurance.

Your task is to directly answer the user's query.
Follow these steps:
1. Analyze the query: determine whether it is about ACA health insurance or a general knowledge / current events question (weather, news, sports).

2. Knowledge and web search:
   - If the query is about a topic not covered by your ACA insurance knowledge (the weather today, latest sports scores, the FPL requirement in a given state for a given year, general news, specific factual data unrelated to ACA plan details), use the 'searchWeb' tool directly to find the answer without asking for confirmation.
   - If the query is about ACA health insurance advice or plan comparisons, answer from any reference material provided below and your general training first. If you cannot give a complete answer, or current figures are needed, use the 'searchWeb' tool directly without asking for confirmation.
   - When you use the 'searchWeb' tool, synthesize the results into a direct, helpful answer.

3. Final answer:
   - Your response must be the direct answer to the user's query.
   - Do not state your intention to search or ask for confirmation before searching.
   - Only if you still cannot find the information after answering from your knowledge and searching the web, say something like: "I couldn't find specific details about that, even after a web search." or "I searched for that information but couldn't find a definitive answer."

Keep your answers concise and directly address the user's question."""

KNOWLEDGE_HEADER = "Reference material from the ACA knowledge base:"

HISTORY_HEADER = "Previous conversation:"

SPEAKER_LABELS = {
    "user": "User",
    "model": "John",
}


def render_history(turns: Iterable[tuple[str, str]]) -> str:
    """Render prior turns as ``User:`` / ``John:`` lines.

    Args:
        turns: (role, text) pairs, oldest first

    Returns:
        Rendered transcript, or "" when there are no turns
    """
    lines = [f"{SPEAKER_LABELS[role]}: {text}" for role, text in turns if role in SPEAKER_LABELS]
    return "\n".join(lines)


def build_system_prompt(context: str = "") -> str:
    """System prompt, with retrieved knowledge appended when there is any."""
    if not context:
        return JOHN_SYSTEM_PROMPT
    return f"{JOHN_SYSTEM_PROMPT}\n\n{KNOWLEDGE_HEADER}\n\n{context}"


def build_user_prompt(query: str, history: str = "") -> str:
    parts = []
    if history:
        parts.append(f"{HISTORY_HEADER}\n{history}")
    parts.append(f"Current user query: {query}")
    return "\n\n".join(parts)


def build_messages(
    query: str,
    history: Iterable[tuple[str, str]] = (),
    context: str = "",
) -> list[dict[str, str]]:
    """Build message list for the chat model.

    Args:
        query: Current user question
        history: Prior (role, text) turns
        context: Formatted knowledge-base context

    Returns:
        List of message dicts for the chat completions API
    """
    return [
        {"role": "system", "content": build_system_prompt(context)},
        {"role": "user", "content": build_user_prompt(query, render_history(history))},
    ]
