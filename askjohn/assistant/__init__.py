"""Assistant module - the "Ask John" chat flow."""

from askjohn.assistant.ask_john import (
    AskJohnAssistant,
    AskJohnInput,
    AskJohnOutput,
    ChatTurn,
    ask_john,
    get_assistant,
    set_assistant,
)

__all__ = [
    "AskJohnAssistant",
    "AskJohnInput",
    "AskJohnOutput",
    "ChatTurn",
    "ask_john",
    "get_assistant",
    "set_assistant",
]
