"""Prompt construction for both execution paths."""

from __future__ import annotations

from collections.abc import Iterable

from agentchat.api.schemas import ChatMessage

TRAILING_MARKER = "Assistant:"

AGENT_SYSTEM_PROMPT = (
    "You are a helpful AI assistant. Use the available tools when they help "
    "you give an accurate, up-to-date answer, and answer directly otherwise."
)

KNOWLEDGE_QUERY_TEMPLATE = (
    "USER QUERY: {query} --- "
    "Before using your prior knowledge base, use the following new "
    "information. If it conflicts with what you already know, prefer the "
    "new information: {context}"
)


def build_prompt(messages: Iterable[ChatMessage]) -> str:
    """Render a conversation as a ``Human:`` / ``Assistant:`` completion prompt.

    User turns become ``Human: ...``; system and assistant turns both become
    ``Assistant: ...``.  Turns are separated by a blank line and the prompt
    always ends with a bare ``Assistant:`` so the model continues as the
    assistant.  An empty conversation yields just the marker.

    The marker is separated from the last turn by a blank line like every
    other turn.  Earlier clients glued it straight onto the last turn; the
    blank line is intentional and matches the ``Human:``/``Assistant:``
    turn format the completion API expects.
    """
    turns = [
        f"Human: {message.content}" if message.role == "user"
        else f"Assistant: {message.content}"
        for message in messages
    ]
    turns.append(TRAILING_MARKER)
    return "\n\n".join(turns)


def build_augmented_query(query: str, context: str) -> str:
    """Combine the user's query with text retrieved from the knowledge store."""
    return KNOWLEDGE_QUERY_TEMPLATE.format(query=query, context=context)
