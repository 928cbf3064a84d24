"""Request orchestration shared by the HTTP route and the CLI.

Decides which backend serves a request and, for the agent path, turns a
conversation plus attachments and tool selections into a ready-to-run
agent and query.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from agentchat.agent import create_tool_agent, run_agent
from agentchat.api.schemas import ChatMessage, FileAttachment, ToolSelection
from agentchat.config import COMPLETION_MODEL_SELECTOR
from agentchat.prompts import build_augmented_query
from agentchat.services.attachments import (
    DecodedAttachment,
    decode_attachments,
    join_attachment_text,
)
from agentchat.services.knowledge_store import KnowledgeStore, get_knowledge_store
from agentchat.tools.registry import select_tools

logger = logging.getLogger(__name__)


class ModelBackend(str, Enum):
    """Which execution path serves a request."""

    COMPLETION = "completion"
    AGENT = "agent"


class EmptyConversationError(ValueError):
    """Raised when the agent path receives no messages to answer."""

    def __init__(self):
        super().__init__("The conversation must contain at least one message.")


@dataclass
class AgentRun:
    """A compiled agent and the query it should answer."""

    agent: object
    query: str


def resolve_backend(selected_model: str | None) -> ModelBackend:
    if selected_model == COMPLETION_MODEL_SELECTOR:
        return ModelBackend.COMPLETION
    return ModelBackend.AGENT


def latest_query(messages: Sequence[ChatMessage]) -> str:
    """Return the content of the last message in the conversation."""
    if not messages:
        raise EmptyConversationError()
    return messages[-1].content


async def augment_query(
    query: str,
    attachments: Sequence[DecodedAttachment],
    store: KnowledgeStore,
) -> str:
    """Store the attachments' text and attach the closest stored match to *query*.

    Exactly one write and one top-1 similarity search per call.
    """
    text = join_attachment_text(attachments)
    await asyncio.to_thread(store.add_text, text)
    docs = await asyncio.to_thread(store.nearest, query, 1)
    context = "\n".join(doc.page_content for doc in docs)
    return build_augmented_query(query, context)


async def prepare_agent_run(
    messages: Sequence[ChatMessage],
    functions: Sequence[ToolSelection] | None = None,
    files: Sequence[FileAttachment] | None = None,
    *,
    store_factory: Callable[[], KnowledgeStore] = get_knowledge_store,
) -> AgentRun:
    """Build the agent and query for one request.

    The knowledge store is only touched when attachments are present.
    Tool selection happens first so an unknown tool name is rejected before
    anything is written to the store.
    """
    query = latest_query(messages)
    tools = select_tools(functions)

    if files:
        attachments = decode_attachments(files)
        logger.info("Augmenting query with %d attachment(s)", len(attachments))
        query = await augment_query(query, attachments, store_factory())

    return AgentRun(agent=create_tool_agent(tools), query=query)


async def answer_with_agent(
    messages: Sequence[ChatMessage],
    functions: Sequence[ToolSelection] | None = None,
    files: Sequence[FileAttachment] | None = None,
) -> str:
    """Prepare and run the agent, returning its complete answer."""
    run = await prepare_agent_run(messages, functions, files)
    return await asyncio.to_thread(run_agent, run.agent, run.query)
