"""LangGraph tool-calling agent for the agent path.

Architecture:
  A two-node StateGraph, compiled per request because the tool set differs
  from request to request:

    1. **chatbot** — zero-temperature chat model with the request's tools
                     bound (OpenAI by default, Anthropic when
                     ``AGENT_MODEL_PROVIDER=anthropic``)
    2. **tools**   — executes the tool calls the model asks for

  Routing:
    chatbot → (has tool calls?) → tools → chatbot (loop)
            → (no tool calls?)  → END

  There is no checkpointer; a run only sees the query it is given.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from typing import Annotated

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessageChunk, AnyMessage, HumanMessage, SystemMessage
from langchain_core.tools import BaseTool
from langchain_openai import ChatOpenAI
from langgraph.graph import END, StateGraph
from langgraph.graph.message import add_messages
from langgraph.prebuilt import ToolNode
from typing_extensions import TypedDict

from agentchat.config import AGENT_MODEL_NAME, AGENT_MODEL_PROVIDER, ANTHROPIC_API_KEY
from agentchat.prompts import AGENT_SYSTEM_PROMPT
from agentchat.services.metrics import metrics

logger = logging.getLogger(__name__)


class AgentState(TypedDict):
    """Messages flowing through the graph, appended via ``add_messages``."""

    messages: Annotated[list[AnyMessage], add_messages]


# ── LLM builder ─────────────────────────────────────────────────────


def _build_llm(tools: Sequence[BaseTool]):
    """Build the deterministic chat model and bind *tools* to it."""
    llm: BaseChatModel
    if AGENT_MODEL_PROVIDER == "anthropic":
        llm = ChatAnthropic(
            model=AGENT_MODEL_NAME,
            api_key=ANTHROPIC_API_KEY,
            temperature=0.0,
            max_tokens=1024,
        )
    else:
        llm = ChatOpenAI(model=AGENT_MODEL_NAME, temperature=0.0)
    return llm.bind_tools(tools) if tools else llm


# ── Node: chatbot ───────────────────────────────────────────────────


def _make_chatbot_node(tools: Sequence[BaseTool]):
    """Create the chatbot node; the bound model lives in the closure."""
    llm_with_tools = _build_llm(tools)

    def chatbot_node(state: AgentState) -> dict:
        system = SystemMessage(content=AGENT_SYSTEM_PROMPT)
        with metrics.track(AGENT_MODEL_PROVIDER, "agent_invoke"):
            response = llm_with_tools.invoke([system] + state["messages"])
        return {"messages": [response]}

    return chatbot_node


def should_use_tools(state: AgentState) -> str:
    """Route to the tools node while the model keeps requesting tool calls."""
    last_message = state["messages"][-1]
    if getattr(last_message, "tool_calls", None):
        return "tools"
    return END


# ── Graph assembly ──────────────────────────────────────────────────


def create_tool_agent(tools: Sequence[BaseTool]):
    """Build and compile an agent graph for this set of tools.

    Tool exceptions are not converted into messages for the model; they
    propagate out of ``invoke`` and fail the run.
    """
    graph = StateGraph(AgentState)
    graph.add_node("chatbot", _make_chatbot_node(tools))
    graph.set_entry_point("chatbot")

    if tools:
        graph.add_node("tools", ToolNode(list(tools), handle_tool_errors=False))
        graph.add_conditional_edges(
            "chatbot", should_use_tools, {"tools": "tools", END: END},
        )
        graph.add_edge("tools", "chatbot")
    else:
        graph.add_edge("chatbot", END)

    compiled = graph.compile()
    logger.debug(
        "Agent compiled: %s/%s, tools: %s",
        AGENT_MODEL_PROVIDER, AGENT_MODEL_NAME, [t.name for t in tools],
    )
    return compiled


# ── Running ─────────────────────────────────────────────────────────


def message_text(message) -> str:
    """Return the plain text of a message whose content may be block-structured."""
    content = message.content if hasattr(message, "content") else message
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def run_agent(agent, query: str) -> str:
    """Run the agent once and return its final answer (blocking)."""
    result = agent.invoke({"messages": [HumanMessage(content=query)]})
    messages = result.get("messages", [])
    if not messages:
        return ""
    return message_text(messages[-1])


async def stream_agent_tokens(agent, query: str) -> AsyncIterator[str]:
    """Yield the chatbot node's text tokens as the model produces them."""
    async for chunk, meta in agent.astream(
        {"messages": [HumanMessage(content=query)]},
        stream_mode="messages",
    ):
        if meta.get("langgraph_node") != "chatbot":
            continue
        if isinstance(chunk, AIMessageChunk):
            text = message_text(chunk)
            if text:
                yield text
