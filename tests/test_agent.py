"""Tests for the tool-calling agent.

Covers:
  - Model construction per provider
  - Chatbot node and tool routing
  - End-to-end graph runs with a mocked LLM
  - Token streaming from the chatbot node
"""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock, patch

import pytest
from langchain_core.messages import AIMessage, AIMessageChunk, HumanMessage, ToolMessage
from langchain_core.tools import tool

from agentchat.agent import (
    AgentState,
    _build_llm,
    _make_chatbot_node,
    create_tool_agent,
    message_text,
    run_agent,
    should_use_tools,
    stream_agent_tokens,
)


# ── Helpers ──────────────────────────────────────────────────────────


def _make_mock_llm(*responses: AIMessage):
    """Create a mock LLM that returns the given AIMessages in order."""
    mock_llm = MagicMock()
    mock_llm.invoke.side_effect = list(responses)
    return mock_llm


@tool
def echo(text: str) -> str:
    """Echo the text back."""
    return f"echo: {text}"


@tool
def broken(text: str) -> str:
    """Always fails."""
    raise RuntimeError("tool exploded")


def _tool_call(name: str, text: str) -> AIMessage:
    return AIMessage(
        content="",
        tool_calls=[{"name": name, "args": {"text": text}, "id": "call_1"}],
    )


# ── TestBuildLlm ─────────────────────────────────────────────────────


class TestBuildLlm:
    @patch("agentchat.agent.ChatOpenAI")
    def test_openai_by_default(self, mock_openai):
        with patch("agentchat.agent.AGENT_MODEL_PROVIDER", "openai"):
            llm = _build_llm([echo])

        assert mock_openai.call_args.kwargs["temperature"] == 0.0
        mock_openai.return_value.bind_tools.assert_called_once_with([echo])
        assert llm is mock_openai.return_value.bind_tools.return_value

    @patch("agentchat.agent.ChatAnthropic")
    def test_anthropic_provider(self, mock_anthropic):
        with patch("agentchat.agent.AGENT_MODEL_PROVIDER", "anthropic"):
            _build_llm([echo])

        assert mock_anthropic.call_args.kwargs["temperature"] == 0.0
        mock_anthropic.return_value.bind_tools.assert_called_once_with([echo])

    @patch("agentchat.agent.ChatOpenAI")
    def test_no_tools_skips_binding(self, mock_openai):
        with patch("agentchat.agent.AGENT_MODEL_PROVIDER", "openai"):
            llm = _build_llm([])

        mock_openai.return_value.bind_tools.assert_not_called()
        assert llm is mock_openai.return_value


# ── TestChatbotNode ──────────────────────────────────────────────────


class TestChatbotNode:
    @patch("agentchat.agent._build_llm")
    def test_chatbot_node_returns_ai_message(self, mock_build):
        mock_build.return_value = _make_mock_llm(AIMessage(content="Paris."))
        chatbot_node = _make_chatbot_node([echo])

        state: AgentState = {"messages": [HumanMessage(content="Capital of France?")]}
        result = chatbot_node(state)

        assert len(result["messages"]) == 1
        assert result["messages"][0].content == "Paris."

    @patch("agentchat.agent._build_llm")
    def test_system_prompt_is_sent_first(self, mock_build):
        mock_llm = _make_mock_llm(AIMessage(content="ok"))
        mock_build.return_value = mock_llm
        chatbot_node = _make_chatbot_node([])

        chatbot_node({"messages": [HumanMessage(content="Hi")]})

        sent = mock_llm.invoke.call_args.args[0]
        assert sent[0].type == "system"
        assert sent[-1].content == "Hi"

    @patch("agentchat.agent._build_llm")
    def test_chatbot_node_raises_on_llm_error(self, mock_build):
        mock_llm = MagicMock()
        mock_llm.invoke.side_effect = RuntimeError("LLM down")
        mock_build.return_value = mock_llm
        chatbot_node = _make_chatbot_node([])

        with pytest.raises(RuntimeError, match="LLM down"):
            chatbot_node({"messages": [HumanMessage(content="Hello")]})


# ── TestShouldUseTools ───────────────────────────────────────────────


class TestShouldUseTools:
    def test_message_with_tool_calls_routes_to_tools(self):
        state: AgentState = {"messages": [_tool_call("echo", "hi")]}
        assert should_use_tools(state) == "tools"

    def test_message_without_tool_calls_routes_to_end(self):
        state: AgentState = {"messages": [AIMessage(content="Done.")]}
        assert should_use_tools(state) == "__end__"  # LangGraph's END sentinel


# ── TestGraph ────────────────────────────────────────────────────────


class TestGraph:
    @patch("agentchat.agent._build_llm")
    def test_tool_loop_returns_final_answer(self, mock_build):
        mock_llm = _make_mock_llm(
            _tool_call("echo", "hello"),
            AIMessage(content="The tool said hello."),
        )
        mock_build.return_value = mock_llm
        agent = create_tool_agent([echo])

        answer = run_agent(agent, "Say hello via the tool")

        assert answer == "The tool said hello."
        assert mock_llm.invoke.call_count == 2
        # Second model call sees the tool result
        second_call_messages = mock_llm.invoke.call_args_list[1].args[0]
        tool_messages = [m for m in second_call_messages if isinstance(m, ToolMessage)]
        assert tool_messages[0].content == "echo: hello"

    @patch("agentchat.agent._build_llm")
    def test_no_tools_answers_directly(self, mock_build):
        mock_build.return_value = _make_mock_llm(AIMessage(content="Hi there."))
        agent = create_tool_agent([])
        assert run_agent(agent, "Hi") == "Hi there."

    @patch("agentchat.agent._build_llm")
    def test_tool_error_fails_the_run(self, mock_build):
        mock_build.return_value = _make_mock_llm(
            _tool_call("broken", "x"),
            AIMessage(content="unreachable"),
        )
        agent = create_tool_agent([broken])

        with pytest.raises(RuntimeError, match="tool exploded"):
            run_agent(agent, "Use the broken tool")

    @patch("agentchat.agent._build_llm")
    def test_agent_only_sees_the_given_query(self, mock_build):
        mock_llm = _make_mock_llm(AIMessage(content="ok"))
        mock_build.return_value = mock_llm
        agent = create_tool_agent([])

        run_agent(agent, "latest question")

        sent = mock_llm.invoke.call_args.args[0]
        human = [m for m in sent if isinstance(m, HumanMessage)]
        assert [m.content for m in human] == ["latest question"]


# ── TestMessageText ──────────────────────────────────────────────────


class TestMessageText:
    def test_plain_string_content(self):
        assert message_text(AIMessage(content="plain")) == "plain"

    def test_block_content_keeps_text_blocks_only(self):
        message = AIMessage(content=[
            {"type": "text", "text": "Hello "},
            {"type": "tool_use", "id": "t1", "name": "echo", "input": {}},
            {"type": "text", "text": "world"},
        ])
        assert message_text(message) == "Hello world"


# ── TestStreamAgentTokens ────────────────────────────────────────────


class _FakeStreamingAgent:
    def __init__(self, items):
        self.items = items
        self.calls = []

    async def astream(self, inputs, stream_mode):
        self.calls.append((inputs, stream_mode))
        for item in self.items:
            yield item


class TestStreamAgentTokens:
    def test_yields_only_chatbot_text(self):
        chatbot = {"langgraph_node": "chatbot"}
        agent = _FakeStreamingAgent([
            (AIMessageChunk(content="Hel"), chatbot),
            (ToolMessage(content="tool output", tool_call_id="1"), {"langgraph_node": "tools"}),
            (AIMessageChunk(content=""), chatbot),
            (AIMessageChunk(content=[{"type": "text", "text": "lo"}]), chatbot),
        ])

        async def _collect():
            return [t async for t in stream_agent_tokens(agent, "Hi")]

        assert asyncio.run(_collect()) == ["Hel", "lo"]
        inputs, stream_mode = agent.calls[0]
        assert stream_mode == "messages"
        assert inputs["messages"][0].content == "Hi"
