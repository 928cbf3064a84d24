"""Agent Chat — a streaming chat gateway for a completion model or a tool-using agent.

Architecture Overview
=====================

A single ``POST /api/chat`` endpoint serves two mutually exclusive paths,
chosen by the request's ``selectedModel``:

1. **Direct completion** (``"claude-2"``) — the conversation is rendered as a
   ``Human:`` / ``Assistant:`` prompt and sent to Anthropic's streaming
   text-completions API.  Tokens are relayed as they arrive; a provider
   error is relayed with its original status code and body.

2. **Agent** (anything else) — attachments, if any, are decoded, stored in a
   Supabase vector table and the closest match is folded into the latest
   question.  A LangGraph tool-calling agent (search + Wikipedia, plus any
   opted-in tools such as the destination guide) answers it, and the answer
   is streamed back word by word.

Key Design Decisions
--------------------
- **Fail fast on configuration**: Supabase credentials are checked when
  ``agentchat.config`` is imported, before the server accepts traffic.
- **No retries**: provider errors surface to the caller as-is.
- **Append-only knowledge store**: every request with attachments adds one
  record; retention is left to the database.
- **Simulated streaming by default**: the agent answer is re-chunked with a
  small random delay; ``AGENT_STREAM_MODE=tokens`` streams model tokens
  directly instead.

Package Structure
-----------------
- ``agentchat/config.py`` — Configuration from environment variables
- ``agentchat/prompts.py`` — Completion prompt and augmented query builders
- ``agentchat/pipeline.py`` — Backend selection and agent-path orchestration
- ``agentchat/agent.py`` — LangGraph StateGraph definition
- ``agentchat/streaming.py`` — Word-by-word re-streaming of agent answers
- ``agentchat/server.py`` — FastAPI application
- ``agentchat/main.py`` — CLI chat interface
- ``agentchat/services/`` — Completion client, attachments, knowledge store, metrics
- ``agentchat/tools/`` — LangChain tools and the tool registry
- ``agentchat/api/`` — FastAPI routes and Pydantic schemas
"""
