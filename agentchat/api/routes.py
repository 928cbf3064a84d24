"""FastAPI route definitions for the chat gateway."""

from __future__ import annotations

import asyncio
import logging

import anthropic
from fastapi import APIRouter, HTTPException, Request, Response
from fastapi.responses import StreamingResponse

from agentchat.agent import run_agent, stream_agent_tokens
from agentchat.api.schemas import ChatRequest, HealthResponse
from agentchat.config import AGENT_STREAM_MODE
from agentchat.pipeline import (
    EmptyConversationError,
    ModelBackend,
    prepare_agent_run,
    resolve_backend,
)
from agentchat.prompts import build_prompt
from agentchat.services.attachments import AttachmentDecodeError
from agentchat.services.completion_client import get_completion_client, iter_completion_text
from agentchat.streaming import rechunk_answer
from agentchat.tools.registry import UnknownToolError

logger = logging.getLogger(__name__)

router = APIRouter()

TEXT_MEDIA_TYPE = "text/plain; charset=utf-8"


# ── Endpoints ────────────────────────────────────────────────────────


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse()


@router.post("/chat")
async def chat(request: ChatRequest, http_request: Request):
    """Answer a conversation, streaming the reply as plain text.

    ``selectedModel == "claude-2"`` relays a streamed text completion;
    every other value runs the tool-calling agent.
    """
    request_id = getattr(http_request.state, "request_id", "?")
    backend = resolve_backend(request.selected_model)
    logger.info(
        "[%s] chat: backend=%s messages=%d files=%d vector_storage=%s",
        request_id, backend.value, len(request.messages),
        len(request.files or []), request.selected_vector_storage,
    )

    if backend is ModelBackend.COMPLETION:
        return await _complete(request, request_id)
    return await _run_agent(request, request_id)


# ── Direct completion ────────────────────────────────────────────────


async def _complete(request: ChatRequest, request_id: str) -> Response:
    client = get_completion_client()
    try:
        stream = await client.open_stream(build_prompt(request.messages))
    except anthropic.APIStatusError as e:
        # Relay the provider's own status and body untouched
        return Response(
            content=e.response.content,
            status_code=e.status_code,
            media_type=e.response.headers.get("content-type"),
        )
    except anthropic.APIConnectionError as e:
        logger.exception("[%s] Completion provider unreachable", request_id)
        raise HTTPException(
            status_code=502,
            detail="The completion provider could not be reached.",
        ) from e

    return StreamingResponse(iter_completion_text(stream), media_type=TEXT_MEDIA_TYPE)


# ── Agent ────────────────────────────────────────────────────────────


async def _run_agent(request: ChatRequest, request_id: str) -> Response:
    try:
        run = await prepare_agent_run(request.messages, request.functions, request.files)

        if AGENT_STREAM_MODE == "tokens":
            return StreamingResponse(
                stream_agent_tokens(run.agent, run.query), media_type=TEXT_MEDIA_TYPE,
            )

        # The agent call is blocking; keep it off the event loop.
        answer = await asyncio.to_thread(run_agent, run.agent, run.query)

    except (AttachmentDecodeError, UnknownToolError, EmptyConversationError) as e:
        logger.warning("[%s] Rejected chat request: %s", request_id, e)
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        logger.exception("[%s] Error running agent", request_id)
        raise HTTPException(
            status_code=500,
            detail="An internal error occurred. Please try again.",
        ) from e

    logger.info("[%s] Agent answered with %d chars", request_id, len(answer))
    return StreamingResponse(rechunk_answer(answer), media_type=TEXT_MEDIA_TYPE)
