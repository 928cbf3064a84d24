"""Streaming client for the Anthropic text-completions API.

The direct-completion path sends one ``/v1/complete`` request with
``stream=true`` through the ``anthropic`` SDK and relays the ``completion``
deltas as plain text.  A non-2xx response surfaces as
``anthropic.APIStatusError`` with its body already read, so the route can
pass status and body through untouched.  SDK retries are switched off.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import AsyncIterator

import anthropic
import httpx
from anthropic import AsyncStream
from anthropic.types import Completion

from agentchat.config import (
    ANTHROPIC_API_KEY,
    ANTHROPIC_BASE_URL,
    ANTHROPIC_VERSION,
    COMPLETION_MAX_TOKENS,
    COMPLETION_MODEL_NAME,
    COMPLETION_TEMPERATURE,
    COMPLETION_TIMEOUT_SECONDS,
)
from agentchat.services.metrics import metrics

logger = logging.getLogger(__name__)


class CompletionClient:
    """Thin wrapper around ``AsyncAnthropic().completions``.

    ``http_client`` is injectable so tests can plug in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        *,
        model: str = COMPLETION_MODEL_NAME,
        max_tokens: int = COMPLETION_MAX_TOKENS,
        temperature: float = COMPLETION_TEMPERATURE,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._client = anthropic.AsyncAnthropic(
            api_key=api_key or ANTHROPIC_API_KEY,
            base_url=base_url or ANTHROPIC_BASE_URL,
            default_headers={"anthropic-version": ANTHROPIC_VERSION},
            timeout=COMPLETION_TIMEOUT_SECONDS,
            max_retries=0,
            http_client=http_client,
        )

    def build_payload(self, prompt: str) -> dict:
        return {
            "prompt": prompt,
            "model": self._model,
            "max_tokens_to_sample": self._max_tokens,
            "temperature": self._temperature,
            "stream": True,
        }

    async def open_stream(self, prompt: str) -> AsyncStream[Completion]:
        """Send the completion request and return the open event stream.

        Raises ``anthropic.APIStatusError`` for a non-2xx response and
        ``anthropic.APIConnectionError`` when the provider cannot be reached.
        """
        with metrics.track("anthropic", "complete"):
            try:
                return await self._client.completions.create(**self.build_payload(prompt))
            except anthropic.APIStatusError as e:
                logger.warning(
                    "Completion API returned %d: %s", e.status_code, e.response.text[:200],
                )
                raise

    async def aclose(self) -> None:
        await self._client.close()


async def iter_completion_text(stream: AsyncStream[Completion]) -> AsyncIterator[str]:
    """Yield the text deltas of a streamed completion.

    ``ping`` events are skipped by the SDK.  An ``error`` event or an
    unparseable ``completion`` event ends the stream.  The stream is always
    closed.
    """
    try:
        async for event in stream:
            if event.completion:
                yield event.completion
    except anthropic.APIError as e:
        logger.error("Completion stream error: %s", e)
    except json.JSONDecodeError:
        logger.warning("Malformed completion event; ending stream")
    finally:
        await stream.close()


# ── Module-level singleton ──────────────────────────────────────────
_client: CompletionClient | None = None
_client_lock = threading.Lock()


def get_completion_client() -> CompletionClient:
    """Return the process-wide CompletionClient, creating it on first use."""
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                _client = CompletionClient()
    return _client


async def close_completion_client() -> None:
    """Close the shared client (called from the FastAPI lifespan)."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
