"""Tests for the streaming completion client."""

from __future__ import annotations

import asyncio
import json

import anthropic
import httpx
import pytest

from agentchat.services.completion_client import CompletionClient, iter_completion_text


def _sse(*events: str) -> bytes:
    return "".join(f"{e}\n\n" for e in events).encode()


def _completion_event(text: str) -> str:
    payload = {"type": "completion", "completion": text, "stop_reason": None}
    return f"event: completion\ndata: {json.dumps(payload)}"


def _client(handler) -> CompletionClient:
    return CompletionClient(
        api_key="test-key",
        base_url="https://anthropic.test",
        model="claude-v1",
        max_tokens=300,
        temperature=0.9,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def _ok(body: bytes):
    return lambda request: httpx.Response(
        200, content=body, headers={"content-type": "text/event-stream"},
    )


def _run(coro):
    return asyncio.run(coro)


async def _stream(client: CompletionClient, prompt: str):
    try:
        stream = await client.open_stream(prompt)
        chunks = [c async for c in iter_completion_text(stream)]
        return stream, chunks
    finally:
        await client.aclose()


class TestRequest:
    def test_payload_matches_completion_api(self):
        client = _client(_ok(b""))
        assert client.build_payload("Human: hi\n\nAssistant:") == {
            "prompt": "Human: hi\n\nAssistant:",
            "model": "claude-v1",
            "max_tokens_to_sample": 300,
            "temperature": 0.9,
            "stream": True,
        }

    def test_sends_one_post_with_auth_headers(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _ok(_sse(_completion_event("ok")))(request)

        _run(_stream(_client(handler), "Human: hi\n\nAssistant:"))

        assert len(seen) == 1
        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/v1/complete"
        assert request.headers["x-api-key"] == "test-key"
        assert request.headers["anthropic-version"] == "2023-06-01"
        body = json.loads(request.content)
        assert body["prompt"] == "Human: hi\n\nAssistant:"
        assert body["max_tokens_to_sample"] == 300
        assert body["stream"] is True


class TestStreaming:
    def test_yields_completion_text_in_order(self):
        body = _sse(
            _completion_event("Hello"),
            _completion_event(", world"),
            _completion_event("!"),
        )
        _, chunks = _run(_stream(_client(_ok(body)), "p"))
        assert chunks == ["Hello", ", world", "!"]

    def test_skips_pings_and_unnamed_events(self):
        body = _sse(
            "event: ping\ndata: {}",
            _completion_event("one"),
            "data: {not json",
            _completion_event(" two"),
        )
        _, chunks = _run(_stream(_client(_ok(body)), "p"))
        assert chunks == ["one", " two"]

    def test_error_event_ends_stream(self):
        error = json.dumps({"type": "error", "error": {"type": "overloaded_error"}})
        body = _sse(
            _completion_event("partial"),
            f"event: error\ndata: {error}",
            _completion_event("never seen"),
        )
        _, chunks = _run(_stream(_client(_ok(body)), "p"))
        assert chunks == ["partial"]

    def test_malformed_completion_event_ends_stream(self):
        body = _sse(
            _completion_event("first"),
            "event: completion\ndata: {not json",
            _completion_event("never seen"),
        )
        _, chunks = _run(_stream(_client(_ok(body)), "p"))
        assert chunks == ["first"]

    def test_stream_is_closed_after_iteration(self):
        stream, _ = _run(_stream(_client(_ok(_sse(_completion_event("done")))), "p"))
        assert stream.response.is_closed


class TestErrors:
    def test_error_response_keeps_status_and_body(self):
        body = {"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}}
        with pytest.raises(anthropic.APIStatusError) as exc_info:
            _run(_stream(_client(lambda r: httpx.Response(529, json=body)), "p"))

        assert exc_info.value.status_code == 529
        assert exc_info.value.response.json() == body

    def test_error_response_is_not_retried(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500, json={"type": "error"})

        with pytest.raises(anthropic.APIStatusError):
            _run(_stream(_client(handler), "p"))
        assert len(calls) == 1

    def test_transport_error_raises_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(anthropic.APIConnectionError):
            _run(_stream(_client(handler), "p"))
