"""Shared test fixtures for the Agent Chat test suite."""

from __future__ import annotations

import base64
import os

import pytest


def pytest_configure(config):
    """Set test environment variables BEFORE collection starts.

    This runs before any imports, so config.py won't fail on module load.
    """
    os.environ.setdefault("SUPABASE_PRIVATE_KEY", "test-supabase-key-123")
    os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
    os.environ.setdefault("ANTHROPIC_API_KEY", "test-anthropic-key-456")
    os.environ.setdefault("OPENAI_API_KEY", "test-openai-key-789")
    os.environ.setdefault("SERPAPI_API_KEY", "test-serpapi-key")
    os.environ["STREAM_MIN_DELAY_MS"] = "0"
    os.environ["STREAM_MAX_DELAY_MS"] = "0"
    os.environ["AGENT_STREAM_MODE"] = "simulated"
    os.environ["METRICS_ENABLED"] = "false"


@pytest.fixture
def encode():
    """Encode text the way the frontend encodes attachments."""

    def _encode(text: str) -> str:
        return base64.b64encode(text.encode("utf-8")).decode("ascii")

    return _encode
