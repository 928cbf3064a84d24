"""Centralized configuration for the Agent Chat gateway.

Values are read once, at import time.  The Supabase credentials are
mandatory: importing this module without them raises immediately, so the
server never starts accepting requests in a half-configured state.

Secret resolution order (per required variable):
  1. Environment variable / ``.env`` file  (local dev)
  2. AWS SSM Parameter Store SecureString  (when ``AWS_EXECUTION_ENV`` is set)

The SSM paths follow the convention ``/agent-chat/<VARIABLE_NAME>``.
Provider keys (Anthropic, OpenAI, SerpAPI) are optional here; their SDKs
complain on first use if they are missing.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

_ON_AWS = bool(os.getenv("AWS_EXECUTION_ENV"))


# ── Secret resolution ────────────────────────────────────────────────

def _get_ssm_parameter(name: str) -> str | None:
    """Fetch a SecureString from SSM Parameter Store, or ``None``."""
    try:
        import boto3  # noqa: PLC0415

        ssm = boto3.client("ssm")
        resp = ssm.get_parameter(Name=f"/agent-chat/{name}", WithDecryption=True)
        return resp["Parameter"]["Value"]
    except Exception:
        logger.debug("SSM lookup for %s failed", name)
        return None


def _require_env(name: str) -> str:
    """Return a config value from env-var or SSM, or raise a clear error."""
    value = os.getenv(name)
    if value:
        return value

    if _ON_AWS:
        ssm_value = _get_ssm_parameter(name)
        if ssm_value:
            return ssm_value

    raise OSError(
        f"Expected env var {name}. "
        f"Set it in .env (local) or SSM Parameter Store /agent-chat/{name} (AWS)."
    )


def _get_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _get_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


# ── Knowledge store (Supabase) ──────────────────────────────────────
SUPABASE_PRIVATE_KEY: str = _require_env("SUPABASE_PRIVATE_KEY")
SUPABASE_URL: str = _require_env("SUPABASE_URL")
SUPABASE_TABLE_NAME: str = os.getenv("SUPABASE_TABLE_NAME", "documents")
SUPABASE_QUERY_NAME: str = os.getenv("SUPABASE_QUERY_NAME", "match_documents")
EMBEDDING_MODEL_NAME: str = os.getenv("EMBEDDING_MODEL_NAME", "text-embedding-ada-002")

# ── Direct completion (Anthropic text completions) ──────────────────
ANTHROPIC_API_KEY: str = os.getenv("ANTHROPIC_API_KEY", "")
ANTHROPIC_BASE_URL: str = os.getenv("ANTHROPIC_BASE_URL", "https://api.anthropic.com")
ANTHROPIC_VERSION: str = os.getenv("ANTHROPIC_VERSION", "2023-06-01")
COMPLETION_MODEL_SELECTOR = "claude-2"
COMPLETION_MODEL_NAME: str = os.getenv("COMPLETION_MODEL_NAME", "claude-v1")
COMPLETION_MAX_TOKENS: int = _get_int("COMPLETION_MAX_TOKENS", 300)
COMPLETION_TEMPERATURE: float = _get_float("COMPLETION_TEMPERATURE", 0.9)
COMPLETION_TIMEOUT_SECONDS: float = _get_float("COMPLETION_TIMEOUT_SECONDS", 60.0)

# ── Tool-calling agent ──────────────────────────────────────────────
AGENT_MODEL_PROVIDER: str = os.getenv("AGENT_MODEL_PROVIDER", "openai").lower()
AGENT_MODEL_NAME: str = os.getenv(
    "AGENT_MODEL_NAME",
    "claude-haiku-4-5" if AGENT_MODEL_PROVIDER == "anthropic" else "gpt-4o-mini",
)
# "simulated" re-chunks the finished answer; "tokens" relays model tokens live
AGENT_STREAM_MODE: str = os.getenv("AGENT_STREAM_MODE", "simulated").lower()
STREAM_MIN_DELAY_MS: float = _get_float("STREAM_MIN_DELAY_MS", 10)
STREAM_MAX_DELAY_MS: float = _get_float("STREAM_MAX_DELAY_MS", 30)

# ── Tools ───────────────────────────────────────────────────────────
SERPAPI_API_KEY: str = os.getenv("SERPAPI_API_KEY", "")
ARRIVALGUIDES_API_KEY: str = os.getenv("ARRIVALGUIDES_API_KEY", "")
ARRIVALGUIDES_URL: str = os.getenv(
    "ARRIVALGUIDES_URL", "https://api.arrivalguides.com/api/xml/Travelguide",
)

# ── Server ──────────────────────────────────────────────────────────
SERVER_HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT: int = _get_int("SERVER_PORT", 8000)
CORS_ORIGINS: list[str] = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000",
).split(",")
