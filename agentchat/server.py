"""FastAPI server for the Agent Chat gateway.

Run with:
    uvicorn agentchat.server:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from agentchat.api.routes import router
from agentchat.config import CORS_ORIGINS, SERVER_HOST, SERVER_PORT
from agentchat.services.completion_client import close_completion_client
from agentchat.services.metrics import metrics

# ── Logging ──────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ─────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    """Configuration was validated on import; nothing to build up front.

    On shutdown the pooled completion connections are closed and any
    buffered metrics are pushed before the process exits.
    """
    logger.info("Agent Chat gateway ready.")
    yield
    await close_completion_client()
    metrics.flush()


# ── FastAPI application ──────────────────────────────────────────────
app = FastAPI(
    title="Agent Chat",
    description=(
        "Streams answers from a hosted completion model or a tool-calling "
        "agent, optionally grounded in uploaded documents."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request-ID middleware ────────────────────────────────────────────
@app.middleware("http")
async def add_request_id(request: Request, call_next) -> Response:
    """Tag every request with an ``X-Request-ID`` for log correlation."""
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    request.state.request_id = request_id
    started = time.perf_counter()
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    # Streaming bodies are still being produced here; this is time to first byte
    logger.info(
        "[%s] %s %s -> %d (%.0fms)",
        request_id, request.method, request.url.path, response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return response


app.include_router(router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "Agent Chat",
        "version": "1.0.0",
        "docs": "/docs",
        "chat": "/api/chat",
        "health": "/api/health",
    }


if __name__ == "__main__":
    logger.info("Starting Agent Chat server on %s:%d", SERVER_HOST, SERVER_PORT)
    uvicorn.run(
        "agentchat.server:app",
        host=SERVER_HOST,
        port=SERVER_PORT,
        reload=True,
    )
