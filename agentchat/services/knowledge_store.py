"""Supabase-backed vector store holding embedded attachment text.

Write policy: append-only.  Every request that carries attachments writes
one new row (the joined text of all its attachments) and nothing here ever
deletes, expires or deduplicates rows, so the table grows with traffic.
Retention, if wanted, belongs to the database side (e.g. a scheduled
``DELETE`` on ``created_at``).
"""

from __future__ import annotations

import logging
import threading

from langchain_community.vectorstores import SupabaseVectorStore
from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from langchain_openai import OpenAIEmbeddings
from supabase import Client, create_client

from agentchat.config import (
    EMBEDDING_MODEL_NAME,
    SUPABASE_PRIVATE_KEY,
    SUPABASE_QUERY_NAME,
    SUPABASE_TABLE_NAME,
    SUPABASE_URL,
)
from agentchat.services.metrics import metrics

logger = logging.getLogger(__name__)


class KnowledgeStore:
    """Embeds text into, and searches, the Supabase ``documents`` table."""

    def __init__(
        self,
        client: Client,
        embeddings: Embeddings,
        *,
        table_name: str = SUPABASE_TABLE_NAME,
        query_name: str = SUPABASE_QUERY_NAME,
    ):
        self._vector_store = SupabaseVectorStore(
            client=client,
            embedding=embeddings,
            table_name=table_name,
            query_name=query_name,
        )

    def add_text(self, text: str) -> list[str]:
        """Embed *text* and store it as a single record.  Returns the row ids."""
        with metrics.track("supabase", "add_texts"):
            ids = self._vector_store.add_texts([text])
        logger.info("Stored %d-char knowledge record %s", len(text), ids)
        return ids

    def nearest(self, query: str, k: int = 1) -> list[Document]:
        """Return the *k* stored records closest to *query*."""
        with metrics.track("supabase", "similarity_search"):
            docs = self._vector_store.similarity_search(query, k=k)
        logger.debug("Similarity search returned %d document(s)", len(docs))
        return docs


# ── Module-level singleton ──────────────────────────────────────────
_store: KnowledgeStore | None = None
_store_lock = threading.Lock()


def get_knowledge_store() -> KnowledgeStore:
    """Return the shared KnowledgeStore, connecting on first use."""
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                _store = KnowledgeStore(
                    create_client(SUPABASE_URL, SUPABASE_PRIVATE_KEY),
                    OpenAIEmbeddings(model=EMBEDDING_MODEL_NAME),
                )
    return _store
