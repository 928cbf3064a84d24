"""Progressive delivery of a finished agent answer.

The agent produces its answer in one blocking call.  ``rechunk_answer``
turns that string back into a stream of words with a small random pause
between them, so clients render it the same way as a live token stream.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import AsyncIterator

from agentchat.config import STREAM_MAX_DELAY_MS, STREAM_MIN_DELAY_MS


async def rechunk_answer(
    answer: str,
    *,
    min_delay_ms: float = STREAM_MIN_DELAY_MS,
    max_delay_ms: float = STREAM_MAX_DELAY_MS,
) -> AsyncIterator[str]:
    """Yield each space-separated piece of *answer* followed by one space.

    Only the space character separates pieces, so newlines stay inside the
    chunks and joining them gives back *answer* plus one trailing space.
    """
    if not answer:
        return
    words = answer.split(" ")
    for i, word in enumerate(words):
        yield word + " "
        if i < len(words) - 1:
            await asyncio.sleep(random.uniform(min_delay_ms, max_delay_ms) / 1000)
