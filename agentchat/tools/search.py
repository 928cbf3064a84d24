"""Web search and encyclopedia lookup tools (always given to the agent)."""

from __future__ import annotations

from langchain_community.tools import WikipediaQueryRun
from langchain_community.utilities import SerpAPIWrapper, WikipediaAPIWrapper
from langchain_core.tools import BaseTool, Tool

from agentchat.config import SERPAPI_API_KEY

SERPAPI_PARAMS = {
    "engine": "google",
    "google_domain": "google.com",
    "location": "United States",
    "gl": "us",
    "hl": "en",
    "safe": "active",
    "nfpr": "1",
}

WIKIPEDIA_TOP_K = 1
WIKIPEDIA_MAX_CHARS = 1000


def build_search_tool() -> BaseTool:
    """Google search through SerpAPI, US locale, safe search on."""
    wrapper = SerpAPIWrapper(serpapi_api_key=SERPAPI_API_KEY or None, params=SERPAPI_PARAMS)
    return Tool(
        name="search",
        description=(
            "A search engine. Useful for answering questions about current "
            "events or anything that needs up-to-date information. "
            "Input should be a search query."
        ),
        func=wrapper.run,
    )


def build_wikipedia_tool() -> BaseTool:
    """Wikipedia lookup returning only the best match, truncated."""
    return WikipediaQueryRun(
        api_wrapper=WikipediaAPIWrapper(
            top_k_results=WIKIPEDIA_TOP_K,
            doc_content_chars_max=WIKIPEDIA_MAX_CHARS,
        ),
    )
