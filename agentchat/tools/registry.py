"""Catalog of tools the agent can be given, keyed by the names clients send.

Search and Wikipedia are always part of a run.  Anything else has to be
switched on per request with ``{"name": ..., "active": true}``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping

from langchain_core.tools import BaseTool

from agentchat.api.schemas import ToolSelection
from agentchat.tools.search import build_search_tool, build_wikipedia_tool
from agentchat.tools.travel_guide import fetch_destination_guide

logger = logging.getLogger(__name__)

ToolFactory = Callable[[], BaseTool]

TOOL_FACTORIES: dict[str, ToolFactory] = {
    "wikipediaQuery": build_wikipedia_tool,
    "serpApiQuery": build_search_tool,
    "fetchDestinationGuide": lambda: fetch_destination_guide,
}

DEFAULT_TOOL_NAMES: tuple[str, ...] = ("wikipediaQuery", "serpApiQuery")


class UnknownToolError(ValueError):
    """Raised when an active selection names a tool that is not in the catalog."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name!r}")


def select_tools(
    selections: Iterable[ToolSelection] | None,
    factories: Mapping[str, ToolFactory] = TOOL_FACTORIES,
) -> list[BaseTool]:
    """Build the tool set for one agent run.

    The default tools come first, followed by each active selection in the
    order given.  Inactive selections are ignored and a name is never added
    twice.
    """
    names = list(DEFAULT_TOOL_NAMES)
    for selection in selections or []:
        if not selection.active:
            continue
        if selection.name not in factories:
            raise UnknownToolError(selection.name)
        if selection.name not in names:
            names.append(selection.name)

    logger.debug("Active tools: %s", names)
    return [factories[name]() for name in names]
