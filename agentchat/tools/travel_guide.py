"""Destination guide tool backed by the ArrivalGuides travel-guide API.

The tool does not guard against unexpected payloads: an HTTP error or a
response without ``data.destination.description`` raises, and the agent run
fails with it.
"""

from __future__ import annotations

import json
import logging

import httpx
from langchain_core.tools import tool
from pydantic import BaseModel, Field

from agentchat.config import ARRIVALGUIDES_API_KEY, ARRIVALGUIDES_URL
from agentchat.services.metrics import metrics

logger = logging.getLogger(__name__)

GUIDE_LANGUAGE = "en"
GUIDE_API_VERSION = "13"


class DestinationGuideInput(BaseModel):
    cityISO: str = Field(..., description="ISO code of the destination, e.g. 'PAR' or 'FR'")


@tool("fetchDestinationGuide", args_schema=DestinationGuideInput)
def fetch_destination_guide(cityISO: str) -> str:  # noqa: N803
    """Fetches and returns a destination guide for a specified city."""
    params = {
        "auth": ARRIVALGUIDES_API_KEY,
        "lang": GUIDE_LANGUAGE,
        "iso": cityISO,
        "v": GUIDE_API_VERSION,
    }
    with metrics.track("arrivalguides", "travel_guide"):
        response = httpx.get(ARRIVALGUIDES_URL, params=params)
        response.raise_for_status()
        data = response.json()

    logger.debug("Fetched destination guide for %s", cityISO)
    return json.dumps(data["data"]["destination"]["description"])
