"""Pydantic schemas for the fal.ai queue API used by video generation.

The queue API decouples "generation finished" from "result payload": the
status response only carries a ``response_url`` that must be fetched to find
where the video lives.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class FalSubmitRequest(BaseModel):
    prompt: str
    aspect_ratio: Optional[str] = None
    duration: Optional[int] = None


class FalSubmitResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    request_id: str
    status: Optional[str] = None


class FalStatusResponse(BaseModel):
    """Status of a queued request.

    ``status`` is one of PENDING, PROCESSING, COMPLETED or FAILED; anything
    else is treated as an unknown state by the poller.
    """

    model_config = ConfigDict(extra="ignore")

    request_id: Optional[str] = None
    status: str = ""
    response_url: Optional[str] = None
    error: Any = None
    output: Optional[dict[str, Any]] = None
