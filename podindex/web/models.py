"""
Pydantic models for web API request/response validation.
"""

import json
from typing import Any, Dict, List, Optional

from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field


class StatusResponse(BaseModel):
    """Status envelope shared by every endpoint that is not the sync stream."""
    status: str = Field(default="true", description="'true' on success, 'false' on error")
    description: str = Field(default="", description="Human readable outcome")


class RecentFeedsResponse(StatusResponse):
    """Response model for the recent feeds endpoint."""
    feeds: List[Dict[str, Any]] = Field(default_factory=list, description="Assembled feeds, newest first")
    count: int = Field(default=0, description="Number of feeds returned")
    max: int = Field(..., description="Effective maximum after clamping")
    since: Optional[int] = Field(default=None, description="Effective lower bound (epoch seconds)")


class SyncResponse(BaseModel):
    """Response model for the episode sync endpoint."""
    next_since: int = Field(..., alias="nextSince", description="Pass back as `since` on the next call")
    position: int = Field(..., description="Pass back as `position` on the next call")
    feeds: List[Dict[str, Any]] = Field(default_factory=list, description="Parent feed of every item, once each")
    items: List[Dict[str, Any]] = Field(default_factory=list, description="Episodes in (time added, id) order")

    model_config = ConfigDict(populate_by_name=True)


class ChangeUrlRequest(BaseModel):
    """Request model for changing the URL of a feed."""
    id: int = Field(..., description="Feed id")
    url: str = Field(..., min_length=1, max_length=768, description="New feed URL")


class ChangeUrlResponse(StatusResponse):
    """Response model for a successful URL change."""
    id: int = Field(..., description="Feed id")
    url: str = Field(..., description="The feed's new URL")


def json_response(model: BaseModel, pretty: bool = False, status_code: int = 200) -> Response:
    """
    Serialize a response model by alias, indented when `pretty` is set.
    """
    payload = model.model_dump(by_alias=True)
    body = json.dumps(payload, indent=2 if pretty else None, ensure_ascii=False)
    return Response(content=body, status_code=status_code, media_type="application/json")
