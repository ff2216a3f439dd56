"""
Pydantic models for the availability data source.
"""

import uuid
from typing import Any, Dict
from pydantic import BaseModel, Field


class VenueSession(BaseModel):
    """
    Opaque credentials for the reservation site, passed into the client.
    """
    venue_url: str = Field(..., description="Restaurant profile page, sent as referer")
    restaurant_id: int = Field(..., gt=0, description="Site restaurant identifier")
    cookie: str = Field(default="", description="Cookie header copied from the browser session")
    csrf_token: str = Field(default_factory=lambda: str(uuid.uuid4()))
    correlation_id: str = Field(default_factory=lambda: str(uuid.uuid4()))

    class Config:
        """Pydantic configuration."""
        frozen = True


class AvailabilityResponse(BaseModel):
    """Raw result of fetching one date."""
    date: str = Field(..., description="Date that was queried (YYYY-MM-DD)")
    request: Dict[str, Any] = Field(default_factory=dict, description="Request body sent")
    payload: Any = Field(default=None, description="Decoded response body")
    status_code: int = Field(default=200)
