"""Pydantic model for marketing leads captured on the landing page."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LeadCreate(BaseModel):
    phone: str = Field(..., min_length=1)
    name: Optional[str] = None
    service: Optional[str] = None
    source: Optional[str] = Field(default=None, description="Where the lead came from (page, campaign)")

    model_config = ConfigDict(extra="allow")
