"""Pydantic schemas for activity endpoints."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ActivityRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Validated by the engine so unknown types surface as InvalidActivityType
    type: str
    campaign_id: Optional[str] = Field(default=None, alias="campaignId")
    metadata: dict[str, Any] = Field(default_factory=dict)
    occurred_at: Optional[datetime] = None


class ActivityResponse(BaseModel):
    success: bool = True
    id: str
    type: str
    campaign_id: Optional[str] = None
    occurred_at: datetime
