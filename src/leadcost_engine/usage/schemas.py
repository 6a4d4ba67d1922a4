"""Pydantic schemas for usage endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field


class UsageRecordRequest(BaseModel):
    generation_id: str = Field(..., min_length=1, max_length=255)
    model: str = Field(..., min_length=1, max_length=255)
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    cost_usd: Decimal = Field(default=Decimal("0"), ge=0)
    campaign_id: Optional[str] = None
    email_id: Optional[str] = None
    purpose: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class UsageRecordResponse(BaseModel):
    id: str
    generation_id: str
    campaign_id: Optional[str] = None
    email_id: Optional[str] = None
    model: str
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    cost_usd: float
    purpose: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UsageBucketResponse(BaseModel):
    count: int
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    cost_usd: float
    cost_eur: float


class UsageReportResponse(BaseModel):
    start: str
    end: str
    total_usage: int
    total_prompt_tokens: int
    total_completion_tokens: int
    total_tokens: int
    total_cost_usd: float
    total_cost_eur: float
    exchange_rate: float
    by_day: dict[str, UsageBucketResponse]
    by_model: dict[str, UsageBucketResponse]
    by_purpose: dict[str, UsageBucketResponse]
    by_campaign: dict[str, UsageBucketResponse]
    campaign_activity: dict[str, dict[str, int]] = {}
