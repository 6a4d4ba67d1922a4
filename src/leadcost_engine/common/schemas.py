"""Shared Pydantic schemas for LeadCost-Engine."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    service: str = "leadcost-engine"


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    code: str
    detail: str = ""
