"""
API response schemas for the webhook and health endpoints.
"""
from typing import Optional
from pydantic import BaseModel


class WebhookPayloadResponse(BaseModel):
    status: str  # accepted, ignored, failed
    message: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str
    identities_tracked: Optional[int] = None
    tasks_in_flight: Optional[int] = None
