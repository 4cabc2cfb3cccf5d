"""
Identity record - tier state for one message sender.
"""
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class Tier(str, Enum):
    FREE = "free"
    PRO = "pro"


class IdentityRecord(BaseModel):
    """One record per distinct sender identity. Created lazily on first lookup."""
    id: str = Field(..., description="Opaque sender identity (E.164 phone over SMS)")
    tier: Tier = Tier.FREE
    contact_email: Optional[str] = None
    upgraded_at: Optional[datetime] = None

    @property
    def is_pro(self) -> bool:
        return self.tier == Tier.PRO


class IdentityStats(BaseModel):
    """Aggregate tier counts for the admin panel."""
    total: int
    pro: int
    free: int
