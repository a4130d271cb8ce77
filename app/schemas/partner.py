from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel, Field


class PartnerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    image_url: Optional[str] = None
    category: str = "cafe"
    active: bool = True


class PartnerOut(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    image_url: Optional[str] = None
    category: str
    active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PartnerListItem(PartnerOut):
    distance_km: Optional[float] = None
    reward_count: int = 0
