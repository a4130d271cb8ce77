from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel, Field


class RewardCreate(BaseModel):
    partner_id: UUID
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    points_cost: int = Field(..., gt=0)
    image_url: Optional[str] = None
    active: bool = True


class RewardUpdate(BaseModel):
    partner_id: Optional[UUID] = None
    name: Optional[str] = None
    description: Optional[str] = None
    points_cost: Optional[int] = Field(default=None, gt=0)
    image_url: Optional[str] = None
    active: Optional[bool] = None


class RewardOut(BaseModel):
    id: UUID
    partner_id: UUID
    name: str
    description: Optional[str] = None
    points_cost: int
    image_url: Optional[str] = None
    active: bool
    created_at: Optional[datetime] = None

    partner_name: Optional[str] = None
    partner_address: Optional[str] = None

    class Config:
        from_attributes = True
