from datetime import datetime
from typing import List, Optional

from uuid import UUID

from pydantic import BaseModel, Field


class RideIn(BaseModel):
    healthkitUuid: str = Field(..., min_length=1, max_length=100)
    startDate: datetime
    endDate: datetime
    distanceKm: float = Field(..., ge=0)
    durationMinutes: float = Field(..., ge=0)
    caloriesBurned: Optional[float] = Field(default=None, ge=0)


class RideSync(BaseModel):
    userId: UUID
    rides: List[RideIn]


class RideOut(BaseModel):
    id: UUID
    user_id: UUID
    healthkit_uuid: str

    start_date: datetime
    end_date: datetime

    distance_km: float
    duration_minutes: float
    calories_burned: Optional[float] = None

    points_earned: int
    co2_saved_g: float

    synced_at: Optional[datetime] = None

    class Config:
        from_attributes = True
