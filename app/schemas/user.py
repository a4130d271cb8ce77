from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel


class UserCreate(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None


class UserUpdate(BaseModel):
    name: Optional[str] = None


class UserOut(BaseModel):
    id: UUID
    email: str
    name: Optional[str] = None

    total_points: int
    total_distance_km: float
    total_co2_saved_g: float

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
