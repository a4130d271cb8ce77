from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel


class RedemptionCreate(BaseModel):
    userId: UUID
    rewardId: UUID


class RedemptionVerify(BaseModel):
    qrCode: str
    partnerId: UUID


class RedemptionOut(BaseModel):
    id: UUID
    user_id: UUID
    reward_id: UUID
    partner_id: UUID

    points_spent: int
    code: str
    status: str

    expires_at: datetime
    redeemed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    reward_name: Optional[str] = None
    reward_description: Optional[str] = None
    partner_name: Optional[str] = None

    class Config:
        from_attributes = True
