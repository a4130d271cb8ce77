import enum
import uuid
from sqlalchemy import Column, String, Integer, TIMESTAMP, ForeignKey, Index, CheckConstraint, UniqueConstraint, Uuid
from sqlalchemy.sql import func
from app.db import Base


class RedemptionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    EXPIRED = "expired"


# statuses whose points_spent is held against the user's balance
RESERVING_STATUSES = (RedemptionStatus.PENDING.value, RedemptionStatus.COMPLETED.value)


class Redemption(Base):
    __tablename__ = "redemptions"

    __table_args__ = (
        UniqueConstraint("code", name="uq_redemptions_code"),
        Index("ix_redemptions_user_status", "user_id", "status"),
        CheckConstraint("status IN ('pending', 'completed', 'expired')", name="ck_redemptions_status"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    reward_id = Column(Uuid(as_uuid=True), ForeignKey("rewards.id"), nullable=False)
    partner_id = Column(Uuid(as_uuid=True), ForeignKey("partners.id"), nullable=False)

    points_spent = Column(Integer, nullable=False)

    # printed in the QR code
    code = Column(String(32), nullable=False)

    status = Column(String(20), nullable=False, default=RedemptionStatus.PENDING.value)
    # pending | completed | expired

    expires_at = Column(TIMESTAMP, nullable=False)
    redeemed_at = Column(TIMESTAMP, nullable=True)

    created_at = Column(TIMESTAMP, server_default=func.now())
