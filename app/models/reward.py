import uuid
from sqlalchemy import Column, String, Integer, Boolean, TIMESTAMP, ForeignKey, CheckConstraint, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db import Base
from app.models.partner import Partner


class Reward(Base):
    __tablename__ = "rewards"

    __table_args__ = (CheckConstraint("points_cost > 0", name="ck_rewards_points_cost_positive"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    partner_id = Column(Uuid(as_uuid=True), ForeignKey("partners.id"), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    description = Column(String(255))

    # current catalog price; vouchers keep their own snapshot in points_spent
    points_cost = Column(Integer, nullable=False)

    image_url = Column(String(500))

    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(TIMESTAMP, server_default=func.now())

    partner = relationship(Partner, lazy="joined")

    @property
    def partner_name(self):
        return self.partner.name if self.partner else None

    @property
    def partner_address(self):
        return self.partner.address if self.partner else None
