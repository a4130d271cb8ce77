import uuid
from sqlalchemy import Column, Float, ForeignKey, Integer, String, TIMESTAMP, UniqueConstraint, Uuid
from sqlalchemy.sql import func
from app.db import Base


class Ride(Base):
    __tablename__ = "rides"

    __table_args__ = (UniqueConstraint("healthkit_uuid", name="uq_rides_healthkit_uuid"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)

    # HealthKit workout UUID: one ride per physical workout
    healthkit_uuid = Column(String(100), nullable=False)

    start_date = Column(TIMESTAMP, nullable=False)
    end_date = Column(TIMESTAMP, nullable=False)

    distance_km = Column(Float, nullable=False)
    duration_minutes = Column(Float, nullable=False)
    calories_burned = Column(Float, nullable=True)

    points_earned = Column(Integer, nullable=False)
    co2_saved_g = Column(Float, nullable=False)

    synced_at = Column(TIMESTAMP, server_default=func.now())
