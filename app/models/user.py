import uuid
from sqlalchemy import Column, String, Integer, Float, TIMESTAMP, UniqueConstraint, Uuid
from sqlalchemy.sql import func
from app.db import Base


class User(Base):
    __tablename__ = "users"

    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    email = Column(String(255), nullable=False)
    name = Column(String(100))

    # cumulative counters, only ever increased by ride sync
    total_points = Column(Integer, nullable=False, default=0)
    total_distance_km = Column(Float, nullable=False, default=0)
    total_co2_saved_g = Column(Float, nullable=False, default=0)

    # bumped on every reservation; the UPDATE doubles as the per-user ledger lock
    ledger_version = Column(Integer, nullable=False, default=0)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())
