import uuid
from sqlalchemy import Column, String, Float, Boolean, TIMESTAMP, Uuid
from sqlalchemy.sql import func
from app.db import Base


class Partner(Base):
    __tablename__ = "partners"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    name = Column(String(100), nullable=False)
    description = Column(String(255))
    address = Column(String(255))

    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    image_url = Column(String(500))
    category = Column(String(50), nullable=False, default="cafe")

    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(TIMESTAMP, server_default=func.now())
