"""
Trailer database model.
"""

from sqlalchemy import Column, Integer, String, Float, Text, DateTime, Enum
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.enums import VehicleStatus


class Trailer(Base):
    """Trailer model. Optional on a journey; never locked."""
    __tablename__ = "trailers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    license_plate = Column(String(50), unique=True, nullable=False, index=True)
    type = Column(String(100), nullable=False)  # e.g. "Flatbed", "Reefer"
    capacity = Column(Float, default=0, nullable=False)

    status = Column(Enum(VehicleStatus), default=VehicleStatus.AVAILABLE, nullable=False, index=True)

    mileage = Column(Float, default=0, nullable=False)
    tire_status = Column(String(100), default="ok", nullable=False)
    maintenance_due_date = Column(DateTime(timezone=True), nullable=True)
    last_service_date = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Trailer(id={self.id}, plate='{self.license_plate}', type='{self.type}')>"
