"""
Truck database model.

A truck's ``status`` is the single source of truth for whether it can be
used right now. Journey operations change it only through the vehicle
registry (``set_truck_status``).
"""

from sqlalchemy import Column, Integer, String, Float, Text, DateTime, Enum
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.enums import VehicleStatus


class Truck(Base):
    """Truck model."""
    __tablename__ = "trucks"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Identification
    license_plate = Column(String(50), unique=True, nullable=False, index=True)
    model = Column(String(100), nullable=False)
    capacity = Column(Float, default=0, nullable=False)

    # Availability
    status = Column(Enum(VehicleStatus), default=VehicleStatus.AVAILABLE, nullable=False, index=True)

    # Condition tracking
    mileage = Column(Float, default=0, nullable=False)
    fuel_level = Column(Float, default=0, nullable=False)
    tire_status = Column(String(100), default="ok", nullable=False)
    maintenance_due_date = Column(DateTime(timezone=True), nullable=True)
    last_service_date = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Truck(id={self.id}, plate='{self.license_plate}', status='{self.status.value}')>"
