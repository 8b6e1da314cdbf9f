"""
Maintenance Rule database model.

Rules describe recurring service thresholds (by distance and/or elapsed days)
that the maintenance advisor checks trucks and trailers against.
"""

from sqlalchemy import Column, Integer, String, Float, Text, DateTime, Enum
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.enums import MaintenanceType, AssetType


class MaintenanceRule(Base):
    """Maintenance rule model."""
    __tablename__ = "maintenance_rules"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    name = Column(String(150), nullable=False)
    type = Column(Enum(MaintenanceType), nullable=False)
    applies_to = Column(Enum(AssetType), default=AssetType.ALL, nullable=False)

    threshold_km = Column(Float, nullable=True)
    threshold_days = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<MaintenanceRule(id={self.id}, name='{self.name}', applies_to='{self.applies_to.value}')>"
