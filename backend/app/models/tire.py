"""
Tire inventory models.

A tire is either in stock, mounted on a truck or trailer, or retired. The
mount target is polymorphic (``assigned_to_type`` + ``assigned_to_id``), so
it carries no foreign key; the assign endpoint checks the target exists.
"""

from sqlalchemy import Column, Integer, String, Float, Text, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.enums import AssetType, TireEvent, TireStatus


class Tire(Base):
    """Tire model with an append-only history."""
    __tablename__ = "tires"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    serial_number = Column(String(100), unique=True, nullable=False, index=True)
    brand = Column(String(100), nullable=True)
    size = Column(String(50), nullable=True)

    status = Column(Enum(TireStatus), default=TireStatus.IN_STOCK, nullable=False, index=True)
    tread_depth = Column(Float, default=0, nullable=False)

    # Mount (all null while in stock or retired)
    position = Column(String(50), nullable=True)  # e.g. "front-left"
    assigned_to_type = Column(Enum(AssetType), nullable=True)
    assigned_to_id = Column(Integer, nullable=True, index=True)
    mileage_at_install = Column(Float, nullable=True)

    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    history = relationship(
        "TireHistory",
        back_populates="tire",
        order_by="TireHistory.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Tire(id={self.id}, serial='{self.serial_number}', status='{self.status.value}')>"


class TireHistory(Base):
    __tablename__ = "tire_history"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    tire_id = Column(Integer, ForeignKey('tires.id', ondelete="CASCADE"), nullable=False, index=True)

    action = Column(Enum(TireEvent), nullable=False)
    note = Column(Text, nullable=True)
    tread_depth = Column(Float, nullable=True)
    mileage = Column(Float, nullable=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    tire = relationship("Tire", back_populates="history")

    def __repr__(self):
        return f"<TireHistory(tire_id={self.tire_id}, action='{self.action.value}')>"
