"""
Journey database models.

A journey links a driver, a truck and an optional trailer to a route and
moves through ``to_do -> in_progress -> finished``. It exclusively owns its
append-only log of status entries.
"""

from sqlalchemy import Column, Integer, String, Float, Text, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.enums import JourneyStatus
from backend.app.models.user import User  # noqa: F401 - registers mapper for relationship
from backend.app.models.truck import Truck  # noqa: F401
from backend.app.models.trailer import Trailer  # noqa: F401


class Journey(Base):
    """
    Journey model.

    ``version`` is an optimistic-lock counter: every UPDATE is issued with
    ``WHERE version = <loaded>`` so a concurrent writer surfaces as a
    ``StaleDataError`` instead of a silent lost update.
    """
    __tablename__ = "journeys"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # References (non-owning)
    driver_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    truck_id = Column(Integer, ForeignKey('trucks.id'), nullable=False, index=True)
    trailer_id = Column(Integer, ForeignKey('trailers.id'), nullable=True, index=True)

    # Route
    origin = Column(String(255), nullable=False)
    destination = Column(String(255), nullable=False)

    # Lifecycle
    status = Column(Enum(JourneyStatus), default=JourneyStatus.TO_DO, nullable=False, index=True)
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)

    # Tracking
    mileage_start = Column(Float, nullable=True)
    mileage_end = Column(Float, nullable=True)
    fuel_volume = Column(Float, nullable=True)
    tire_status = Column(String(100), default="ok", nullable=False)
    remarks = Column(Text, nullable=True)

    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    driver = relationship("User", lazy="selectin")
    truck = relationship("Truck", lazy="selectin")
    trailer = relationship("Trailer", lazy="selectin")
    logs = relationship(
        "JourneyLog",
        back_populates="journey",
        order_by="JourneyLog.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Journey(id={self.id}, truck_id={self.truck_id}, status='{self.status.value}')>"


class JourneyLog(Base):
    """One entry per status transition. Never updated or removed on its own."""
    __tablename__ = "journey_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    journey_id = Column(Integer, ForeignKey('journeys.id', ondelete="CASCADE"), nullable=False, index=True)

    status = Column(Enum(JourneyStatus), nullable=False)
    note = Column(Text, nullable=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    journey = relationship("Journey", back_populates="logs")

    def __repr__(self):
        return f"<JourneyLog(journey_id={self.journey_id}, status='{self.status.value}')>"
