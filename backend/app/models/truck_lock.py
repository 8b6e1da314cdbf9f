"""
Truck Lock database model.

Ensures only one IN_PROGRESS journey per truck through a DB-level partial
unique index, independent of how many application processes are running.
"""

from sqlalchemy import Column, Integer, ForeignKey, DateTime, Index
from sqlalchemy.sql import func
from backend.app.db.session import Base


class TruckLock(Base):
    """
    Truck Lock model.

    A row is inserted in the same transaction that moves a journey to
    ``in_progress`` and released when the journey finishes or is deleted.
    """
    __tablename__ = "truck_locks"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    truck_id = Column(Integer, ForeignKey('trucks.id'), nullable=False, index=True)
    journey_id = Column(Integer, ForeignKey('journeys.id', ondelete="CASCADE"), nullable=False, index=True)
    locked_by_user_id = Column(Integer, ForeignKey('users.id'), nullable=False)

    locked_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    released_at = Column(DateTime(timezone=True), nullable=True)

    # Only one active lock per truck
    __table_args__ = (
        Index(
            'ix_truck_locks_active', 'truck_id', unique=True,
            postgresql_where=released_at.is_(None),
            sqlite_where=released_at.is_(None),
        ),
    )

    def __repr__(self):
        return f"<TruckLock(truck_id={self.truck_id}, journey_id={self.journey_id}, active={self.released_at is None})>"
