"""
Audit Log Database Model.

Tracks fleet changes (journey lifecycle, vehicle and rule administration)
for traceability. Rows are written in the same transaction as the change.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from backend.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model.

    Events logged:
    - JOURNEY_CREATED / JOURNEY_DELETED
    - JOURNEY_STATUS_CHANGED / JOURNEY_TRACKING_UPDATED
    - TRUCK_*, TRAILER_*, MAINTENANCE_RULE_* administration
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for system actions)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_role = Column(String(20), nullable=True)

    # What action was performed, and on what
    action = Column(String(100), nullable=False, index=True)
    entity_type = Column(String(50), nullable=True, index=True)
    entity_id = Column(Integer, nullable=True, index=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', entity={self.entity_type}:{self.entity_id})>"
