"""
Audit Log Database Model.

Tracks inventory mutations, sales and bulk import/export runs.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from fleet_backend.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model for tracking who changed what in the inventory.
    
    Events logged include:
    - VEHICLE_CREATED / VEHICLE_UPDATED / VEHICLE_DELETED
    - VEHICLE_STATUS_CHANGED / VEHICLE_SOLD
    - TRADE_IN_PICKUP_TOGGLED
    - DATA_EXPORTED / DATA_IMPORTED
    """
    __tablename__ = "audit_logs"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    
    # Who performed the action (None for scripts and system actions)
    actor_username = Column(String(100), nullable=True)
    
    # What action was performed
    action = Column(String(100), nullable=False, index=True)
    
    # What it was performed on
    entity_kind = Column(String(50), nullable=True, index=True)
    entity_id = Column(String(50), nullable=True, index=True)
    
    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)
    
    # Timestamp
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    
    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_username}, entity={self.entity_kind}:{self.entity_id})>"
