"""
Audit logging service for tracking inventory mutations.

Provides a centralized trail of who changed which record, and of every bulk
import/export run.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from fleet_backend.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    # Active inventory
    VEHICLE_CREATED = "VEHICLE_CREATED"
    VEHICLE_UPDATED = "VEHICLE_UPDATED"
    VEHICLE_DELETED = "VEHICLE_DELETED"
    VEHICLE_STATUS_CHANGED = "VEHICLE_STATUS_CHANGED"
    VEHICLE_CUSTOMER_UPDATED = "VEHICLE_CUSTOMER_UPDATED"
    IN_TRANSIT_DATES_CLEARED = "IN_TRANSIT_DATES_CLEARED"
    
    # Sales
    VEHICLE_SOLD = "VEHICLE_SOLD"
    SOLD_VEHICLE_CREATED = "SOLD_VEHICLE_CREATED"
    SOLD_VEHICLE_UPDATED = "SOLD_VEHICLE_UPDATED"
    SOLD_VEHICLE_DELETED = "SOLD_VEHICLE_DELETED"
    
    # Trade-ins
    TRADE_IN_CREATED = "TRADE_IN_CREATED"
    TRADE_IN_UPDATED = "TRADE_IN_UPDATED"
    TRADE_IN_DELETED = "TRADE_IN_DELETED"
    TRADE_IN_PICKUP_TOGGLED = "TRADE_IN_PICKUP_TOGGLED"
    
    # Documents
    DOCUMENT_REGISTERED = "DOCUMENT_REGISTERED"
    DOCUMENT_DELETED = "DOCUMENT_DELETED"
    
    # Backup / restore
    DATA_EXPORTED = "DATA_EXPORTED"
    DATA_IMPORTED = "DATA_IMPORTED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_username: Optional[str] = None,
    entity_kind: Optional[str] = None,
    entity_id: Optional[Any] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Log an inventory event to the audit log.
    
    Call after the mutation itself has been committed; this commits its own row.
    
    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_username: Username of the authenticated principal
        entity_kind: Entity kind acted upon (snapshot key, e.g. "inventory")
        entity_id: ID of the record acted upon
        metadata: Additional context as JSON
        
    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_username=actor_username,
        action=action,
        entity_kind=entity_kind,
        entity_id=str(entity_id) if entity_id is not None else None,
        meta_data=metadata
    )
    
    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)
    
    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    entity_kind: Optional[str] = None,
    entity_id: Optional[Any] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering.
    
    Args:
        db: Database session
        entity_kind: Filter by entity kind
        entity_id: Filter by record ID
        action: Filter by action type
        limit: Maximum number of records to return
        
    Returns:
        List of AuditLog instances, most recent first
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))
    
    if entity_kind:
        query = query.where(AuditLog.entity_kind == entity_kind)
    
    if entity_id is not None:
        query = query.where(AuditLog.entity_id == str(entity_id))
    
    if action:
        query = query.where(AuditLog.action == action)
    
    query = query.limit(limit)
    
    result = await db.execute(query)
    return list(result.scalars().all())
