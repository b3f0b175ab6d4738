"""
Trade-in (fleet return) database model.
"""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime
from sqlalchemy.sql import func
from fleet_backend.app.db.session import Base
from fleet_backend.app.models.mixins import utcnow


class TradeIn(Base):
    """
    Trade-in model.
    
    Captured directly by staff or as a by-product of a sale. Mutated by edits
    and by pickup toggling; never deleted automatically.
    """
    __tablename__ = "trade_ins"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    
    stock_number = Column(String(50), nullable=True)
    vin = Column(String(17), nullable=True, index=True)
    year = Column(Integer, nullable=False)
    make = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    trim = Column(String(100), nullable=False, default="")
    color = Column(String(50), nullable=False)
    mileage = Column(Integer, nullable=True)
    notes = Column(Text, nullable=False, default="")
    
    # Pickup tracking: picked_up_date is set exactly when picked_up turns true
    picked_up = Column(Boolean, nullable=False, default=False)
    picked_up_date = Column(DateTime(timezone=True), nullable=True)
    
    date_added = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<TradeIn(id={self.id}, vin='{self.vin}', picked_up={self.picked_up})>"
