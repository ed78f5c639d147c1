"""
Inventory Models
Workshop stock (film, vinyl, compounds, tools) and its movement history
"""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .models import generate_uuid

INVENTORY_CATEGORIES = (
    "ppf_film",
    "vinyl",
    "adhesives",
    "cleaning_supplies",
    "polishing_compounds",
    "tools",
    "equipment",
    "safety_gear",
    "other",
)


class InventoryItem(Base):
    __tablename__ = "inventory"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    sku = Column(String(100), unique=True, nullable=True)
    category = Column(String(30), nullable=False, default="other")
    quantity = Column(Integer, nullable=False, default=0)
    unit = Column(String(30), nullable=False, default="units")
    min_stock_level = Column(Integer, nullable=False, default=0)
    cost_per_unit = Column(Float, nullable=True)
    supplier = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True)
    is_consumable = Column(Boolean, default=True)
    last_restocked_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    transactions = relationship(
        "InventoryTransaction", back_populates="item", cascade="all, delete-orphan"
    )


class InventoryTransaction(Base):
    __tablename__ = "inventory_transactions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    inventory_id = Column(String(36), ForeignKey("inventory.id"), nullable=False, index=True)
    transaction_type = Column(String(20), nullable=False)  # restock, usage, adjustment
    quantity = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)
    performed_by = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    item = relationship("InventoryItem", back_populates="transactions")
