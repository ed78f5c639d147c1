"""Inventory domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models_inventory import INVENTORY_CATEGORIES

TRANSACTION_TYPES = ("restock", "usage", "adjustment")


class InventoryItemCreate(BaseModel):
    name: str
    sku: Optional[str] = None
    category: str = "other"
    quantity: int = 0
    unit: str = "units"
    min_stock_level: int = 0
    cost_per_unit: Optional[float] = None
    supplier: Optional[str] = None
    location: Optional[str] = None
    is_active: bool = True
    is_consumable: bool = True

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        if v not in INVENTORY_CATEGORIES:
            raise ValueError(f"Category must be one of: {', '.join(INVENTORY_CATEGORIES)}")
        return v

    @field_validator("quantity", "min_stock_level")
    @classmethod
    def validate_non_negative(cls, v):
        if v < 0:
            raise ValueError("Must not be negative")
        return v


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = None
    sku: Optional[str] = None
    category: Optional[str] = None
    unit: Optional[str] = None
    min_stock_level: Optional[int] = None
    cost_per_unit: Optional[float] = None
    supplier: Optional[str] = None
    location: Optional[str] = None
    is_active: Optional[bool] = None
    is_consumable: Optional[bool] = None

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        if v is not None and v not in INVENTORY_CATEGORIES:
            raise ValueError(f"Category must be one of: {', '.join(INVENTORY_CATEGORIES)}")
        return v


class InventoryItemResponse(BaseModel):
    id: str
    name: str
    sku: Optional[str] = None
    category: str
    quantity: int
    unit: str
    min_stock_level: int
    cost_per_unit: Optional[float] = None
    supplier: Optional[str] = None
    location: Optional[str] = None
    is_active: bool
    is_consumable: bool
    last_restocked_at: Optional[datetime] = None
    is_low_stock: bool = False

    class Config:
        from_attributes = True


class TransactionCreate(BaseModel):
    transaction_type: str
    quantity: int
    notes: Optional[str] = None
    booking_id: Optional[str] = None

    @field_validator("transaction_type")
    @classmethod
    def validate_type(cls, v):
        if v not in TRANSACTION_TYPES:
            raise ValueError(f"Transaction type must be one of: {', '.join(TRANSACTION_TYPES)}")
        return v

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v):
        if v < 0:
            raise ValueError("Quantity must not be negative")
        return v


class TransactionResponse(BaseModel):
    id: str
    inventory_id: str
    transaction_type: str
    quantity: int
    notes: Optional[str] = None
    performed_by: Optional[str] = None
    booking_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StockAlertResult(BaseModel):
    success: bool = True
    message: Optional[str] = None
    alerts_sent: int
    total_managers: int
    low_stock_items: int
