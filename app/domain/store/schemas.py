"""Store domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

ORDER_STATUSES = ["pending", "confirmed", "processing", "completed", "cancelled"]


class MerchandiseCreate(BaseModel):
    name: str
    category: Optional[str] = None
    price: float
    stock_quantity: int = 0
    is_active: bool = True
    description: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        if v < 0:
            raise ValueError("Price cannot be negative")
        return v

    @field_validator("stock_quantity")
    @classmethod
    def validate_stock(cls, v):
        if v < 0:
            raise ValueError("Stock cannot be negative")
        return v


class MerchandiseUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = None
    stock_quantity: Optional[int] = None
    is_active: Optional[bool] = None
    description: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        if v is not None and v < 0:
            raise ValueError("Price cannot be negative")
        return v

    @field_validator("stock_quantity")
    @classmethod
    def validate_stock(cls, v):
        if v is not None and v < 0:
            raise ValueError("Stock cannot be negative")
        return v


class MerchandiseResponse(BaseModel):
    id: str
    name: str
    category: Optional[str] = None
    price: float
    stock_quantity: int
    is_active: bool
    description: Optional[str] = None
    image_url: Optional[str] = None

    class Config:
        from_attributes = True


class CartAdd(BaseModel):
    merchandise_id: str
    quantity: int = 1

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v):
        if v < 1:
            raise ValueError("Quantity must be at least 1")
        return v


class CartQuantityUpdate(BaseModel):
    quantity: int


class CartItemResponse(BaseModel):
    id: str
    merchandise_id: str
    quantity: int
    merchandise: MerchandiseResponse

    class Config:
        from_attributes = True


class CartSummary(BaseModel):
    items: list[CartItemResponse]
    count: int
    total: float


class CheckoutRequest(BaseModel):
    shipping_address: Optional[str] = None
    notes: Optional[str] = None


class OrderItemResponse(BaseModel):
    id: str
    merchandise_id: str
    quantity: int
    unit_price: float
    merchandise: Optional[MerchandiseResponse] = None

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: str
    user_id: str
    status: str
    payment_status: str
    total_amount: float
    shipping_address: Optional[str] = None
    notes: Optional[str] = None
    yoco_checkout_id: Optional[str] = None
    payment_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    items: list[OrderItemResponse] = []

    class Config:
        from_attributes = True


class OrderStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in ORDER_STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(ORDER_STATUSES)}")
        return v
