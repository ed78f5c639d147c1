"""Catalog schemas - Services and availability"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class ServiceCreate(BaseModel):
    title: str
    category: str
    duration: Optional[str] = None
    price_from: Optional[float] = None
    description: Optional[str] = None
    features: list[str] = []
    add_ons: list[str] = []
    is_active: bool = True

    @field_validator("price_from")
    @classmethod
    def validate_price(cls, v):
        if v is not None and v < 0:
            raise ValueError("Price cannot be negative")
        return v


class ServiceUpdate(BaseModel):
    title: Optional[str] = None
    category: Optional[str] = None
    duration: Optional[str] = None
    price_from: Optional[float] = None
    description: Optional[str] = None
    features: Optional[list[str]] = None
    add_ons: Optional[list[str]] = None
    is_active: Optional[bool] = None


class ServiceResponse(BaseModel):
    id: str
    title: str
    category: str
    duration: Optional[str] = None
    price_from: Optional[float] = None
    description: Optional[str] = None
    features: Optional[list[str]] = None
    add_ons: Optional[list[str]] = None
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DayAvailability(BaseModel):
    date: date
    status: str  # available, limited, full
    available_slots: int


class AvailabilityResponse(BaseModel):
    service_ids: list[str]
    time_slots: list[str]
    days: list[DayAvailability]
