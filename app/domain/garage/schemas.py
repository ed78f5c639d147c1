"""Garage domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator


def _check_year(v):
    if v is not None and not 1900 <= v <= date.today().year + 1:
        raise ValueError("Vehicle year is out of range")
    return v


class VehicleCreate(BaseModel):
    make: str
    model: str
    year: Optional[int] = None
    color: Optional[str] = None
    vin: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator("make", "model")
    @classmethod
    def validate_required_text(cls, v):
        if not v or not v.strip():
            raise ValueError("Field is required")
        return v.strip()

    @field_validator("year")
    @classmethod
    def validate_year(cls, v):
        return _check_year(v)


class VehicleUpdate(BaseModel):
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    color: Optional[str] = None
    vin: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator("year")
    @classmethod
    def validate_year(cls, v):
        return _check_year(v)


class VehicleResponse(BaseModel):
    id: str
    user_id: str
    make: str
    model: str
    year: Optional[int] = None
    color: Optional[str] = None
    vin: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
