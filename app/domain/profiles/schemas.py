"""Profile schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_phone


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone_number(cls, v):
        if v:
            return validate_phone(v)
        return v


class ProfileResponse(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StaffProfileSummary(BaseModel):
    staff_role: str
    department_id: Optional[str] = None
    job_title: Optional[str] = None
    phone_number: Optional[str] = None
    can_approve_pricing: bool = False
    can_collect_deposits: bool = False
    is_active: bool = True

    class Config:
        from_attributes = True


class MeResponse(BaseModel):
    profile: ProfileResponse
    roles: list[str]
    is_staff: bool
    is_admin: bool
    staff_profile: Optional[StaffProfileSummary] = None
