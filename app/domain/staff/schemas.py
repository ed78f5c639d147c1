"""Staff domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email, validate_phone

STAFF_ROLES = [
    "technician",
    "senior_technician",
    "team_lead",
    "supervisor",
    "manager",
    "director",
    "lead_manager",
    "sales",
    "admin_support",
    "reception",
]


def _check_staff_role(v):
    if v is not None and v not in STAFF_ROLES:
        raise ValueError(f"Staff role must be one of: {', '.join(STAFF_ROLES)}")
    return v


class DepartmentCreate(BaseModel):
    name: str
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Department name is required")
        return v


class DepartmentUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class DepartmentResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StaffAddRequest(BaseModel):
    email: str
    staff_role: str = "technician"
    department_id: Optional[str] = None
    job_title: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v):
        return validate_email(v)

    @field_validator("staff_role")
    @classmethod
    def validate_role(cls, v):
        return _check_staff_role(v)


class StaffInviteRequest(StaffAddRequest):
    pass


class StaffProfileUpdate(BaseModel):
    staff_role: Optional[str] = None
    department_id: Optional[str] = None
    job_title: Optional[str] = None
    phone_number: Optional[str] = None
    skills: Optional[list[str]] = None
    responsibilities: Optional[list[str]] = None
    can_approve_pricing: Optional[bool] = None
    can_collect_deposits: Optional[bool] = None
    is_active: Optional[bool] = None

    @field_validator("staff_role")
    @classmethod
    def validate_role(cls, v):
        return _check_staff_role(v)

    @field_validator("phone_number")
    @classmethod
    def validate_phone_number(cls, v):
        return validate_phone(v)


class StaffMemberResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    staff_role: str
    department_id: Optional[str] = None
    department_name: Optional[str] = None
    job_title: Optional[str] = None
    phone_number: Optional[str] = None
    skills: list[str] = []
    responsibilities: list[str] = []
    can_approve_pricing: bool
    can_collect_deposits: bool
    is_active: bool


class InvitationResponse(BaseModel):
    id: str
    email: str
    staff_role: str
    department_id: Optional[str] = None
    job_title: Optional[str] = None
    expires_at: datetime
    used_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AcceptInviteRequest(BaseModel):
    token: str


class WalkInRequest(BaseModel):
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    @field_validator("full_name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Full name is required")
        return v

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone_number(cls, v):
        return validate_phone(v)


class CustomerSummary(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
    booking_count: int
    last_booking_date: Optional[date] = None


class DashboardStats(BaseModel):
    todays_bookings: int
    active_jobs: int
    pending_bookings: int
    monthly_revenue: float
    low_stock_items: int
    new_leads: int
