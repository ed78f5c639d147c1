import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_uuid():
    """Generate a string UUID primary key"""
    return str(uuid.uuid4())


# ============================================================================
# PEOPLE & ROLES
# ============================================================================


class Profile(Base):
    """A portal user. The id is the auth provider's user id (JWT `sub`)."""

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=True)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)
    address = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    roles = relationship("UserRole", back_populates="user", cascade="all, delete-orphan")
    staff_profile = relationship(
        "StaffProfile", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    vehicles = relationship("Vehicle", back_populates="user", cascade="all, delete-orphan")


class UserRole(Base):
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_role"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    role = Column(String(20), nullable=False)  # client, staff, admin
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("Profile", back_populates="roles")


class Department(Base):
    __tablename__ = "departments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    members = relationship("StaffProfile", back_populates="department")


class StaffProfile(Base):
    __tablename__ = "staff_profiles"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, unique=True)
    staff_role = Column(String(30), nullable=False, default="technician")
    department_id = Column(String(36), ForeignKey("departments.id"), nullable=True)
    job_title = Column(String(255), nullable=True)
    phone_number = Column(String(32), nullable=True)
    skills = Column(JSON, default=list)
    responsibilities = Column(JSON, default=list)
    can_approve_pricing = Column(Boolean, default=False)
    can_collect_deposits = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("Profile", back_populates="staff_profile")
    department = relationship("Department", back_populates="members")


class StaffInvitation(Base):
    __tablename__ = "staff_invitations"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), nullable=False, index=True)
    token = Column(String(64), unique=True, nullable=False, index=True)
    invited_by = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    staff_role = Column(String(30), nullable=False, default="technician")
    department_id = Column(String(36), ForeignKey("departments.id"), nullable=True)
    job_title = Column(String(255), nullable=True)
    expires_at = Column(DateTime, nullable=False)
    used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())


# ============================================================================
# GARAGE & CATALOG
# ============================================================================


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    make = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    year = Column(Integer, nullable=True)
    color = Column(String(50), nullable=True)
    vin = Column(String(50), nullable=True)
    image_url = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("Profile", back_populates="vehicles")


class Service(Base):
    """A bookable service from the catalog (PPF, ceramic coating, tint...)"""

    __tablename__ = "services"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False)
    duration = Column(String(100), nullable=True)  # Display text, e.g. "2-3 days"
    price_from = Column(Float, nullable=True)
    description = Column(Text, nullable=True)
    features = Column(JSON, default=list)
    add_ons = Column(JSON, default=list)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


# ============================================================================
# BOOKINGS & JOB STAGES
# ============================================================================


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=True)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id"), nullable=True)
    template_id = Column(String(36), ForeignKey("process_templates.id"), nullable=True)

    booking_date = Column(Date, nullable=False, index=True)
    booking_time = Column(String(20), nullable=False)

    # pending, confirmed, in_progress, completed, cancelled
    status = Column(String(20), nullable=False, default="pending")
    current_stage = Column(String(50), nullable=True)
    estimated_completion = Column(DateTime, nullable=True)
    priority = Column(String(10), nullable=False, default="normal")  # normal, high, urgent

    # Payment tracking (Yoco)
    payment_amount = Column(Float, default=0)
    payment_status = Column(String(20), default="pending")  # pending, paid, failed
    payment_date = Column(DateTime, nullable=True)
    yoco_checkout_id = Column(String(100), nullable=True, index=True)
    yoco_payment_id = Column(String(100), nullable=True)

    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("Profile")
    service = relationship("Service")
    vehicle = relationship("Vehicle")
    booking_services = relationship(
        "BookingService", back_populates="booking", cascade="all, delete-orphan"
    )
    stages = relationship(
        "BookingStage",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingStage.stage_order",
    )


class BookingService(Base):
    """Line item: one service selected on a booking, with the price at booking time"""

    __tablename__ = "booking_services"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False)
    price = Column(Float, default=0)

    booking = relationship("Booking", back_populates="booking_services")
    service = relationship("Service")


class BookingStage(Base):
    __tablename__ = "booking_stages"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    stage = Column(String(50), nullable=False)  # Stable key, e.g. "ppf_installation"
    stage_name = Column(String(255), nullable=True)  # Display label
    stage_order = Column(Integer, nullable=False)
    completed = Column(Boolean, default=False)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    assigned_to = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    notes = Column(Text, nullable=True)

    booking = relationship("Booking", back_populates="stages")
    assignee = relationship("Profile")


class BookingAuditLog(Base):
    __tablename__ = "booking_audit_log"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    stage_id = Column(String(36), ForeignKey("booking_stages.id"), nullable=True)
    action = Column(String(50), nullable=False)
    changed_by = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())


# ============================================================================
# PROCESS TEMPLATES
# ============================================================================


class ProcessTemplate(Base):
    __tablename__ = "process_templates"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=True)
    is_default = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
    created_by = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    stages = relationship(
        "ProcessTemplateStage",
        back_populates="template",
        cascade="all, delete-orphan",
        order_by="ProcessTemplateStage.stage_order",
    )


class ProcessTemplateStage(Base):
    __tablename__ = "process_template_stages"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    template_id = Column(String(36), ForeignKey("process_templates.id"), nullable=False, index=True)
    stage_name = Column(String(255), nullable=False)
    stage_order = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)
    requires_photo = Column(Boolean, default=False)
    estimated_duration_minutes = Column(Integer, nullable=True)

    template = relationship("ProcessTemplate", back_populates="stages")
