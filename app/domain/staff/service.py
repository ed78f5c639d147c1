"""Staff service - Team management, invitations, walk-in customers and dashboard"""

import logging
import secrets
import time
from datetime import date, datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from ... import config
from ...auth import STAFF_ROLES, is_admin
from ...models import Booking, Department, Profile, StaffInvitation, StaffProfile, UserRole
from ...models_leads import Lead
from ..inventory.service import get_low_stock_items
from .schemas import (
    DepartmentCreate,
    DepartmentUpdate,
    StaffAddRequest,
    StaffInviteRequest,
    StaffProfileUpdate,
    WalkInRequest,
)

logger = logging.getLogger(__name__)

INVITE_EXPIRY_DAYS = 7


def to_member(staff: StaffProfile) -> dict:
    return {
        "user_id": staff.user_id,
        "email": staff.user.email if staff.user else None,
        "full_name": staff.user.full_name if staff.user else None,
        "staff_role": staff.staff_role,
        "department_id": staff.department_id,
        "department_name": staff.department.name if staff.department else None,
        "job_title": staff.job_title,
        "phone_number": staff.phone_number,
        "skills": staff.skills or [],
        "responsibilities": staff.responsibilities or [],
        "can_approve_pricing": bool(staff.can_approve_pricing),
        "can_collect_deposits": bool(staff.can_collect_deposits),
        "is_active": bool(staff.is_active),
    }


class StaffService:
    """Service layer for staff management"""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------------
    # Departments
    # ------------------------------------------------------------------------

    def list_departments(self) -> list[Department]:
        return self.db.query(Department).order_by(Department.name).all()

    def _get_department(self, department_id: str) -> Department:
        department = self.db.query(Department).filter(Department.id == department_id).first()
        if not department:
            raise HTTPException(status_code=404, detail="Department not found")
        return department

    def create_department(self, data: DepartmentCreate) -> Department:
        if self.db.query(Department).filter(Department.name == data.name).first():
            raise HTTPException(status_code=400, detail="Department already exists")
        department = Department(name=data.name, description=data.description)
        self.db.add(department)
        self.db.commit()
        self.db.refresh(department)
        return department

    def update_department(self, department_id: str, data: DepartmentUpdate) -> Department:
        department = self._get_department(department_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(department, key, value)
        self.db.commit()
        self.db.refresh(department)
        return department

    def delete_department(self, department_id: str) -> dict:
        department = self._get_department(department_id)
        self.db.query(StaffProfile).filter(StaffProfile.department_id == department.id).update(
            {StaffProfile.department_id: None}, synchronize_session=False
        )
        self.db.delete(department)
        self.db.commit()
        return {"success": True}

    # ------------------------------------------------------------------------
    # Team members
    # ------------------------------------------------------------------------

    def list_members(self) -> list[dict]:
        staff = (
            self.db.query(StaffProfile)
            .options(selectinload(StaffProfile.user), selectinload(StaffProfile.department))
            .order_by(StaffProfile.created_at)
            .all()
        )
        return [to_member(s) for s in staff]

    def _get_staff_profile(self, user_id: str) -> StaffProfile:
        staff = self.db.query(StaffProfile).filter(StaffProfile.user_id == user_id).first()
        if not staff:
            raise HTTPException(status_code=404, detail="Staff member not found")
        return staff

    def get_member(self, user_id: str) -> dict:
        return to_member(self._get_staff_profile(user_id))

    def _grant_staff(self, user_id: str, staff_role: str, department_id, job_title) -> StaffProfile:
        if department_id:
            self._get_department(department_id)

        if not (
            self.db.query(UserRole)
            .filter(UserRole.user_id == user_id, UserRole.role == "staff")
            .first()
        ):
            self.db.add(UserRole(user_id=user_id, role="staff"))

        staff = self.db.query(StaffProfile).filter(StaffProfile.user_id == user_id).first()
        if staff:
            staff.staff_role = staff_role
            staff.department_id = department_id
            staff.job_title = job_title
            staff.is_active = True
        else:
            staff = StaffProfile(
                user_id=user_id,
                staff_role=staff_role,
                department_id=department_id,
                job_title=job_title,
            )
            self.db.add(staff)
        return staff

    def add_staff(self, data: StaffAddRequest) -> dict:
        profile = self.db.query(Profile).filter(Profile.email == data.email).first()
        if not profile:
            raise HTTPException(status_code=404, detail="No user found with that email")

        roles = {
            r[0] for r in self.db.query(UserRole.role).filter(UserRole.user_id == profile.id).all()
        }
        if roles & STAFF_ROLES or is_admin(self.db, profile):
            raise HTTPException(status_code=400, detail="User is already a staff member")

        self._grant_staff(profile.id, data.staff_role, data.department_id, data.job_title)
        self.db.commit()
        logger.info(f"✅ {data.email} added to staff as {data.staff_role}")
        return self.get_member(profile.id)

    def update_member(self, user_id: str, data: StaffProfileUpdate) -> dict:
        staff = self._get_staff_profile(user_id)
        updates = data.model_dump(exclude_unset=True)
        if updates.get("department_id"):
            self._get_department(updates["department_id"])
        for key, value in updates.items():
            setattr(staff, key, value)
        self.db.commit()
        self.db.refresh(staff)
        return to_member(staff)

    def remove_staff(self, user_id: str) -> dict:
        profile = self.db.query(Profile).filter(Profile.id == user_id).first()
        if not profile:
            raise HTTPException(status_code=404, detail="User not found")
        if is_admin(self.db, profile):
            raise HTTPException(status_code=400, detail="Admins cannot be removed from staff")

        self.db.query(UserRole).filter(
            UserRole.user_id == user_id, UserRole.role == "staff"
        ).delete(synchronize_session=False)
        self.db.query(StaffProfile).filter(StaffProfile.user_id == user_id).delete(
            synchronize_session=False
        )
        self.db.commit()
        logger.info(f"🗑️ Staff access removed for {user_id}")
        return {"success": True, "message": "Staff member removed"}

    # ------------------------------------------------------------------------
    # Invitations
    # ------------------------------------------------------------------------

    def invite_staff(self, data: StaffInviteRequest, admin: Profile) -> dict:
        if self.db.query(Profile).filter(Profile.email == data.email).first():
            raise HTTPException(
                status_code=400,
                detail='User with this email already exists. Use "Add Existing User" instead.',
            )

        now = datetime.utcnow()
        active = (
            self.db.query(StaffInvitation)
            .filter(
                StaffInvitation.email == data.email,
                StaffInvitation.used_at.is_(None),
                StaffInvitation.expires_at > now,
            )
            .first()
        )
        if active:
            raise HTTPException(
                status_code=400, detail="An active invitation already exists for this email"
            )

        if data.department_id:
            self._get_department(data.department_id)

        invitation = StaffInvitation(
            email=data.email,
            token=secrets.token_hex(32),
            invited_by=admin.id,
            staff_role=data.staff_role,
            department_id=data.department_id,
            job_title=data.job_title,
            expires_at=now + timedelta(days=INVITE_EXPIRY_DAYS),
        )
        self.db.add(invitation)
        self.db.commit()
        self.db.refresh(invitation)

        invite_url = f"{config.FRONTEND_URL.rstrip('/')}/auth/staff-signup?token={invitation.token}"
        logger.info(f"📧 Staff invitation created for {data.email}, expires {invitation.expires_at}")
        return {
            "success": True,
            "invite_url": invite_url,
            "invitation": {
                "id": invitation.id,
                "email": invitation.email,
                "expires_at": invitation.expires_at,
            },
        }

    def list_invitations(self) -> list[StaffInvitation]:
        return (
            self.db.query(StaffInvitation)
            .filter(StaffInvitation.used_at.is_(None))
            .order_by(StaffInvitation.created_at.desc())
            .all()
        )

    def accept_invite(self, token: str, user: Profile) -> dict:
        invitation = self.db.query(StaffInvitation).filter(StaffInvitation.token == token).first()
        if not invitation or invitation.used_at or invitation.expires_at <= datetime.utcnow():
            raise HTTPException(status_code=400, detail="Invalid or expired invitation")

        invitation.used_at = datetime.utcnow()
        if not user.email:
            user.email = invitation.email
        self._grant_staff(
            user.id, invitation.staff_role, invitation.department_id, invitation.job_title
        )
        self.db.commit()
        logger.info(f"✅ Invitation accepted by {user.id} ({invitation.staff_role})")
        return self.get_member(user.id)

    # ------------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------------

    def create_walk_in(self, data: WalkInRequest) -> dict:
        if data.email:
            existing = self.db.query(Profile).filter(Profile.email == data.email).first()
            if existing:
                existing.full_name = data.full_name
                if data.phone:
                    existing.phone = data.phone
                if data.address:
                    existing.address = data.address
                self.db.commit()
                return {
                    "success": True,
                    "user_id": existing.id,
                    "existing": True,
                    "message": "Existing customer updated",
                }

        email = data.email or f"walkin.{int(time.time() * 1000)}@racetechnik.local"
        profile = Profile(
            email=email, full_name=data.full_name, phone=data.phone, address=data.address
        )
        self.db.add(profile)
        self.db.commit()
        self.db.refresh(profile)
        logger.info(f"🚶 Walk-in customer created: {profile.id}")
        return {
            "success": True,
            "user_id": profile.id,
            "existing": False,
            "message": "Walk-in customer created",
        }

    def list_customers(self, search: Optional[str] = None) -> list[dict]:
        staff_ids = select(UserRole.user_id).where(UserRole.role.in_(sorted(STAFF_ROLES)))
        booking_stats = (
            self.db.query(
                Booking.user_id.label("user_id"),
                func.count(Booking.id).label("booking_count"),
                func.max(Booking.booking_date).label("last_booking_date"),
            )
            .group_by(Booking.user_id)
            .subquery()
        )

        query = (
            self.db.query(
                Profile,
                booking_stats.c.booking_count,
                booking_stats.c.last_booking_date,
            )
            .outerjoin(booking_stats, booking_stats.c.user_id == Profile.id)
            .filter(Profile.id.notin_(staff_ids))
        )
        if search:
            term = f"%{search.strip()}%"
            query = query.filter(
                Profile.full_name.ilike(term) | Profile.email.ilike(term) | Profile.phone.ilike(term)
            )

        customers = []
        for profile, count, last_date in query.order_by(Profile.created_at.desc()).all():
            if is_admin(self.db, profile):
                continue
            customers.append(
                {
                    "id": profile.id,
                    "email": profile.email,
                    "full_name": profile.full_name,
                    "phone": profile.phone,
                    "created_at": profile.created_at,
                    "booking_count": count or 0,
                    "last_booking_date": last_date,
                }
            )
        return customers

    def get_dashboard(self, today: Optional[date] = None) -> dict:
        today = today or date.today()
        month_start = datetime(today.year, today.month, 1)

        bookings = self.db.query(Booking)
        revenue = (
            self.db.query(func.coalesce(func.sum(Booking.payment_amount), 0))
            .filter(Booking.payment_status == "paid", Booking.payment_date >= month_start)
            .scalar()
        )

        return {
            "todays_bookings": bookings.filter(
                Booking.booking_date == today, Booking.status != "cancelled"
            ).count(),
            "active_jobs": bookings.filter(Booking.status == "in_progress").count(),
            "pending_bookings": bookings.filter(Booking.status == "pending").count(),
            "monthly_revenue": round(float(revenue or 0), 2),
            "low_stock_items": len(get_low_stock_items(self.db)),
            "new_leads": self.db.query(Lead).filter(Lead.status == "new").count(),
        }
