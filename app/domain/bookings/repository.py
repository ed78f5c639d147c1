"""Booking repository - Database operations for bookings, stages and the audit log"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ...models import (
    Booking,
    BookingAuditLog,
    BookingService,
    BookingStage,
    ProcessTemplate,
)
from .stages import ACTIVE_STATUSES


def _with_details(query):
    return query.options(
        selectinload(Booking.booking_services).selectinload(BookingService.service),
        selectinload(Booking.stages),
    )


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_booking(db: Session, booking_id: str) -> Optional[Booking]:
        return _with_details(db.query(Booking)).filter(Booking.id == booking_id).first()

    @staticmethod
    def list_for_user(db: Session, user_id: str) -> list[Booking]:
        return (
            _with_details(db.query(Booking))
            .filter(Booking.user_id == user_id)
            .order_by(Booking.booking_date.desc(), Booking.created_at.desc())
            .all()
        )

    @staticmethod
    def list_all(
        db: Session,
        status: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Booking]:
        query = _with_details(db.query(Booking))
        if status:
            query = query.filter(Booking.status == status)
        if date_from:
            query = query.filter(Booking.booking_date >= date_from)
        if date_to:
            query = query.filter(Booking.booking_date <= date_to)
        return query.order_by(Booking.booking_date.asc(), Booking.booking_time.asc()).all()

    @staticmethod
    def list_active_with_stages(db: Session) -> list[Booking]:
        return (
            db.query(Booking)
            .options(selectinload(Booking.stages), selectinload(Booking.service))
            .filter(Booking.status.in_(ACTIVE_STATUSES))
            .all()
        )

    @staticmethod
    def get_stage(db: Session, booking_id: str, stage_id: str) -> Optional[BookingStage]:
        return (
            db.query(BookingStage)
            .filter(BookingStage.id == stage_id, BookingStage.booking_id == booking_id)
            .first()
        )

    @staticmethod
    def find_template(db: Session, service_id: Optional[str]) -> Optional[ProcessTemplate]:
        """Active template for the service, falling back to the default template"""
        if service_id:
            template = (
                db.query(ProcessTemplate)
                .filter(
                    ProcessTemplate.service_id == service_id,
                    ProcessTemplate.is_active.is_(True),
                )
                .first()
            )
            if template and template.stages:
                return template

        template = (
            db.query(ProcessTemplate)
            .filter(ProcessTemplate.is_default.is_(True), ProcessTemplate.is_active.is_(True))
            .first()
        )
        if template and template.stages:
            return template
        return None

    @staticmethod
    def log_audit(
        db: Session,
        booking_id: str,
        action: str,
        changed_by: Optional[str],
        old_values: Optional[dict] = None,
        new_values: Optional[dict] = None,
        notes: Optional[str] = None,
        stage_id: Optional[str] = None,
    ) -> BookingAuditLog:
        """Add an audit entry to the session; committed with the change it describes"""
        entry = BookingAuditLog(
            booking_id=booking_id,
            stage_id=stage_id,
            action=action,
            changed_by=changed_by,
            old_values=old_values,
            new_values=new_values,
            notes=notes,
        )
        db.add(entry)
        return entry

    @staticmethod
    def list_audit(db: Session, booking_id: str) -> list[BookingAuditLog]:
        return (
            db.query(BookingAuditLog)
            .filter(BookingAuditLog.booking_id == booking_id)
            .order_by(BookingAuditLog.created_at.desc())
            .all()
        )
