"""Catalog repository - Database operations for services and booking counts"""

from collections import Counter
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ...models import Booking, Service


class ServiceRepository:
    """Repository for service catalog operations"""

    @staticmethod
    def list_services(db: Session, include_inactive: bool = False) -> list[Service]:
        query = db.query(Service)
        if not include_inactive:
            query = query.filter(Service.is_active.is_(True))
        return query.order_by(Service.category, Service.title).all()

    @staticmethod
    def get_service(db: Session, service_id: str) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_services(db: Session, service_ids: list[str]) -> list[Service]:
        if not service_ids:
            return []
        return db.query(Service).filter(Service.id.in_(service_ids)).all()

    @staticmethod
    def create_service(db: Session, **data) -> Service:
        service = Service(**data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def update_service(db: Session, service: Service, **updates) -> Service:
        for key, value in updates.items():
            if value is not None and hasattr(service, key):
                setattr(service, key, value)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def count_bookings_by_service_and_date(
        db: Session, start: date, end: date
    ) -> Counter:
        """
        Count non-cancelled bookings per (service_id, booking_date) in [start, end].
        A booking counts once for each distinct service it carries.
        """
        bookings = (
            db.query(Booking)
            .options(selectinload(Booking.booking_services))
            .filter(
                Booking.booking_date >= start,
                Booking.booking_date <= end,
                Booking.status != "cancelled",
            )
            .all()
        )

        counts: Counter = Counter()
        for booking in bookings:
            service_ids = {bs.service_id for bs in booking.booking_services}
            if booking.service_id:
                service_ids.add(booking.service_id)
            for service_id in service_ids:
                counts[(service_id, booking.booking_date)] += 1
        return counts
