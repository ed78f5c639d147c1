"""Catalog service - Service CRUD and availability"""

import logging
from datetime import date, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Service
from . import availability
from .repository import ServiceRepository
from .schemas import ServiceCreate, ServiceUpdate

logger = logging.getLogger(__name__)


class CatalogService:
    """Service layer for the service catalog"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ServiceRepository()

    def list_services(self, include_inactive: bool = False) -> list[Service]:
        return self.repo.list_services(self.db, include_inactive)

    def get_service(self, service_id: str) -> Service:
        service = self.repo.get_service(self.db, service_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")
        return service

    def create_service(self, data: ServiceCreate) -> Service:
        service = self.repo.create_service(self.db, **data.model_dump())
        logger.info(f"✅ Service created: {service.title} ({service.category})")
        return service

    def update_service(self, service_id: str, data: ServiceUpdate) -> Service:
        service = self.get_service(service_id)
        return self.repo.update_service(self.db, service, **data.model_dump(exclude_unset=True))

    def deactivate_service(self, service_id: str) -> Service:
        service = self.get_service(service_id)
        service.is_active = False
        self.db.commit()
        self.db.refresh(service)
        logger.info(f"⏸️ Service deactivated: {service.title}")
        return service

    def get_availability(
        self,
        service_ids: list[str],
        start: Optional[date] = None,
        days: int = availability.AVAILABILITY_WINDOW_DAYS,
    ) -> list[dict]:
        start = start or date.today()
        services = self.repo.get_services(self.db, service_ids)
        if len(services) != len(set(service_ids)):
            raise HTTPException(status_code=404, detail="Service not found")

        end = start + timedelta(days=days - 1)
        booked = self.repo.count_bookings_by_service_and_date(self.db, start, end)
        return [
            availability.day_availability(day, services, booked)
            for day in availability.window(start, days)
        ]

    def check_capacity(self, services: list[Service], booking_date: date) -> dict:
        """Availability of a single date, used when placing a booking"""
        booked = self.repo.count_bookings_by_service_and_date(self.db, booking_date, booking_date)
        return availability.day_availability(booking_date, services, booked)
