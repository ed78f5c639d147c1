"""Garage service - Business logic for customer vehicles"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Booking, Profile, Vehicle
from .repository import VehicleRepository
from .schemas import VehicleCreate, VehicleUpdate

logger = logging.getLogger(__name__)


class VehicleService:
    """Service layer for vehicle operations"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = VehicleRepository()

    def list_vehicles(self, user_id: str) -> list[Vehicle]:
        return self.repo.list_for_user(self.db, user_id)

    def get_vehicle(self, vehicle_id: str, user: Profile) -> Vehicle:
        vehicle = self.repo.get_for_user(self.db, vehicle_id, user.id)
        if not vehicle:
            raise HTTPException(status_code=404, detail="Vehicle not found")
        return vehicle

    def add_vehicle(self, data: VehicleCreate, user: Profile) -> Vehicle:
        vehicle = self.repo.create(self.db, user.id, **data.model_dump())
        logger.info(f"✅ Vehicle {vehicle.id} added for user {user.id}")
        return vehicle

    def update_vehicle(self, vehicle_id: str, data: VehicleUpdate, user: Profile) -> Vehicle:
        vehicle = self.get_vehicle(vehicle_id, user)
        return self.repo.update(self.db, vehicle, **data.model_dump(exclude_unset=True))

    def delete_vehicle(self, vehicle_id: str, user: Profile) -> dict:
        vehicle = self.get_vehicle(vehicle_id, user)

        active = (
            self.db.query(Booking)
            .filter(
                Booking.vehicle_id == vehicle.id,
                Booking.status.in_(["pending", "confirmed", "in_progress"]),
            )
            .count()
        )
        if active:
            raise HTTPException(
                status_code=400, detail="Vehicle has active bookings and cannot be removed"
            )

        self.repo.delete(self.db, vehicle)
        logger.info(f"🗑️ Vehicle {vehicle_id} removed by user {user.id}")
        return {"message": "Vehicle deleted"}
