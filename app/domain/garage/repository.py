"""Garage repository - Database operations for vehicles"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Vehicle


class VehicleRepository:
    """Repository for vehicle database operations"""

    @staticmethod
    def list_for_user(db: Session, user_id: str) -> list[Vehicle]:
        return (
            db.query(Vehicle)
            .filter(Vehicle.user_id == user_id)
            .order_by(Vehicle.created_at.desc())
            .all()
        )

    @staticmethod
    def get_for_user(db: Session, vehicle_id: str, user_id: str) -> Optional[Vehicle]:
        return (
            db.query(Vehicle)
            .filter(Vehicle.id == vehicle_id, Vehicle.user_id == user_id)
            .first()
        )

    @staticmethod
    def create(db: Session, user_id: str, **data) -> Vehicle:
        vehicle = Vehicle(user_id=user_id, **data)
        db.add(vehicle)
        db.commit()
        db.refresh(vehicle)
        return vehicle

    @staticmethod
    def update(db: Session, vehicle: Vehicle, **updates) -> Vehicle:
        for key, value in updates.items():
            if value is not None and hasattr(vehicle, key):
                setattr(vehicle, key, value)
        db.commit()
        db.refresh(vehicle)
        return vehicle

    @staticmethod
    def delete(db: Session, vehicle: Vehicle) -> None:
        db.delete(vehicle)
        db.commit()
