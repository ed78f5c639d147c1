"""Garage router - FastAPI endpoints for customer vehicles"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_staff
from ...database import get_db
from ...models import Profile
from .schemas import VehicleCreate, VehicleResponse, VehicleUpdate
from .service import VehicleService

router = APIRouter(prefix="/vehicles", tags=["Garage"])


def get_vehicle_service(db: Session = Depends(get_db)) -> VehicleService:
    """Dependency injection for VehicleService"""
    return VehicleService(db)


@router.get("", response_model=list[VehicleResponse])
async def list_my_vehicles(
    current_user: Profile = Depends(get_current_user),
    service: VehicleService = Depends(get_vehicle_service),
):
    return service.list_vehicles(current_user.id)


@router.post("", response_model=VehicleResponse, status_code=201)
async def add_vehicle(
    data: VehicleCreate,
    current_user: Profile = Depends(get_current_user),
    service: VehicleService = Depends(get_vehicle_service),
):
    return service.add_vehicle(data, current_user)


@router.get("/customers/{user_id}", response_model=list[VehicleResponse])
async def list_customer_vehicles(
    user_id: str,
    _staff: Profile = Depends(require_staff),
    service: VehicleService = Depends(get_vehicle_service),
):
    """Staff view of a customer's garage"""
    return service.list_vehicles(user_id)


@router.get("/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(
    vehicle_id: str,
    current_user: Profile = Depends(get_current_user),
    service: VehicleService = Depends(get_vehicle_service),
):
    return service.get_vehicle(vehicle_id, current_user)


@router.patch("/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_id: str,
    data: VehicleUpdate,
    current_user: Profile = Depends(get_current_user),
    service: VehicleService = Depends(get_vehicle_service),
):
    return service.update_vehicle(vehicle_id, data, current_user)


@router.delete("/{vehicle_id}")
async def delete_vehicle(
    vehicle_id: str,
    current_user: Profile = Depends(get_current_user),
    service: VehicleService = Depends(get_vehicle_service),
):
    return service.delete_vehicle(vehicle_id, current_user)
