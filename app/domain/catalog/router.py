"""Catalog router - Public service listing, availability and staff service management"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_staff
from ...database import get_db
from ...models import Profile
from ...rate_limiter import create_rate_limiter
from .availability import TIME_SLOTS
from .schemas import AvailabilityResponse, ServiceCreate, ServiceResponse, ServiceUpdate
from .service import CatalogService

router = APIRouter(prefix="/services", tags=["Catalog"])

rate_limit_availability = create_rate_limiter(
    limit=120, window_seconds=60, key_prefix="availability"
)


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


# ============================================================================
# PUBLIC
# ============================================================================


@router.get("", response_model=list[ServiceResponse])
async def list_services(service: CatalogService = Depends(get_catalog_service)):
    """Active services, grouped by category"""
    return service.list_services()


@router.get("/availability", response_model=AvailabilityResponse)
async def get_availability(
    service_ids: list[str] = Query(default=[]),
    start: Optional[date] = Query(None),
    days: int = Query(90, ge=1, le=90),
    _: None = Depends(rate_limit_availability),
    service: CatalogService = Depends(get_catalog_service),
):
    """Per-day slot availability for the selected services"""
    return {
        "service_ids": service_ids,
        "time_slots": TIME_SLOTS,
        "days": service.get_availability(service_ids, start, days),
    }


@router.get("/{service_id}", response_model=ServiceResponse)
async def get_service(service_id: str, service: CatalogService = Depends(get_catalog_service)):
    return service.get_service(service_id)


# ============================================================================
# STAFF MANAGEMENT
# ============================================================================


@router.get("/manage/all", response_model=list[ServiceResponse])
async def list_all_services(
    _staff: Profile = Depends(require_staff),
    service: CatalogService = Depends(get_catalog_service),
):
    """All services including inactive ones"""
    return service.list_services(include_inactive=True)


@router.post("", response_model=ServiceResponse, status_code=201)
async def create_service(
    data: ServiceCreate,
    _staff: Profile = Depends(require_staff),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.create_service(data)


@router.patch("/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: str,
    data: ServiceUpdate,
    _staff: Profile = Depends(require_staff),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.update_service(service_id, data)


@router.delete("/{service_id}", response_model=ServiceResponse)
async def deactivate_service(
    service_id: str,
    _staff: Profile = Depends(require_staff),
    service: CatalogService = Depends(get_catalog_service),
):
    """Services are deactivated rather than deleted; bookings keep referencing them"""
    return service.deactivate_service(service_id)
