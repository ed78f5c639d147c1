"""Bookings router - Customer bookings, staff job management and job tracking"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_staff
from ...database import get_db
from ...models import Profile
from .schemas import (
    AuditLogResponse,
    BookingCreate,
    BookingResponse,
    BookingStatusUpdate,
    BookingUpdate,
    JobTrackingResponse,
    StageAssignRequest,
    StageCompleteRequest,
    WorkQueueItem,
)
from .service import BookingsService, to_booking_response

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_bookings_service(db: Session = Depends(get_db)) -> BookingsService:
    """Dependency injection for BookingsService"""
    return BookingsService(db)


# ============================================================================
# CUSTOMER
# ============================================================================


@router.get("", response_model=list[BookingResponse])
async def list_my_bookings(
    current_user: Profile = Depends(get_current_user),
    service: BookingsService = Depends(get_bookings_service),
):
    return [to_booking_response(b) for b in service.list_my_bookings(current_user)]


@router.post("", response_model=BookingResponse, status_code=201)
async def create_booking(
    data: BookingCreate,
    current_user: Profile = Depends(get_current_user),
    service: BookingsService = Depends(get_bookings_service),
):
    booking = await service.create_booking(data, current_user)
    return to_booking_response(booking)


# ============================================================================
# STAFF
# ============================================================================


@router.get("/all", response_model=list[BookingResponse])
async def list_all_bookings(
    status: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    _staff: Profile = Depends(require_staff),
    service: BookingsService = Depends(get_bookings_service),
):
    return [
        to_booking_response(b) for b in service.list_all_bookings(status, date_from, date_to)
    ]


@router.get("/work-queue", response_model=list[WorkQueueItem])
async def get_work_queue(
    filter: str = Query("all"),
    staff: Profile = Depends(require_staff),
    service: BookingsService = Depends(get_bookings_service),
):
    """Next stage per active job: all, unassigned or mine"""
    return service.get_work_queue(filter, staff)


# ============================================================================
# SINGLE BOOKING
# ============================================================================


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    current_user: Profile = Depends(get_current_user),
    service: BookingsService = Depends(get_bookings_service),
):
    return to_booking_response(service.get_booking_for_user(booking_id, current_user))


@router.get("/{booking_id}/tracking", response_model=JobTrackingResponse)
async def get_job_tracking(
    booking_id: str,
    current_user: Profile = Depends(get_current_user),
    service: BookingsService = Depends(get_bookings_service),
):
    return service.get_job_tracking(booking_id, current_user)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str,
    current_user: Profile = Depends(get_current_user),
    service: BookingsService = Depends(get_bookings_service),
):
    return to_booking_response(service.cancel_booking(booking_id, current_user))


@router.patch("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: str,
    data: BookingStatusUpdate,
    staff: Profile = Depends(require_staff),
    service: BookingsService = Depends(get_bookings_service),
):
    booking = await service.update_status(booking_id, data, staff)
    return to_booking_response(booking)


@router.patch("/{booking_id}", response_model=BookingResponse)
async def update_booking(
    booking_id: str,
    data: BookingUpdate,
    staff: Profile = Depends(require_staff),
    service: BookingsService = Depends(get_bookings_service),
):
    """Priority, estimated completion and notes"""
    booking = await service.update_details(booking_id, data, staff)
    return to_booking_response(booking)


@router.get("/{booking_id}/audit", response_model=list[AuditLogResponse])
async def get_booking_audit(
    booking_id: str,
    _staff: Profile = Depends(require_staff),
    service: BookingsService = Depends(get_bookings_service),
):
    return service.get_audit_log(booking_id)


# ============================================================================
# STAGES
# ============================================================================


@router.post("/{booking_id}/stages/{stage_id}/start", response_model=BookingResponse)
async def start_stage(
    booking_id: str,
    stage_id: str,
    staff: Profile = Depends(require_staff),
    service: BookingsService = Depends(get_bookings_service),
):
    booking = await service.start_stage(booking_id, stage_id, staff)
    return to_booking_response(booking)


@router.post("/{booking_id}/stages/{stage_id}/complete", response_model=BookingResponse)
async def complete_stage(
    booking_id: str,
    stage_id: str,
    data: Optional[StageCompleteRequest] = None,
    staff: Profile = Depends(require_staff),
    service: BookingsService = Depends(get_bookings_service),
):
    notes = data.notes if data else None
    booking = await service.complete_stage(booking_id, stage_id, notes, staff)
    return to_booking_response(booking)


@router.patch("/{booking_id}/stages/{stage_id}/assign", response_model=BookingResponse)
async def assign_stage(
    booking_id: str,
    stage_id: str,
    data: StageAssignRequest,
    staff: Profile = Depends(require_staff),
    service: BookingsService = Depends(get_bookings_service),
):
    return to_booking_response(service.assign_stage(booking_id, stage_id, data.assigned_to, staff))
