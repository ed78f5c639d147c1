"""Leads router - Public enquiry intake and the staff sales pipeline"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin, require_staff
from ...database import get_db
from ...models import Profile
from ...rate_limiter import create_rate_limiter
from .schemas import (
    ActivityCreate,
    ActivityResponse,
    ConvertRequest,
    DepositCreate,
    LeadCreate,
    LeadDetailResponse,
    LeadIntake,
    LeadMetrics,
    LeadResponse,
    LeadStatusUpdate,
    LeadUpdate,
    PipelineColumn,
)
from .service import LeadService

router = APIRouter(prefix="/leads", tags=["Leads"])

rate_limit_intake = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="lead_intake")


def get_lead_service(db: Session = Depends(get_db)) -> LeadService:
    """Dependency injection for LeadService"""
    return LeadService(db)


# ============================================================================
# PUBLIC
# ============================================================================


@router.post("/intake", status_code=201)
async def submit_enquiry(
    data: LeadIntake,
    _: None = Depends(rate_limit_intake),
    service: LeadService = Depends(get_lead_service),
):
    """Website enquiry form"""
    lead = await service.submit_website_lead(data)
    return {"success": True, "lead_id": lead.id}


# ============================================================================
# PIPELINE (STAFF)
# ============================================================================


@router.get("", response_model=list[LeadResponse])
async def list_leads(
    status: Optional[str] = Query(None),
    assigned_to: Optional[str] = Query(None),
    source: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    _staff: Profile = Depends(require_staff),
    service: LeadService = Depends(get_lead_service),
):
    return service.list_leads(status, assigned_to, source, search)


@router.get("/pipeline", response_model=list[PipelineColumn])
async def get_pipeline(
    _staff: Profile = Depends(require_staff),
    service: LeadService = Depends(get_lead_service),
):
    return service.get_pipeline()


@router.get("/metrics", response_model=LeadMetrics)
async def get_metrics(
    _staff: Profile = Depends(require_staff),
    service: LeadService = Depends(get_lead_service),
):
    return service.get_metrics()


@router.post("", response_model=LeadResponse, status_code=201)
async def create_lead(
    data: LeadCreate,
    staff: Profile = Depends(require_staff),
    service: LeadService = Depends(get_lead_service),
):
    return service.create_lead(data, staff)


@router.get("/{lead_id}", response_model=LeadDetailResponse)
async def get_lead(
    lead_id: str,
    _staff: Profile = Depends(require_staff),
    service: LeadService = Depends(get_lead_service),
):
    return service.get_lead_detail(lead_id)


@router.patch("/{lead_id}", response_model=LeadResponse)
async def update_lead(
    lead_id: str,
    data: LeadUpdate,
    _staff: Profile = Depends(require_staff),
    service: LeadService = Depends(get_lead_service),
):
    return service.update_lead(lead_id, data)


@router.patch("/{lead_id}/status", response_model=LeadResponse)
async def change_lead_status(
    lead_id: str,
    data: LeadStatusUpdate,
    staff: Profile = Depends(require_staff),
    service: LeadService = Depends(get_lead_service),
):
    return service.change_status(lead_id, data.status, staff)


@router.get("/{lead_id}/activities", response_model=list[ActivityResponse])
async def list_activities(
    lead_id: str,
    _staff: Profile = Depends(require_staff),
    service: LeadService = Depends(get_lead_service),
):
    return service.get_lead_detail(lead_id).activities


@router.post("/{lead_id}/activities", response_model=LeadResponse, status_code=201)
async def log_activity(
    lead_id: str,
    data: ActivityCreate,
    staff: Profile = Depends(require_staff),
    service: LeadService = Depends(get_lead_service),
):
    return service.log_activity(lead_id, data, staff)


@router.post("/{lead_id}/deposit", response_model=LeadResponse)
async def record_deposit(
    lead_id: str,
    data: DepositCreate,
    staff: Profile = Depends(require_staff),
    service: LeadService = Depends(get_lead_service),
):
    return service.record_deposit(lead_id, data.amount, staff)


@router.post("/{lead_id}/convert", response_model=LeadResponse)
async def convert_lead(
    lead_id: str,
    data: ConvertRequest,
    staff: Profile = Depends(require_staff),
    service: LeadService = Depends(get_lead_service),
):
    return service.convert_to_booking(lead_id, data.booking_id, staff)


@router.delete("/{lead_id}")
async def delete_lead(
    lead_id: str,
    _admin: Profile = Depends(require_admin),
    service: LeadService = Depends(get_lead_service),
):
    return service.delete_lead(lead_id)
