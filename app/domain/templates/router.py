"""Process templates router - Staff management of job-stage templates"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_staff
from ...database import get_db
from ...models import Profile
from .schemas import (
    TemplateCreate,
    TemplateResponse,
    TemplateStageCreate,
    TemplateStageUpdate,
    TemplateUpdate,
)
from .service import TemplateService

router = APIRouter(prefix="/process-templates", tags=["Process Templates"])


def get_template_service(db: Session = Depends(get_db)) -> TemplateService:
    """Dependency injection for TemplateService"""
    return TemplateService(db)


@router.get("", response_model=list[TemplateResponse])
async def list_templates(
    service_id: Optional[str] = Query(None),
    _staff: Profile = Depends(require_staff),
    service: TemplateService = Depends(get_template_service),
):
    return service.list_templates(service_id)


@router.post("", response_model=TemplateResponse, status_code=201)
async def create_template(
    data: TemplateCreate,
    staff: Profile = Depends(require_staff),
    service: TemplateService = Depends(get_template_service),
):
    return service.create_template(data, staff)


@router.get("/{template_id}", response_model=TemplateResponse)
async def get_template(
    template_id: str,
    _staff: Profile = Depends(require_staff),
    service: TemplateService = Depends(get_template_service),
):
    return service.get_template(template_id)


@router.patch("/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: str,
    data: TemplateUpdate,
    _staff: Profile = Depends(require_staff),
    service: TemplateService = Depends(get_template_service),
):
    """Setting is_default clears the flag on every other template"""
    return service.update_template(template_id, data)


@router.delete("/{template_id}")
async def delete_template(
    template_id: str,
    _staff: Profile = Depends(require_staff),
    service: TemplateService = Depends(get_template_service),
):
    return service.delete_template(template_id)


# ============================================================================
# STAGES
# ============================================================================


@router.post("/{template_id}/stages", response_model=TemplateResponse, status_code=201)
async def add_stage(
    template_id: str,
    data: TemplateStageCreate,
    _staff: Profile = Depends(require_staff),
    service: TemplateService = Depends(get_template_service),
):
    return service.add_stage(template_id, data)


@router.patch("/{template_id}/stages/{stage_id}", response_model=TemplateResponse)
async def update_stage(
    template_id: str,
    stage_id: str,
    data: TemplateStageUpdate,
    _staff: Profile = Depends(require_staff),
    service: TemplateService = Depends(get_template_service),
):
    return service.update_stage(template_id, stage_id, data)


@router.delete("/{template_id}/stages/{stage_id}", response_model=TemplateResponse)
async def delete_stage(
    template_id: str,
    stage_id: str,
    _staff: Profile = Depends(require_staff),
    service: TemplateService = Depends(get_template_service),
):
    return service.delete_stage(template_id, stage_id)
