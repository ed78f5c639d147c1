"""Staff router - Departments, team, invitations, customers and dashboard"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin, require_staff
from ...database import get_db
from ...models import Profile
from .schemas import (
    AcceptInviteRequest,
    CustomerSummary,
    DashboardStats,
    DepartmentCreate,
    DepartmentResponse,
    DepartmentUpdate,
    InvitationResponse,
    StaffAddRequest,
    StaffInviteRequest,
    StaffMemberResponse,
    StaffProfileUpdate,
    WalkInRequest,
)
from .service import StaffService

router = APIRouter(prefix="/staff", tags=["Staff"])


def get_staff_service(db: Session = Depends(get_db)) -> StaffService:
    """Dependency injection for StaffService"""
    return StaffService(db)


# ============================================================================
# DASHBOARD & CUSTOMERS
# ============================================================================


@router.get("/dashboard", response_model=DashboardStats)
async def get_dashboard(
    _staff: Profile = Depends(require_staff),
    service: StaffService = Depends(get_staff_service),
):
    return service.get_dashboard()


@router.get("/customers", response_model=list[CustomerSummary])
async def list_customers(
    search: Optional[str] = Query(None),
    _staff: Profile = Depends(require_staff),
    service: StaffService = Depends(get_staff_service),
):
    return service.list_customers(search)


@router.post("/walk-in", status_code=201)
async def create_walk_in(
    data: WalkInRequest,
    _staff: Profile = Depends(require_staff),
    service: StaffService = Depends(get_staff_service),
):
    """Create (or update by email) a customer who has no account"""
    return service.create_walk_in(data)


# ============================================================================
# DEPARTMENTS
# ============================================================================


@router.get("/departments", response_model=list[DepartmentResponse])
async def list_departments(
    _staff: Profile = Depends(require_staff),
    service: StaffService = Depends(get_staff_service),
):
    return service.list_departments()


@router.post("/departments", response_model=DepartmentResponse, status_code=201)
async def create_department(
    data: DepartmentCreate,
    _admin: Profile = Depends(require_admin),
    service: StaffService = Depends(get_staff_service),
):
    return service.create_department(data)


@router.patch("/departments/{department_id}", response_model=DepartmentResponse)
async def update_department(
    department_id: str,
    data: DepartmentUpdate,
    _admin: Profile = Depends(require_admin),
    service: StaffService = Depends(get_staff_service),
):
    return service.update_department(department_id, data)


@router.delete("/departments/{department_id}")
async def delete_department(
    department_id: str,
    _admin: Profile = Depends(require_admin),
    service: StaffService = Depends(get_staff_service),
):
    return service.delete_department(department_id)


# ============================================================================
# INVITATIONS
# ============================================================================


@router.post("/invitations", status_code=201)
async def invite_staff(
    data: StaffInviteRequest,
    admin: Profile = Depends(require_admin),
    service: StaffService = Depends(get_staff_service),
):
    return service.invite_staff(data, admin)


@router.get("/invitations", response_model=list[InvitationResponse])
async def list_invitations(
    _admin: Profile = Depends(require_admin),
    service: StaffService = Depends(get_staff_service),
):
    return service.list_invitations()


@router.post("/invitations/accept", response_model=StaffMemberResponse)
async def accept_invitation(
    data: AcceptInviteRequest,
    current_user: Profile = Depends(get_current_user),
    service: StaffService = Depends(get_staff_service),
):
    return service.accept_invite(data.token, current_user)


# ============================================================================
# TEAM MEMBERS
# ============================================================================


@router.get("/members", response_model=list[StaffMemberResponse])
async def list_members(
    _staff: Profile = Depends(require_staff),
    service: StaffService = Depends(get_staff_service),
):
    return service.list_members()


@router.post("/members", response_model=StaffMemberResponse, status_code=201)
async def add_staff_member(
    data: StaffAddRequest,
    _admin: Profile = Depends(require_admin),
    service: StaffService = Depends(get_staff_service),
):
    """Promote an existing account to staff"""
    return service.add_staff(data)


@router.get("/members/{user_id}", response_model=StaffMemberResponse)
async def get_staff_member(
    user_id: str,
    _staff: Profile = Depends(require_staff),
    service: StaffService = Depends(get_staff_service),
):
    return service.get_member(user_id)


@router.patch("/members/{user_id}", response_model=StaffMemberResponse)
async def update_staff_member(
    user_id: str,
    data: StaffProfileUpdate,
    _admin: Profile = Depends(require_admin),
    service: StaffService = Depends(get_staff_service),
):
    return service.update_member(user_id, data)


@router.delete("/members/{user_id}")
async def remove_staff_member(
    user_id: str,
    _admin: Profile = Depends(require_admin),
    service: StaffService = Depends(get_staff_service),
):
    return service.remove_staff(user_id)
