"""Profile router - /me endpoints"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Profile
from .schemas import MeResponse, ProfileResponse, ProfileUpdate
from .service import ProfileService

router = APIRouter(prefix="/me", tags=["Profile"])


def get_profile_service(db: Session = Depends(get_db)) -> ProfileService:
    return ProfileService(db)


@router.get("", response_model=MeResponse)
async def get_me(
    current_user: Profile = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    """Current user's profile, roles and staff details"""
    return service.get_me(current_user)


@router.patch("", response_model=ProfileResponse)
async def update_me(
    data: ProfileUpdate,
    current_user: Profile = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    return service.update_me(current_user, data)
