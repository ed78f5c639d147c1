"""Profile service - Read and update the current user's account"""

import logging

from sqlalchemy.orm import Session

from ...auth import get_user_roles, is_admin, is_staff
from ...models import Profile
from .schemas import MeResponse, ProfileResponse, ProfileUpdate, StaffProfileSummary

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, db: Session):
        self.db = db

    def get_me(self, user: Profile) -> MeResponse:
        staff_profile = user.staff_profile
        return MeResponse(
            profile=ProfileResponse.model_validate(user),
            roles=sorted(get_user_roles(self.db, user.id)),
            is_staff=is_staff(self.db, user),
            is_admin=is_admin(self.db, user),
            staff_profile=StaffProfileSummary.model_validate(staff_profile) if staff_profile else None,
        )

    def update_me(self, user: Profile, data: ProfileUpdate) -> Profile:
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(user, key, value)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"✅ Profile updated for user {user.id}")
        return user
