import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.orm import Session

from .config import ADMIN_EMAILS, JWT_ALGORITHM, JWT_AUDIENCE, SUPABASE_JWT_SECRET
from .database import get_db
from .models import Profile, UserRole

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

STAFF_ROLES = {"staff", "admin"}


def verify_access_token(token: str) -> dict:
    """
    Verify an access token issued by the hosted auth provider.
    Tokens are HS256 JWTs signed with the project's JWT secret.
    """
    if not SUPABASE_JWT_SECRET:
        logger.error("❌ SUPABASE_JWT_SECRET not configured")
        raise HTTPException(status_code=500, detail="Authentication not configured")

    try:
        payload = jwt.decode(
            token,
            SUPABASE_JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            audience=JWT_AUDIENCE,
        )
    except ExpiredSignatureError as e:
        logger.warning("⚠️ Expired access token")
        raise HTTPException(status_code=401, detail="Token expired") from e
    except JWTError as e:
        logger.warning(f"⚠️ Invalid access token: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid token") from e

    if not payload.get("sub"):
        logger.warning("⚠️ Access token missing subject")
        raise HTTPException(status_code=401, detail="Invalid token")

    return payload


def get_or_create_profile(db: Session, claims: dict) -> Profile:
    """Find the profile for a token subject, creating it on first sight"""
    user_id = claims["sub"]
    email = (claims.get("email") or "").strip().lower() or None

    profile = db.query(Profile).filter(Profile.id == user_id).first()
    if profile:
        if email and not profile.email:
            profile.email = email
            db.commit()
        return profile

    if email and db.query(Profile).filter(Profile.email == email).first():
        # Email already belongs to a walk-in profile; keep the new account detached from it
        logger.warning(f"⚠️ Email {email} already on another profile, creating {user_id} without it")
        email = None

    metadata = claims.get("user_metadata") or {}
    profile = Profile(id=user_id, email=email, full_name=metadata.get("full_name"))
    db.add(profile)
    db.commit()
    db.refresh(profile)
    logger.info(f"✅ Created profile for new user {user_id}")
    return profile


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Profile:
    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    claims = verify_access_token(credentials.credentials)
    return get_or_create_profile(db, claims)


def get_user_roles(db: Session, user_id: str) -> set[str]:
    rows = db.query(UserRole.role).filter(UserRole.user_id == user_id).all()
    roles = {r[0] for r in rows}
    return roles or {"client"}


def has_role(db: Session, user_id: str, role: str) -> bool:
    return role in get_user_roles(db, user_id)


def is_admin(db: Session, user: Profile) -> bool:
    if user.email and user.email.lower() in ADMIN_EMAILS:
        return True
    return has_role(db, user.id, "admin")


def is_staff(db: Session, user: Profile) -> bool:
    if is_admin(db, user):
        return True
    return bool(get_user_roles(db, user.id) & STAFF_ROLES)


async def require_staff(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Profile:
    if not is_staff(db, current_user):
        logger.warning(f"🚫 Staff access denied for user {current_user.id}")
        raise HTTPException(status_code=403, detail="Staff access required")
    return current_user


async def require_admin(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Profile:
    if not is_admin(db, current_user):
        logger.warning(f"🚫 Admin access denied for user {current_user.id}")
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user
