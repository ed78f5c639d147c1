"""Rewards domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email


class LoyaltyResponse(BaseModel):
    points: int
    lifetime_points: int
    tier: str
    next_tier: Optional[str] = None
    points_to_next_tier: int


class LoyaltyTransactionResponse(BaseModel):
    id: str
    points: int
    transaction_type: str
    description: Optional[str] = None
    booking_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PromoCodeCreate(BaseModel):
    code: str
    description: Optional[str] = None
    points_value: int = 0
    discount_percentage: Optional[float] = None
    discount_amount: Optional[float] = None
    max_uses: Optional[int] = None
    expires_at: Optional[datetime] = None
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v):
        v = v.strip().upper()
        if not v:
            raise ValueError("Code is required")
        return v

    @field_validator("points_value")
    @classmethod
    def validate_points(cls, v):
        if v < 0:
            raise ValueError("Points cannot be negative")
        return v

    @field_validator("discount_percentage")
    @classmethod
    def validate_percentage(cls, v):
        if v is not None and not 0 <= v <= 100:
            raise ValueError("Discount percentage must be between 0 and 100")
        return v


class PromoCodeUpdate(BaseModel):
    description: Optional[str] = None
    points_value: Optional[int] = None
    discount_percentage: Optional[float] = None
    discount_amount: Optional[float] = None
    max_uses: Optional[int] = None
    expires_at: Optional[datetime] = None
    is_active: Optional[bool] = None


class PromoCodeResponse(BaseModel):
    id: str
    code: str
    description: Optional[str] = None
    points_value: int
    discount_percentage: Optional[float] = None
    discount_amount: Optional[float] = None
    max_uses: Optional[int] = None
    current_uses: int
    expires_at: Optional[datetime] = None
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RedeemRequest(BaseModel):
    code: str


class RedeemResponse(BaseModel):
    success: bool
    points_awarded: int
    new_balance: int


class ReferralCreate(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v):
        return validate_email(v)


class ReferralResponse(BaseModel):
    id: str
    referred_email: str
    referral_code: str
    status: str
    reward_points: int
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReferralStats(BaseModel):
    total: int
    pending: int
    completed: int
    points_earned: int


class ReferralListResponse(BaseModel):
    referrals: list[ReferralResponse]
    stats: ReferralStats


class ReviewCreate(BaseModel):
    booking_id: str
    rating: int
    title: Optional[str] = None
    content: Optional[str] = None

    @field_validator("rating")
    @classmethod
    def validate_rating(cls, v):
        if not 1 <= v <= 5:
            raise ValueError("Rating must be between 1 and 5")
        return v


class ReviewModeration(BaseModel):
    is_public: Optional[bool] = None
    is_featured: Optional[bool] = None


class ReviewResponse(BaseModel):
    id: str
    user_id: str
    booking_id: str
    rating: int
    title: Optional[str] = None
    content: Optional[str] = None
    is_public: bool
    is_featured: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
