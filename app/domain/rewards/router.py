"""Rewards router - Loyalty, promo codes, referrals and reviews"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_staff
from ...database import get_db
from ...models import Profile
from .schemas import (
    LoyaltyResponse,
    LoyaltyTransactionResponse,
    PromoCodeCreate,
    PromoCodeResponse,
    PromoCodeUpdate,
    RedeemRequest,
    RedeemResponse,
    ReferralCreate,
    ReferralListResponse,
    ReferralResponse,
    ReviewCreate,
    ReviewModeration,
    ReviewResponse,
)
from .service import RewardsService

router = APIRouter(prefix="/rewards", tags=["Rewards"])


def get_rewards_service(db: Session = Depends(get_db)) -> RewardsService:
    """Dependency injection for RewardsService"""
    return RewardsService(db)


# ============================================================================
# LOYALTY
# ============================================================================


@router.get("/loyalty", response_model=LoyaltyResponse)
async def get_loyalty(
    current_user: Profile = Depends(get_current_user),
    service: RewardsService = Depends(get_rewards_service),
):
    return service.get_loyalty(current_user)


@router.get("/loyalty/transactions", response_model=list[LoyaltyTransactionResponse])
async def list_loyalty_transactions(
    current_user: Profile = Depends(get_current_user),
    service: RewardsService = Depends(get_rewards_service),
):
    return service.list_transactions(current_user)


# ============================================================================
# PROMO CODES
# ============================================================================


@router.post("/promo-codes/redeem", response_model=RedeemResponse)
async def redeem_promo_code(
    data: RedeemRequest,
    current_user: Profile = Depends(get_current_user),
    service: RewardsService = Depends(get_rewards_service),
):
    return service.redeem_promo_code(data.code, current_user)


@router.get("/promo-codes", response_model=list[PromoCodeResponse])
async def list_promo_codes(
    _staff: Profile = Depends(require_staff),
    service: RewardsService = Depends(get_rewards_service),
):
    return service.list_promo_codes()


@router.post("/promo-codes", response_model=PromoCodeResponse, status_code=201)
async def create_promo_code(
    data: PromoCodeCreate,
    staff: Profile = Depends(require_staff),
    service: RewardsService = Depends(get_rewards_service),
):
    return service.create_promo_code(data, staff)


@router.patch("/promo-codes/{promo_id}", response_model=PromoCodeResponse)
async def update_promo_code(
    promo_id: str,
    data: PromoCodeUpdate,
    _staff: Profile = Depends(require_staff),
    service: RewardsService = Depends(get_rewards_service),
):
    return service.update_promo_code(promo_id, data)


@router.delete("/promo-codes/{promo_id}")
async def delete_promo_code(
    promo_id: str,
    _staff: Profile = Depends(require_staff),
    service: RewardsService = Depends(get_rewards_service),
):
    return service.delete_promo_code(promo_id)


# ============================================================================
# REFERRALS
# ============================================================================


@router.get("/referrals", response_model=ReferralListResponse)
async def list_referrals(
    current_user: Profile = Depends(get_current_user),
    service: RewardsService = Depends(get_rewards_service),
):
    return service.list_referrals(current_user)


@router.post("/referrals", response_model=ReferralResponse, status_code=201)
async def create_referral(
    data: ReferralCreate,
    current_user: Profile = Depends(get_current_user),
    service: RewardsService = Depends(get_rewards_service),
):
    return service.create_referral(data.email, current_user)


# ============================================================================
# REVIEWS
# ============================================================================


@router.get("/reviews", response_model=list[ReviewResponse])
async def list_public_reviews(
    limit: int = Query(50, ge=1, le=200),
    service: RewardsService = Depends(get_rewards_service),
):
    """Public reviews, featured first"""
    return service.list_public_reviews(limit)


@router.get("/reviews/mine", response_model=list[ReviewResponse])
async def list_my_reviews(
    current_user: Profile = Depends(get_current_user),
    service: RewardsService = Depends(get_rewards_service),
):
    return service.list_my_reviews(current_user)


@router.post("/reviews", response_model=ReviewResponse, status_code=201)
async def create_review(
    data: ReviewCreate,
    current_user: Profile = Depends(get_current_user),
    service: RewardsService = Depends(get_rewards_service),
):
    return service.create_review(data, current_user)


@router.patch("/reviews/{review_id}", response_model=ReviewResponse)
async def moderate_review(
    review_id: str,
    data: ReviewModeration,
    _staff: Profile = Depends(require_staff),
    service: RewardsService = Depends(get_rewards_service),
):
    return service.moderate_review(review_id, data)
