"""Rewards service - Loyalty balance, promo redemption, referrals and reviews"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Booking, Profile
from ...models_rewards import (
    LoyaltyPoints,
    LoyaltyTransaction,
    PromoCode,
    PromoCodeRedemption,
    Referral,
    Review,
)
from .schemas import PromoCodeCreate, PromoCodeUpdate, ReviewCreate, ReviewModeration
from .tiers import make_referral_code, next_tier, tier_for

logger = logging.getLogger(__name__)

REFERRAL_REWARD_POINTS = 500


class RewardsService:
    """Service layer for loyalty and rewards"""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------------
    # Loyalty
    # ------------------------------------------------------------------------

    def _get_points(self, user_id: str) -> Optional[LoyaltyPoints]:
        return self.db.query(LoyaltyPoints).filter(LoyaltyPoints.user_id == user_id).first()

    def get_loyalty(self, user: Profile) -> dict:
        record = self._get_points(user.id)
        points = record.points if record else 0
        lifetime = record.lifetime_points if record else 0
        upcoming, needed = next_tier(lifetime)
        return {
            "points": points,
            "lifetime_points": lifetime,
            "tier": record.tier if record else "bronze",
            "next_tier": upcoming,
            "points_to_next_tier": needed,
        }

    def list_transactions(self, user: Profile) -> list[LoyaltyTransaction]:
        return (
            self.db.query(LoyaltyTransaction)
            .filter(LoyaltyTransaction.user_id == user.id)
            .order_by(LoyaltyTransaction.created_at.desc())
            .all()
        )

    def award_points(
        self,
        user_id: str,
        points: int,
        description: str,
        booking_id: Optional[str] = None,
    ) -> LoyaltyPoints:
        """Add points and recalculate the tier; the caller commits"""
        record = self._get_points(user_id)
        if not record:
            record = LoyaltyPoints(user_id=user_id, points=0, lifetime_points=0, tier="bronze")
            self.db.add(record)

        record.points = (record.points or 0) + points
        record.lifetime_points = (record.lifetime_points or 0) + points
        record.tier = tier_for(record.lifetime_points)

        self.db.add(
            LoyaltyTransaction(
                user_id=user_id,
                points=points,
                transaction_type="earned",
                description=description,
                booking_id=booking_id,
            )
        )
        return record

    # ------------------------------------------------------------------------
    # Promo codes
    # ------------------------------------------------------------------------

    def list_promo_codes(self) -> list[PromoCode]:
        return self.db.query(PromoCode).order_by(PromoCode.created_at.desc()).all()

    def _get_promo(self, promo_id: str) -> PromoCode:
        promo = self.db.query(PromoCode).filter(PromoCode.id == promo_id).first()
        if not promo:
            raise HTTPException(status_code=404, detail="Promo code not found")
        return promo

    def create_promo_code(self, data: PromoCodeCreate, user: Profile) -> PromoCode:
        if self.db.query(PromoCode).filter(PromoCode.code == data.code).first():
            raise HTTPException(status_code=400, detail="Promo code already exists")
        promo = PromoCode(**data.model_dump(), created_by=user.id)
        self.db.add(promo)
        self.db.commit()
        self.db.refresh(promo)
        logger.info(f"🎟️ Promo code created: {promo.code}")
        return promo

    def update_promo_code(self, promo_id: str, data: PromoCodeUpdate) -> PromoCode:
        promo = self._get_promo(promo_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(promo, key, value)
        self.db.commit()
        self.db.refresh(promo)
        return promo

    def delete_promo_code(self, promo_id: str) -> dict:
        promo = self._get_promo(promo_id)
        if self.db.query(PromoCodeRedemption).filter(
            PromoCodeRedemption.promo_code_id == promo.id
        ).count():
            promo.is_active = False
            self.db.commit()
            return {"success": True, "message": "Promo code deactivated"}
        self.db.delete(promo)
        self.db.commit()
        return {"success": True, "message": "Promo code deleted"}

    def redeem_promo_code(self, code: str, user: Profile) -> dict:
        code = code.strip().upper()
        promo = self.db.query(PromoCode).filter(PromoCode.code == code).first()

        if not promo or not promo.is_active:
            raise HTTPException(status_code=400, detail="Invalid promo code")
        if promo.expires_at and promo.expires_at <= datetime.utcnow():
            raise HTTPException(status_code=400, detail="This promo code has expired")
        if promo.max_uses is not None and (promo.current_uses or 0) >= promo.max_uses:
            raise HTTPException(status_code=400, detail="This promo code has reached its usage limit")

        already = (
            self.db.query(PromoCodeRedemption)
            .filter(
                PromoCodeRedemption.promo_code_id == promo.id,
                PromoCodeRedemption.user_id == user.id,
            )
            .first()
        )
        if already:
            raise HTTPException(status_code=400, detail="You have already redeemed this code")

        points = promo.points_value or 0
        record = self.award_points(user.id, points, f"Promo code {promo.code}")
        promo.current_uses = (promo.current_uses or 0) + 1
        self.db.add(
            PromoCodeRedemption(promo_code_id=promo.id, user_id=user.id, points_awarded=points)
        )
        self.db.commit()

        logger.info(f"🎁 {user.id} redeemed {promo.code} for {points} points")
        return {"success": True, "points_awarded": points, "new_balance": record.points}

    # ------------------------------------------------------------------------
    # Referrals
    # ------------------------------------------------------------------------

    def list_referrals(self, user: Profile) -> dict:
        referrals = (
            self.db.query(Referral)
            .filter(Referral.referrer_id == user.id)
            .order_by(Referral.created_at.desc())
            .all()
        )
        completed = [r for r in referrals if r.status == "completed"]
        return {
            "referrals": referrals,
            "stats": {
                "total": len(referrals),
                "pending": sum(1 for r in referrals if r.status == "pending"),
                "completed": len(completed),
                "points_earned": sum(r.reward_points for r in completed),
            },
        }

    def create_referral(self, email: str, user: Profile) -> Referral:
        email = email.lower()
        if user.email and user.email.lower() == email:
            raise HTTPException(status_code=400, detail="You cannot refer yourself")

        exists = (
            self.db.query(Referral)
            .filter(Referral.referrer_id == user.id, Referral.referred_email == email)
            .first()
        )
        if exists:
            raise HTTPException(status_code=400, detail="You have already referred this email")

        referral = Referral(
            referrer_id=user.id,
            referred_email=email,
            referral_code=make_referral_code(user.id),
            status="pending",
            reward_points=REFERRAL_REWARD_POINTS,
        )
        self.db.add(referral)
        self.db.commit()
        self.db.refresh(referral)
        logger.info(f"🤝 Referral {referral.referral_code} created by {user.id}")
        return referral

    # ------------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------------

    def list_public_reviews(self, limit: int = 50) -> list[Review]:
        return (
            self.db.query(Review)
            .filter(Review.is_public.is_(True))
            .order_by(Review.is_featured.desc(), Review.created_at.desc())
            .limit(limit)
            .all()
        )

    def list_my_reviews(self, user: Profile) -> list[Review]:
        return (
            self.db.query(Review)
            .filter(Review.user_id == user.id)
            .order_by(Review.created_at.desc())
            .all()
        )

    def create_review(self, data: ReviewCreate, user: Profile) -> Review:
        booking = (
            self.db.query(Booking)
            .filter(Booking.id == data.booking_id, Booking.user_id == user.id)
            .first()
        )
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        if booking.status != "completed":
            raise HTTPException(status_code=400, detail="Only completed bookings can be reviewed")
        if self.db.query(Review).filter(Review.booking_id == booking.id).first():
            raise HTTPException(status_code=400, detail="This booking has already been reviewed")

        review = Review(
            user_id=user.id,
            booking_id=booking.id,
            rating=data.rating,
            title=data.title,
            content=data.content,
        )
        self.db.add(review)
        self.db.commit()
        self.db.refresh(review)
        logger.info(f"⭐ Review {review.rating}/5 left for booking {booking.id}")
        return review

    def moderate_review(self, review_id: str, data: ReviewModeration) -> Review:
        review = self.db.query(Review).filter(Review.id == review_id).first()
        if not review:
            raise HTTPException(status_code=404, detail="Review not found")
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(review, key, value)
        self.db.commit()
        self.db.refresh(review)
        return review
