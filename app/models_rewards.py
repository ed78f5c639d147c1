"""
Rewards Models
Loyalty points, promo codes, referrals and customer reviews
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from .database import Base
from .models import generate_uuid


class LoyaltyPoints(Base):
    __tablename__ = "loyalty_points"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, unique=True)
    points = Column(Integer, nullable=False, default=0)
    lifetime_points = Column(Integer, nullable=False, default=0)
    tier = Column(String(20), nullable=False, default="bronze")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class LoyaltyTransaction(Base):
    __tablename__ = "loyalty_transactions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    points = Column(Integer, nullable=False)
    transaction_type = Column(String(20), nullable=False)  # earned, redeemed
    description = Column(Text, nullable=True)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class PromoCode(Base):
    __tablename__ = "promo_codes"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    code = Column(String(50), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    points_value = Column(Integer, nullable=False, default=0)
    discount_percentage = Column(Float, nullable=True)
    discount_amount = Column(Float, nullable=True)
    max_uses = Column(Integer, nullable=True)
    current_uses = Column(Integer, nullable=False, default=0)
    expires_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True)
    created_by = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class PromoCodeRedemption(Base):
    __tablename__ = "promo_code_redemptions"
    __table_args__ = (UniqueConstraint("promo_code_id", "user_id", name="uq_promo_user"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    promo_code_id = Column(String(36), ForeignKey("promo_codes.id"), nullable=False)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    points_awarded = Column(Integer, nullable=False, default=0)
    redeemed_at = Column(DateTime, server_default=func.now())


class Referral(Base):
    __tablename__ = "referrals"
    __table_args__ = (UniqueConstraint("referrer_id", "referred_email", name="uq_referral"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    referrer_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    referred_email = Column(String(255), nullable=False)
    referral_code = Column(String(50), nullable=False, unique=True)
    status = Column(String(20), nullable=False, default="pending")  # pending, completed
    reward_points = Column(Integer, nullable=False, default=500)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class Review(Base):
    __tablename__ = "reviews"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, unique=True)
    rating = Column(Integer, nullable=False)
    title = Column(String(255), nullable=True)
    content = Column(Text, nullable=True)
    is_public = Column(Boolean, default=True)
    is_featured = Column(Boolean, default=False)
    created_at = Column(DateTime, server_default=func.now())
