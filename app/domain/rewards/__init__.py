"""Rewards domain - Loyalty tiers, promo codes, referrals and reviews"""

from .router import router

__all__ = ["router"]
