"""Payments domain - Yoco checkouts and webhooks"""

from .router import router

__all__ = ["router"]
