"""Catalog domain - Bookable services and slot availability"""

from .router import router

__all__ = ["router"]
