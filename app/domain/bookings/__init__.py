"""Bookings domain - Service bookings, job stages, work queue and job tracking"""

from .router import router

__all__ = ["router"]
