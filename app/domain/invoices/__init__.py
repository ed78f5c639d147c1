"""Invoices domain - Booking invoice PDFs"""

from .router import router

__all__ = ["router"]
