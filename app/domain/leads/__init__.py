"""Leads domain - Sales pipeline CRM"""

from .router import router

__all__ = ["router"]
