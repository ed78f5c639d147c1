"""Garage domain - Customer vehicles"""

from .router import router

__all__ = ["router"]
