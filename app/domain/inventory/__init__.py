"""Inventory domain - Workshop stock, movements and low-stock alerts"""

from .router import router

__all__ = ["router"]
