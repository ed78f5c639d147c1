"""Profiles domain - The signed-in user's account"""

from .router import router

__all__ = ["router"]
