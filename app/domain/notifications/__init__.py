"""Notifications domain - Inbox, preferences, push subscriptions and direct sends"""

from .router import router

__all__ = ["router"]
