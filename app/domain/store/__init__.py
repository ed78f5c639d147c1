"""Store domain - Merchandise, cart and orders"""

from .router import router

__all__ = ["router"]
