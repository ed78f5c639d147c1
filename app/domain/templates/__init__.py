"""Process templates domain - Reusable job-stage flows per service"""

from .router import router

__all__ = ["router"]
