"""Staff domain - Departments, team members, invitations, walk-ins and the staff dashboard"""

from .router import router

__all__ = ["router"]
