# app/dependencies/authz.py
from typing import Iterable

from fastapi import Depends, HTTPException, status

from app.api.v1.endpoints.auth import get_current_user
from app.schemas.auth import Actor, ActorRole


def require_roles(required_roles: Iterable[ActorRole]):
    """
    Dependency factory for role-based access.

    Usage:

    @router.post("/admin/recount")
    def recount(actor: Actor = Depends(require_roles([ActorRole.ADMIN]))):
        ...

    Returns the current actor if they hold one of the required roles.
    """

    required = {r.value if isinstance(r, ActorRole) else str(r) for r in required_roles}

    def dependency(current_user: Actor = Depends(get_current_user)) -> Actor:
        if current_user.role.value not in required:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role permissions.",
            )
        return current_user

    return dependency


STAFF_ONLY = [ActorRole.MODERATOR, ActorRole.ADMIN]
ADMIN_ONLY = [ActorRole.ADMIN]
TECHNICIANS = [ActorRole.TECHNICIAN, ActorRole.MODERATOR, ActorRole.ADMIN]
