# app/schemas/auth.py
from enum import Enum

from pydantic import BaseModel


class ActorRole(str, Enum):
    USER = "user"
    TECHNICIAN = "technician"
    MODERATOR = "moderator"
    ADMIN = "admin"


STAFF_ROLES = frozenset({ActorRole.MODERATOR, ActorRole.ADMIN})


class Actor(BaseModel):
    """
    The acting user as vouched for by the identity provider.
    Treated as an opaque (id, display name) pair plus a role for gating.
    """

    id: str
    name: str
    role: ActorRole = ActorRole.USER

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
