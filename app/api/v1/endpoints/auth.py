from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.security import decode_token
from app.schemas.auth import Actor, ActorRole

router = APIRouter()

bearer_scheme = HTTPBearer(auto_error=False)


@router.get("/health", tags=["auth"])
async def auth_health_check() -> dict:
    """
    Simple health check for the auth module.
    """
    return {"status": "auth-ok"}


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Actor:
    """
    Dependency resolving the acting user from a JWT bearer token.

    The token is minted by the identity bridge (LINE login); `sub` is the
    user id, `name` the display name stamped onto records.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    try:
        payload = decode_token(credentials.credentials)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    try:
        role = ActorRole(payload.get("role") or ActorRole.USER.value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token role",
        )

    return Actor(id=str(user_id), name=payload.get("name") or str(user_id), role=role)


@router.get("/me", response_model=Actor, tags=["auth"])
def read_current_user(
    current_user: Actor = Depends(get_current_user),
) -> Actor:
    """
    Return the current authenticated user.
    """
    return current_user
