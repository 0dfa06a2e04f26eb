from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import uuid

from storyai.core.logging_config import set_user_id
from storyai.core.security import decode_token
from storyai.models.user import UserRole
from storyai.schemas.auth import Caller

security = HTTPBearer()


async def get_current_caller(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Caller:
    """Resolve the caller from the access token; services do the rest"""

    payload = decode_token(credentials.credentials)

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type"
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload"
        )

    try:
        uuid.UUID(user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID format"
        )

    try:
        role = UserRole(payload.get("role", UserRole.USER.value))
    except ValueError:
        role = UserRole.USER

    set_user_id(user_id)
    return Caller(user_id=user_id, role=role)


async def get_current_staff(
    caller: Caller = Depends(get_current_caller)
) -> Caller:
    """Caller must be staff or admin"""
    if not caller.is_staff:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Staff access required"
        )
    return caller
