from pydantic import BaseModel, ConfigDict, field_serializer
from typing import Optional
from datetime import datetime

from storyai.models.user import UserRole


class UserProfile(BaseModel):
    """Public view of a user. The data encryption key is deliberately absent."""
    id: str
    email: str
    full_name: str
    avatar_url: Optional[str] = None
    role: UserRole
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer('role')
    def serialize_role(self, role: UserRole) -> str:
        return role.value


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserProfile


class Caller(BaseModel):
    """Authenticated principal handed to services by the auth layer"""
    user_id: str
    role: UserRole

    @property
    def is_staff(self) -> bool:
        return self.role.is_staff
