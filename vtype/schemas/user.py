"""
User profile schemas.
"""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID
from pydantic import EmailStr, Field, SecretStr

from vtype.schemas.base import CamelModel


class UserProfile(CamelModel):
    """Full profile of the authenticated user."""
    id: UUID
    username: str
    email: EmailStr
    profile_picture: Optional[str] = None
    bio: Optional[str] = None
    is_active: bool
    roles: List[str] = Field(default_factory=list)
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: Any) -> "UserProfile":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            profile_picture=user.profile_picture,
            bio=user.bio,
            is_active=user.is_active,
            roles=list(user.roles or []),
            last_login=user.last_login,
            created_at=user.created_at,
            updated_at=user.updated_at
        )


class ProfileEnvelope(CamelModel):
    user: UserProfile


class PublicUser(CamelModel):
    """Fields any authenticated user may see about another."""
    id: UUID
    username: str
    profile_picture: Optional[str] = None
    bio: Optional[str] = None
    is_active: bool = True

    @classmethod
    def from_user(cls, user: Any) -> "PublicUser":
        return cls(
            id=user.id,
            username=user.username,
            profile_picture=user.profile_picture,
            bio=user.bio,
            is_active=user.is_active
        )


class UserSearchResponse(CamelModel):
    users: List[PublicUser]


class ProfileUpdate(CamelModel):
    username: Optional[str] = Field(
        None,
        min_length=3,
        max_length=30,
        pattern="^[a-zA-Z0-9_-]+$"
    )
    bio: Optional[str] = Field(None, max_length=500)
    profile_picture: Optional[str] = Field(None, max_length=512)


class PasswordChange(CamelModel):
    current_password: SecretStr = Field(..., min_length=1)
    new_password: SecretStr = Field(..., min_length=6, max_length=72)
