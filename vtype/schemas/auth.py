"""
Authentication schemas.

This module defines Pydantic models for user registration, login and token
management. Field names are exposed to clients in camelCase.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import EmailStr, Field, SecretStr, field_validator, model_validator

from vtype.schemas.base import CamelModel


class UserCreate(CamelModel):
    """Schema for user registration."""
    username: str = Field(
        ...,
        min_length=3,
        max_length=30,
        pattern="^[a-zA-Z0-9_-]+$",
        description="Unique username (3-30 chars, alphanumeric with _ and -)",
        examples=["ada_l"]
    )
    email: EmailStr = Field(
        ...,
        description="Unique email address",
        examples=["ada@example.com"]
    )
    password: SecretStr = Field(
        ...,
        min_length=6,
        max_length=72,
        description="Password, 6-72 characters"
    )

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class UserLogin(CamelModel):
    """Login with either email or username plus password."""
    email: Optional[EmailStr] = Field(None, description="User's email address")
    username: Optional[str] = Field(None, description="User's username")
    password: SecretStr = Field(..., min_length=1, description="User's password")

    @model_validator(mode="after")
    def require_identifier(self) -> "UserLogin":
        if not self.email and not self.username:
            raise ValueError("Either email or username is required")
        return self

    @property
    def identifier(self) -> str:
        return str(self.email).lower() if self.email else self.username.strip()


class TokenBundle(CamelModel):
    """Access/refresh token pair returned to clients."""
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    expires_in: int = Field(..., description="Access token lifetime in seconds")
    token_type: str = Field("bearer", description="Token type")


class TokenRefreshRequest(CamelModel):
    """Request to exchange a refresh token for a new pair."""
    refresh_token: Optional[str] = Field(None, description="JWT refresh token")


class AuthUser(CamelModel):
    """Account summary returned by register and login."""
    id: UUID
    username: str
    email: EmailStr
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None


class AuthResponse(CamelModel):
    message: str
    user: AuthUser
    tokens: TokenBundle


class RefreshResponse(CamelModel):
    message: str
    tokens: TokenBundle


class MessageResponse(CamelModel):
    """Plain acknowledgement."""
    message: str
