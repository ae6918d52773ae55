"""
Authentication and authorization utilities for VType application.

This module provides functionality for:
- Password hashing and verification
- Bearer access token authentication shared by HTTP routes and the websocket
- Role checks
- Dependency injection for getting the current user in API routes
"""

# Standard library imports
from dataclasses import dataclass
from typing import Optional

# Third-party imports
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

# Application imports
from vtype.core.exceptions import (
    AuthorizationError,
    MissingTokenError,
    StoreUnavailable,
    TokenRevokedError,
    UserUnavailableError,
)
from vtype.core.logging import logger
from vtype.core.tokens import TokenStore
from vtype.db.session import get_db
from vtype.models import User, UserRole
from vtype.services.user.directory import UserDirectory

# Security configuration
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

bearer_scheme = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """Hash a password for storage."""
    return pwd_context.hash(str(password))


@dataclass
class AuthContext:
    """The authenticated user together with the token that authenticated them."""
    user: User
    token: str


async def authenticate_access_token(
    token: Optional[str],
    token_store: TokenStore,
    directory: UserDirectory,
    tolerate_store_outage: bool = False
) -> User:
    """
    Resolve an access token to an active user.

    Checks run in a fixed order and each failure carries its reason code:
    token present, not blacklisted, valid access token, user exists, user
    active.

    With ``tolerate_store_outage`` an unreachable store skips the blacklist
    check instead of failing; signature, expiry and account checks still run.
    """
    if not token:
        raise MissingTokenError()

    try:
        revoked = await token_store.is_blacklisted(token)
    except StoreUnavailable:
        if not tolerate_store_outage:
            raise
        logger.warning("Token store unavailable, skipping blacklist check")
        revoked = False
    if revoked:
        raise TokenRevokedError()

    claims = token_store.verify_access(token)

    user = await directory.find_by_id(claims.user_id)
    if user is None:
        logger.warning("Token subject not found", extra={"user_id": claims.user_id})
        raise UserUnavailableError(detail="User not found")
    if not user.is_active:
        raise UserUnavailableError.deactivated(context={"user_id": claims.user_id})
    return user


def get_token_store(request: Request) -> TokenStore:
    return request.app.state.token_store


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Optional[str]:
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    return credentials.credentials


async def get_auth_context(
    token: Optional[str] = Depends(get_bearer_token),
    token_store: TokenStore = Depends(get_token_store),
    db: AsyncSession = Depends(get_db)
) -> AuthContext:
    user = await authenticate_access_token(token, token_store, UserDirectory(db))
    return AuthContext(user=user, token=token)


async def get_current_user(auth: AuthContext = Depends(get_auth_context)) -> User:
    """Get current user from the bearer token."""
    return auth.user


async def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    """Get current user, requiring the admin role."""
    if not current_user.has_role(UserRole.ADMIN):
        logger.warning("Admin route denied", extra={"user_id": str(current_user.id)})
        raise AuthorizationError(detail="Admin role required")
    return current_user
