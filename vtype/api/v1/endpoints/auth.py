"""
Authentication endpoints for VType application.

This module provides endpoints for:
- User registration and login
- Token refresh with rotation
- Logout (access token blacklisting and refresh token revocation)
- The current user's profile
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from vtype.core.auth import (
    AuthContext,
    get_auth_context,
    get_current_user,
    get_password_hash,
    get_token_store,
    verify_password,
)
from vtype.core.error_handlers import get_error_responses
from vtype.core.exceptions import InvalidCredentialsError, UserUnavailableError
from vtype.core.logging import logger
from vtype.core.tokens import TokenPair, TokenStore
from vtype.db.session import get_db
from vtype.models import User
from vtype.schemas.auth import (
    AuthResponse,
    AuthUser,
    MessageResponse,
    RefreshResponse,
    TokenBundle,
    TokenRefreshRequest,
    UserCreate,
    UserLogin,
)
from vtype.schemas.user import ProfileEnvelope, UserProfile
from vtype.services.user.directory import UserDirectory

router = APIRouter()


def _bundle(pair: TokenPair) -> TokenBundle:
    return TokenBundle(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        expires_in=pair.expires_in
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses=get_error_responses("register")
)
async def register(
    *,
    user_in: UserCreate,
    db: AsyncSession = Depends(get_db),
    token_store: TokenStore = Depends(get_token_store)
) -> AuthResponse:
    """Register a new user and sign them in."""
    user = await UserDirectory(db).create_user(
        username=user_in.username,
        email=user_in.email,
        hashed_password=get_password_hash(user_in.password.get_secret_value())
    )
    pair = await token_store.issue_and_store(user.id)

    return AuthResponse(
        message="User registered successfully",
        user=AuthUser(id=user.id, username=user.username, email=user.email, created_at=user.created_at),
        tokens=_bundle(pair)
    )


@router.post("/login", response_model=AuthResponse, responses=get_error_responses("login"))
async def login(
    *,
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db),
    token_store: TokenStore = Depends(get_token_store)
) -> AuthResponse:
    """
    Exchange email/username and password for a token pair.

    Any refresh token previously on record for the user is replaced.
    """
    directory = UserDirectory(db)
    user = await directory.find_by_login(credentials.identifier)

    if user is None or not verify_password(
        credentials.password.get_secret_value(), user.hashed_password
    ):
        logger.warning("Failed login attempt", extra={"found": user is not None})
        raise InvalidCredentialsError()

    if not user.is_active:
        raise UserUnavailableError.deactivated(context={"user_id": str(user.id)})

    user = await directory.record_login(user)
    pair = await token_store.issue_and_store(user.id)
    logger.info("User logged in", extra={"user_id": str(user.id)})

    return AuthResponse(
        message="Login successful",
        user=AuthUser(id=user.id, username=user.username, email=user.email, last_login=user.last_login),
        tokens=_bundle(pair)
    )


@router.post("/refresh", response_model=RefreshResponse, responses=get_error_responses("refresh"))
async def refresh(
    *,
    body: TokenRefreshRequest,
    db: AsyncSession = Depends(get_db),
    token_store: TokenStore = Depends(get_token_store)
) -> RefreshResponse:
    """Rotate a refresh token into a new token pair."""
    pair = await token_store.refresh(body.refresh_token, UserDirectory(db).find_by_id)
    return RefreshResponse(message="Tokens refreshed successfully", tokens=_bundle(pair))


@router.post("/logout", response_model=MessageResponse, responses=get_error_responses("logout"))
async def logout(
    auth: AuthContext = Depends(get_auth_context),
    token_store: TokenStore = Depends(get_token_store)
) -> MessageResponse:
    """Revoke the presented access token and the stored refresh token."""
    await token_store.logout(auth.token, auth.user.id)
    return MessageResponse(message="Logout successful")


@router.post("/logout-all", response_model=MessageResponse, responses=get_error_responses("logout_all"))
async def logout_all(
    auth: AuthContext = Depends(get_auth_context),
    token_store: TokenStore = Depends(get_token_store)
) -> MessageResponse:
    """
    Sign out everywhere.

    Refresh tokens are stored one per user, so revoking the record ends every
    session that could still refresh.
    """
    await token_store.logout(auth.token, auth.user.id)
    return MessageResponse(message="Logged out from all devices")


@router.get("/me", response_model=ProfileEnvelope, responses=get_error_responses("me"))
async def read_me(current_user: User = Depends(get_current_user)) -> ProfileEnvelope:
    """Get the authenticated user's profile."""
    return ProfileEnvelope(user=UserProfile.from_user(current_user))
