"""
User profile endpoints.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vtype.core.auth import (
    AuthContext,
    get_auth_context,
    get_current_user,
    get_password_hash,
    get_token_store,
    verify_password,
)
from vtype.core.exceptions import ConflictError, InvalidCredentialsError, ResourceNotFound
from vtype.core.logging import logger
from vtype.core.tokens import TokenStore
from vtype.db.session import get_db
from vtype.models import User
from vtype.schemas.auth import MessageResponse, UserLogin
from vtype.schemas.user import (
    PasswordChange,
    ProfileEnvelope,
    ProfileUpdate,
    PublicUser,
    UserProfile,
    UserSearchResponse,
)
from vtype.services.user.directory import UserDirectory

router = APIRouter()


@router.get("/profile/{user_id}", response_model=PublicUser)
async def get_user_profile(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> PublicUser:
    """Public profile of any user."""
    user = await UserDirectory(db).find_by_id(user_id)
    if user is None:
        raise ResourceNotFound(detail="User not found")
    return PublicUser.from_user(user)


@router.put("/profile", response_model=ProfileEnvelope)
async def update_profile(
    update: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ProfileEnvelope:
    user = await UserDirectory(db).update_profile(
        current_user,
        username=update.username,
        bio=update.bio,
        profile_picture=update.profile_picture
    )
    return ProfileEnvelope(user=UserProfile.from_user(user))


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    body: PasswordChange,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
    token_store: TokenStore = Depends(get_token_store)
) -> MessageResponse:
    """
    Change the current user's password.

    The current session is signed out so the client has to log in again with
    the new password.
    """
    if not verify_password(body.current_password.get_secret_value(), auth.user.hashed_password):
        raise InvalidCredentialsError(detail="Current password is incorrect")
    await UserDirectory(db).set_password(
        auth.user, get_password_hash(body.new_password.get_secret_value())
    )
    await token_store.logout(auth.token, auth.user.id)
    logger.info("Password changed", extra={"user_id": str(auth.user.id)})
    return MessageResponse(message="Password changed successfully")


@router.get("/search", response_model=UserSearchResponse)
async def search_users(
    q: str = Query(..., min_length=1, max_length=30),
    limit: int = Query(20, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> UserSearchResponse:
    users = await UserDirectory(db).search(q, exclude=current_user.id, limit=limit)
    return UserSearchResponse(users=[PublicUser.from_user(u) for u in users])


@router.put("/deactivate", response_model=MessageResponse)
async def deactivate_account(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
    token_store: TokenStore = Depends(get_token_store)
) -> MessageResponse:
    """
    Deactivate the current account and revoke its tokens.

    Existing access tokens stop working immediately because every request
    re-checks the active flag.
    """
    await UserDirectory(db).set_active(auth.user, False)
    await token_store.logout(auth.token, auth.user.id)
    return MessageResponse(message="Account deactivated successfully")


@router.put("/reactivate", response_model=MessageResponse)
async def reactivate_account(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
) -> MessageResponse:
    """
    Reactivate a deactivated account.

    A deactivated account cannot hold a valid session, so the caller proves
    ownership with the same credentials used to log in.
    """
    directory = UserDirectory(db)
    user = await directory.find_by_login(credentials.identifier)
    if user is None or not verify_password(
        credentials.password.get_secret_value(), user.hashed_password
    ):
        raise InvalidCredentialsError()
    if user.is_active:
        raise ConflictError(detail="Account is already active")
    await directory.set_active(user, True)
    return MessageResponse(message="Account reactivated successfully")
