"""
Token lifecycle management.

Issues, verifies, stores, revokes and rotates the two kinds of bearer
credentials used by the service:

- access tokens: short lived, never stored; revoked by writing a blacklist
  entry keyed by the raw token that expires together with the token
- refresh tokens: long lived, exactly one live value stored per user under
  ``refresh_token:{user_id}``

Each kind is signed with its own secret so one can never pass as the other.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Iterator, Optional, Union
from uuid import UUID, uuid4

from jose import jwt, JWTError, ExpiredSignatureError
from redis.exceptions import RedisError

from vtype.core.config import Settings, settings as default_settings
from vtype.core.exceptions import (
    InvalidRefreshTokenError,
    InvalidTokenError,
    InvalidTokenTypeError,
    MissingTokenError,
    StoreUnavailable,
    TokenExpiredError,
    UserUnavailableError,
)
from vtype.core.logging import logger

REFRESH_TOKEN_PREFIX = "refresh_token:"
ACCESS_TOKEN_PREFIX = "access_token:"
BLACKLIST_PREFIX = "blacklist:"
SESSION_PREFIX = "session:"
USER_STATUS_PREFIX = "user_status:"


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class TokenClaims:
    """Verified claims carried by a token."""
    user_id: str
    kind: TokenKind
    expires_at: datetime
    jti: Optional[str] = None


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int


UserResolver = Callable[[str], Awaitable[Optional[Any]]]


@contextmanager
def _store_errors(operation: str, **context: Any) -> Iterator[None]:
    """Translate backing store failures into StoreUnavailable."""
    try:
        yield
    except RedisError as e:
        logger.error(
            "Token store operation failed",
            extra={"operation": operation, "error": str(e), "error_type": type(e).__name__, **context}
        )
        raise StoreUnavailable(context={"operation": operation, **context}) from e


class TokenStore:
    """Issue, verify and revoke access/refresh tokens backed by Redis."""

    def __init__(self, redis_client: Any, settings: Settings = default_settings):
        self.redis = redis_client
        self.settings = settings
        self.access_ttl = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        self.refresh_ttl = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)

    # -- signing -----------------------------------------------------------

    def _secret(self, kind: TokenKind) -> str:
        if kind is TokenKind.ACCESS:
            return self.settings.JWT_ACCESS_SECRET
        return self.settings.JWT_REFRESH_SECRET

    def create_token(
        self,
        user_id: Union[str, UUID],
        kind: TokenKind,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """Sign a token of ``kind`` for ``user_id``."""
        now = datetime.now(timezone.utc)
        if expires_delta is None:
            expires_delta = self.access_ttl if kind is TokenKind.ACCESS else self.refresh_ttl
        claims = {
            "sub": str(user_id),
            "type": kind.value,
            "iat": now,
            "exp": now + expires_delta,
            "jti": str(uuid4()),
        }
        return jwt.encode(claims, self._secret(kind), algorithm=self.settings.JWT_ALGORITHM)

    def issue_token_pair(self, user_id: Union[str, UUID]) -> TokenPair:
        return TokenPair(
            access_token=self.create_token(user_id, TokenKind.ACCESS),
            refresh_token=self.create_token(user_id, TokenKind.REFRESH),
            expires_in=int(self.access_ttl.total_seconds()),
        )

    def _verify(self, token: str, kind: TokenKind) -> TokenClaims:
        if not token:
            raise MissingTokenError()
        try:
            payload = jwt.decode(
                token,
                self._secret(kind),
                algorithms=[self.settings.JWT_ALGORITHM],
                options={"verify_aud": False}
            )
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except JWTError:
            raise InvalidTokenError()

        if payload.get("type") != kind.value:
            raise InvalidTokenTypeError()
        subject = payload.get("sub")
        if not subject:
            raise InvalidTokenError(detail="Token missing subject")

        return TokenClaims(
            user_id=subject,
            kind=kind,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            jti=payload.get("jti"),
        )

    def verify_access(self, token: str) -> TokenClaims:
        return self._verify(token, TokenKind.ACCESS)

    def verify_refresh(self, token: str) -> TokenClaims:
        return self._verify(token, TokenKind.REFRESH)

    # -- storage -----------------------------------------------------------

    async def store_refresh_token(self, user_id: Union[str, UUID], token: str) -> None:
        """Upsert the single refresh token record for ``user_id``."""
        with _store_errors("store_refresh_token", user_id=str(user_id)):
            await self.redis.setex(
                f"{REFRESH_TOKEN_PREFIX}{user_id}",
                int(self.refresh_ttl.total_seconds()),
                token
            )

    async def fetch_refresh_token(self, user_id: Union[str, UUID]) -> Optional[str]:
        with _store_errors("fetch_refresh_token", user_id=str(user_id)):
            return await self.redis.get(f"{REFRESH_TOKEN_PREFIX}{user_id}")

    async def revoke_refresh_token(self, user_id: Union[str, UUID]) -> None:
        with _store_errors("revoke_refresh_token", user_id=str(user_id)):
            await self.redis.delete(f"{REFRESH_TOKEN_PREFIX}{user_id}")

    async def blacklist_access_token(self, token: str) -> bool:
        """
        Revoke an access token until it would have expired anyway.

        The expiry is read without verifying the signature. Returns True when
        a blacklist entry was written, False when the token had already
        expired.
        """
        try:
            claims = jwt.get_unverified_claims(token)
        except JWTError:
            raise InvalidTokenError()
        exp = claims.get("exp")
        if exp is None:
            raise InvalidTokenError(detail="Token missing expiry")

        remaining = int(exp - datetime.now(timezone.utc).timestamp())
        if remaining <= 0:
            return False
        with _store_errors("blacklist_access_token"):
            await self.redis.setex(f"{BLACKLIST_PREFIX}{token}", remaining, "revoked")
        return True

    async def is_blacklisted(self, token: str) -> bool:
        with _store_errors("is_blacklisted"):
            return bool(await self.redis.exists(f"{BLACKLIST_PREFIX}{token}"))

    # -- protocols ---------------------------------------------------------

    async def issue_and_store(self, user_id: Union[str, UUID]) -> TokenPair:
        """Issue a fresh pair and make its refresh token the one on record."""
        pair = self.issue_token_pair(user_id)
        await self.store_refresh_token(user_id, pair.refresh_token)
        return pair

    async def refresh(self, token: Optional[str], resolve_user: UserResolver) -> TokenPair:
        """
        Exchange a refresh token for a new pair, rotating the stored value.

        Args:
            token: Refresh token presented by the client
            resolve_user: Async lookup returning the account for a user id or None

        Raises:
            MissingTokenError: no token supplied
            InvalidTokenError: bad signature, expired, or not a refresh token
            InvalidRefreshTokenError: token is not the one on record
            UserUnavailableError: account is gone or deactivated
        """
        if not token:
            raise MissingTokenError(detail="Refresh token required")

        claims = self.verify_refresh(token)

        stored = await self.fetch_refresh_token(claims.user_id)
        if stored is None or stored != token:
            logger.warning(
                "Refresh token does not match stored value",
                extra={"user_id": claims.user_id, "stored": stored is not None}
            )
            raise InvalidRefreshTokenError()

        user = await resolve_user(claims.user_id)
        if user is None or not user.is_active:
            await self.revoke_refresh_token(claims.user_id)
            if user is None:
                raise UserUnavailableError(context={"user_id": claims.user_id})
            raise UserUnavailableError.deactivated(context={"user_id": claims.user_id})

        pair = await self.issue_and_store(claims.user_id)
        logger.info("Rotated refresh token", extra={"user_id": claims.user_id})
        return pair

    async def logout(self, access_token: Optional[str], user_id: Union[str, UUID]) -> None:
        """
        Blacklist the access token and revoke the refresh token record.

        Both steps are attempted even if the first fails; the first failure is
        re-raised once both have run.
        """
        failure: Optional[Exception] = None

        if access_token:
            try:
                await self.blacklist_access_token(access_token)
            except (StoreUnavailable, InvalidTokenError) as e:
                failure = e

        try:
            await self.revoke_refresh_token(user_id)
        except StoreUnavailable as e:
            failure = failure or e

        if failure is not None:
            logger.warning(
                "Logout completed with failures",
                extra={"user_id": str(user_id), "error_type": type(failure).__name__}
            )
            raise failure
        logger.info("User logged out", extra={"user_id": str(user_id)})

