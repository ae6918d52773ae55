"""
Verification sweeps over the token store.

Native per-key TTLs are the primary expiry mechanism; these sweeps are the
secondary one. Token sweeps re-verify each stored token and delete only the
ones that fail because they expired. Session sweeps delete entries that were
written without any TTL.
"""

from typing import Any, Callable, Optional

from redis.exceptions import RedisError

from vtype.core.exceptions import InvalidTokenError, TokenExpiredError
from vtype.core.logging import logger
from vtype.core.tokens import (
    ACCESS_TOKEN_PREFIX,
    BLACKLIST_PREFIX,
    REFRESH_TOKEN_PREFIX,
    SESSION_PREFIX,
    USER_STATUS_PREFIX,
    TokenClaims,
    TokenStore,
)
from vtype.schemas.admin import StoreStats

SCAN_BATCH = 500


class TokenCleanupService:
    def __init__(self, redis_client: Any, token_store: TokenStore):
        self.redis = redis_client
        self.token_store = token_store

    async def _sweep_tokens(
        self,
        label: str,
        prefix: str,
        verify: Callable[[str], TokenClaims]
    ) -> int:
        logger.info(f"Starting {label} token cleanup")
        cleaned = 0
        try:
            async for key in self.redis.scan_iter(match=f"{prefix}*", count=SCAN_BATCH):
                try:
                    token = await self.redis.get(key)
                    if not token:
                        await self.redis.delete(key)
                        cleaned += 1
                        continue
                    try:
                        verify(token)
                    except TokenExpiredError:
                        await self.redis.delete(key)
                        cleaned += 1
                        logger.debug(f"Removed expired {label} token", extra={"key": key})
                    except InvalidTokenError:
                        # only expiry is grounds for removal here
                        pass
                except RedisError as e:
                    logger.error(
                        f"Error processing {label} token",
                        extra={"key": key, "error": str(e)}
                    )
        except RedisError as e:
            logger.error(
                f"Error during {label} token cleanup",
                extra={"error": str(e), "error_type": type(e).__name__, "cleaned": cleaned}
            )
            return cleaned

        logger.info(f"{label.capitalize()} token cleanup completed", extra={"cleaned": cleaned})
        return cleaned

    async def cleanup_expired_access_tokens(self) -> int:
        return await self._sweep_tokens("access", ACCESS_TOKEN_PREFIX, self.token_store.verify_access)

    async def cleanup_expired_refresh_tokens(self) -> int:
        return await self._sweep_tokens("refresh", REFRESH_TOKEN_PREFIX, self.token_store.verify_refresh)

    async def cleanup_inactive_sessions(self) -> int:
        """Delete session and user-status entries that have no TTL."""
        logger.info("Starting inactive session cleanup")
        cleaned = 0
        for prefix in (SESSION_PREFIX, USER_STATUS_PREFIX):
            try:
                async for key in self.redis.scan_iter(match=f"{prefix}*", count=SCAN_BATCH):
                    try:
                        if await self.redis.ttl(key) == -1:
                            await self.redis.delete(key)
                            cleaned += 1
                            logger.debug("Removed orphaned session entry", extra={"key": key})
                    except RedisError as e:
                        logger.error(
                            "Error processing session entry",
                            extra={"key": key, "error": str(e)}
                        )
            except RedisError as e:
                logger.error(
                    "Error during session cleanup",
                    extra={"prefix": prefix, "error": str(e), "error_type": type(e).__name__}
                )

        logger.info("Session cleanup completed", extra={"cleaned": cleaned})
        return cleaned

    async def _count(self, prefix: str) -> int:
        count = 0
        async for _ in self.redis.scan_iter(match=f"{prefix}*", count=SCAN_BATCH):
            count += 1
        return count

    async def get_store_stats(self) -> Optional[StoreStats]:
        """Key counts per tracked category, or None when the store cannot be read."""
        try:
            counts = {
                "access_token_count": await self._count(ACCESS_TOKEN_PREFIX),
                "refresh_token_count": await self._count(REFRESH_TOKEN_PREFIX),
                "blacklist_count": await self._count(BLACKLIST_PREFIX),
                "session_count": await self._count(SESSION_PREFIX),
                "user_status_count": await self._count(USER_STATUS_PREFIX),
            }
        except RedisError as e:
            logger.error("Error getting Redis stats", extra={"error": str(e), "error_type": type(e).__name__})
            return None
        return StoreStats(**counts, total_keys=sum(counts.values()))
