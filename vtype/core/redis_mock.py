"""
Mock Redis implementation for development environments.

This module provides an in-memory mock implementation of Redis for development
and testing purposes. It implements the subset of Redis commands the token
store and the maintenance sweeps rely on and mirrors a client created with
``decode_responses=True`` (values come back as ``str``).
"""

import fnmatch
from typing import AsyncIterator, Dict, List, Optional, Any
import time as time_module  # Renamed import to avoid parameter naming conflicts


class MockRedis:
    """
    In-memory mock implementation of Redis for development and testing.
    Implements commonly used Redis methods with reasonable defaults.
    """

    def __init__(self):
        """Initialize the mock Redis with empty storage."""
        self._storage: Dict[str, str] = {}
        self._expirations: Dict[str, float] = {}

    async def ping(self):
        """Test connection (always returns True)."""
        return True

    async def aclose(self):
        """Close the connection (no-op for mock implementation)."""
        return True

    async def flushall(self) -> bool:
        self._storage.clear()
        self._expirations.clear()
        return True

    async def get(self, key: str) -> Optional[str]:
        """Get a value from storage."""
        self._check_expiration(key)
        return self._storage.get(key)

    async def set(self, key: str, value: Any, ex: Optional[int] = None) -> bool:
        """Set a value in storage, optionally with an expiry in seconds."""
        self._storage[key] = self._encode(value)
        if ex is not None:
            self._expirations[key] = time_module.time() + int(ex)
        else:
            self._expirations.pop(key, None)
        return True

    async def setex(self, name: str, time: int, value: Any) -> bool:
        """Set a value with expiration time."""
        seconds = int(time)
        if seconds <= 0:
            raise ValueError("invalid expire time in 'setex' command")
        self._storage[name] = self._encode(value)
        self._expirations[name] = time_module.time() + seconds
        return True

    async def delete(self, *keys) -> int:
        """Delete keys from storage, return number of keys deleted."""
        count = 0
        for key in keys:
            self._check_expiration(key)
            if key in self._storage:
                del self._storage[key]
                self._expirations.pop(key, None)
                count += 1
        return count

    async def exists(self, *keys) -> int:
        """Return how many of the given keys exist."""
        count = 0
        for key in keys:
            self._check_expiration(key)
            if key in self._storage:
                count += 1
        return count

    async def expire(self, key: str, seconds: int) -> bool:
        """Set expiration time for a key."""
        self._check_expiration(key)
        if key in self._storage:
            self._expirations[key] = time_module.time() + seconds
            return True
        return False

    async def persist(self, key: str) -> bool:
        """Remove the expiry from a key."""
        self._check_expiration(key)
        if key in self._storage and key in self._expirations:
            del self._expirations[key]
            return True
        return False

    async def ttl(self, key: str) -> int:
        """Seconds left to live; -1 when the key has no expiry, -2 when missing."""
        self._check_expiration(key)
        if key not in self._storage:
            return -2
        if key not in self._expirations:
            return -1
        remaining = self._expirations[key] - time_module.time()
        return max(int(round(remaining)), 0)

    async def incr(self, key: str) -> int:
        """Increment a numeric value, create if doesn't exist."""
        self._check_expiration(key)
        value = int(self._storage.get(key, "0")) + 1
        self._storage[key] = str(value)
        return value

    async def keys(self, pattern: str = "*") -> List[str]:
        """Get keys matching a glob pattern."""
        self._check_all_expirations()
        return [k for k in list(self._storage.keys()) if fnmatch.fnmatchcase(k, pattern)]

    async def scan_iter(self, match: Optional[str] = None, count: Optional[int] = None) -> AsyncIterator[str]:
        """Iterate over keys matching ``match`` without materialising a snapshot up front."""
        for key in await self.keys(match or "*"):
            yield key

    def _encode(self, value: Any) -> str:
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    def _check_expiration(self, key: str) -> None:
        """Check if a key has expired and remove it if necessary."""
        if key in self._expirations:
            if time_module.time() >= self._expirations[key]:
                self._storage.pop(key, None)
                del self._expirations[key]

    def _check_all_expirations(self) -> None:
        """Check all keys for expiration."""
        current_time = time_module.time()
        expired_keys = [
            key for key, expiry in self._expirations.items()
            if current_time >= expiry
        ]

        for key in expired_keys:
            self._storage.pop(key, None)
            del self._expirations[key]
