from __future__ import annotations

import asyncio
import json
import logging
import time

from redis.exceptions import RedisError

from ..infrastructure.redis import RedisClient

logger = logging.getLogger(__name__)


class RedisRoleCache:
    """Resolved tokens per user id, shared across processes.

    Entries are whole replacement lists, so concurrent writers for the same
    user are last-write-wins. Invalidation belongs to whoever edits roles.
    """

    def __init__(self, client: RedisClient, *, prefix: str = "role", ttl_seconds: int = 0):
        self._client = client
        self._prefix = prefix
        self._ttl = ttl_seconds

    def _key(self, user_id: str) -> str:
        return f"{self._prefix}:{user_id}"

    async def get(self, user_id: str) -> list[str] | None:
        key = self._key(user_id)
        try:
            raw = await self._client.get_value(key)
        except RedisError as exc:
            logger.error("Redis operation failed operation=GET key=%s error=%s", key, exc)
            raise
        if raw is None:
            return None
        try:
            tokens = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("role_cache.corrupt_entry key=%s", key)
            return None
        if not isinstance(tokens, list):
            logger.warning("role_cache.corrupt_entry key=%s", key)
            return None
        return [t for t in tokens if isinstance(t, str)]

    async def put(self, user_id: str, tokens: list[str]) -> None:
        key = self._key(user_id)
        try:
            await self._client.set_value(key, json.dumps(list(tokens)), self._ttl or None)
        except RedisError as exc:
            logger.error("Redis operation failed operation=SET key=%s error=%s", key, exc)
            raise

    async def delete(self, user_id: str) -> None:
        key = self._key(user_id)
        try:
            await self._client.delete_value(key)
        except RedisError as exc:
            logger.error("Redis operation failed operation=DEL key=%s error=%s", key, exc)
            raise


class MemoryRoleCache:
    """Process-local role cache for single-worker deployments and tests."""

    def __init__(self, *, ttl_seconds: int = 0, clock=time.monotonic):
        self._entries: dict[str, tuple[list[str], float | None]] = {}
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = asyncio.Lock()

    async def get(self, user_id: str) -> list[str] | None:
        async with self._lock:
            entry = self._entries.get(user_id)
            if entry is None:
                return None
            tokens, expires_at = entry
            if expires_at is not None and self._clock() >= expires_at:
                del self._entries[user_id]
                return None
            return list(tokens)

    async def put(self, user_id: str, tokens: list[str]) -> None:
        expires_at = self._clock() + self._ttl if self._ttl else None
        async with self._lock:
            self._entries[user_id] = (list(tokens), expires_at)

    async def delete(self, user_id: str) -> None:
        async with self._lock:
            self._entries.pop(user_id, None)
