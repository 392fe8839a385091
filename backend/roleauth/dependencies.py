from collections.abc import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from .auth.principal import AuthConfig
from .cache.role_cache import MemoryRoleCache, RedisRoleCache
from .config import settings
from .crud.object_record import ObjectRecordRepository
from .database import get_session
from .domain.ports.query import QueryExecutor
from .domain.ports.role_cache import RoleCache
from .infrastructure.redis import get_redis

_memory_role_cache: MemoryRoleCache | None = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


def get_query_executor(db: AsyncSession = Depends(get_db)) -> QueryExecutor:
    return ObjectRecordRepository(db)


def get_role_cache() -> RoleCache:
    global _memory_role_cache
    if settings.role_cache_backend == "memory":
        if _memory_role_cache is None:
            _memory_role_cache = MemoryRoleCache(ttl_seconds=settings.role_cache_ttl_seconds)
        return _memory_role_cache
    return RedisRoleCache(
        get_redis(),
        prefix=settings.role_cache_prefix,
        ttl_seconds=settings.role_cache_ttl_seconds,
    )


def get_auth_config(
    executor: QueryExecutor = Depends(get_query_executor),
    role_cache: RoleCache = Depends(get_role_cache),
) -> AuthConfig:
    """Collaborators for the principals built while handling one request."""
    return AuthConfig(
        executor=executor,
        role_cache=role_cache,
        space_class_name=settings.space_class_name,
        space_max_hops=settings.space_max_hops,
    )
