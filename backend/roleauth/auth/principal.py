"""
Per-request principal and its role resolution.

A Principal resolves its role tokens at most once. Resolution moves through
``UNRESOLVED -> RESOLVING -> RESOLVED``; callers arriving while a resolution
is running await the same task. A failed resolution drops back to
``UNRESOLVED`` so the next call retries from scratch.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Mapping

from ..domain.permissions import CustomRoleDefinition
from ..domain.pointers import UserRef
from ..domain.ports.query import QueryExecutor
from ..domain.ports.role_cache import RoleCache
from .custom_roles import CustomRoleEngine
from .general_role import load_general_role_tokens
from .legacy_roles import LegacyRoleGraphResolver
from .mode import ResolutionMode, select_mode
from .names import DEFAULT_SPACE_CLASS, ROLE_DEFINITION_CLASS
from .space_pointer import DEFAULT_MAX_HOPS, SpacePointerResolver

logger = logging.getLogger(__name__)

EMPTY_TOKENS: frozenset[str] = frozenset()


@dataclass(frozen=True)
class AuthConfig:
    """Collaborators shared by every principal of a deployment."""

    executor: QueryExecutor
    role_cache: RoleCache
    space_class_name: str = DEFAULT_SPACE_CLASS
    space_max_hops: int = DEFAULT_MAX_HOPS


class ResolutionState(Enum):
    UNRESOLVED = auto()
    RESOLVING = auto()
    RESOLVED = auto()


class Principal:
    """Who is making a request and whether the master key was used."""

    def __init__(
        self,
        config: AuthConfig,
        *,
        is_master: bool = False,
        is_read_only: bool = False,
        user: UserRef | None = None,
        installation_id: str | None = None,
    ):
        self.config = config
        self.is_master = is_master
        self.is_read_only = is_read_only
        self.user = user
        self.installation_id = installation_id

        # A user's roles are assumed not to change during one request.
        self._tokens: frozenset[str] = EMPTY_TOKENS
        self._resolved = False
        self._in_flight: asyncio.Task[frozenset[str]] | None = None

    @property
    def state(self) -> ResolutionState:
        if self._resolved:
            return ResolutionState.RESOLVED
        if self._in_flight is not None:
            return ResolutionState.RESOLVING
        return ResolutionState.UNRESOLVED

    @property
    def resolved_tokens(self) -> frozenset[str]:
        return self._tokens

    def could_update_user_id(self, user_id: str) -> bool:
        """Whether this principal could modify the given user; ACLs may still forbid it."""
        if self.is_master:
            return True
        return self.user is not None and self.user.id == user_id

    async def resolve_roles(
        self,
        class_name: str,
        data: Mapping[str, Any] | None = None,
        query: Mapping[str, Any] | None = None,
        rest_query: Mapping[str, Any] | None = None,
    ) -> frozenset[str]:
        # Master access is granted by the caller's own bypass; never widen here.
        if self.is_master or self.user is None:
            return EMPTY_TOKENS

        if self._resolved:
            return self._tokens

        if self._in_flight is None:
            task = asyncio.get_running_loop().create_task(
                self._resolve(self.user, class_name, data, query, rest_query)
            )
            task.add_done_callback(_consume_resolution_error)
            self._in_flight = task

        # Shielded so an abandoned caller does not cancel the shared resolution.
        return await asyncio.shield(self._in_flight)

    async def invalidate_cached_roles(self) -> None:
        if self.user is not None:
            await self.config.role_cache.delete(self.user.id)

    async def _resolve(
        self,
        user: UserRef,
        class_name: str,
        data: Mapping[str, Any] | None,
        query: Mapping[str, Any] | None,
        rest_query: Mapping[str, Any] | None,
    ) -> frozenset[str]:
        try:
            logger.debug("roles.resolve.start user_id=%s class_name=%s", user.id, class_name)
            records = await self.config.executor.execute(ROLE_DEFINITION_CLASS, {})
            definitions = [CustomRoleDefinition.from_record(r) for r in records]
            mode = select_mode(definitions)
            logger.debug("roles.resolve.mode user_id=%s mode=%s", user.id, mode.value)

            if mode is ResolutionMode.CUSTOM:
                engine = CustomRoleEngine(
                    self.config.executor,
                    SpacePointerResolver(
                        self.config.executor, max_hops=self.config.space_max_hops
                    ),
                    space_class_name=self.config.space_class_name,
                )
                tokens = await engine.resolve(
                    user, class_name, data, query, rest_query, definitions
                )
            else:
                resolver = LegacyRoleGraphResolver(self.config.executor, self.config.role_cache)
                tokens = await resolver.resolve(user)

            tokens |= await load_general_role_tokens(self.config.executor, user)

            resolved = frozenset(tokens)
            await self.config.role_cache.put(user.id, sorted(resolved))
            self._tokens = resolved
            self._resolved = True
            logger.debug(
                "roles.resolve.done user_id=%s mode=%s count=%d",
                user.id,
                mode.value,
                len(self._tokens),
            )
            return self._tokens
        finally:
            self._in_flight = None


def _consume_resolution_error(task: asyncio.Task) -> None:
    # Every caller may have been cancelled before the failure landed.
    if not task.cancelled() and task.exception() is not None:
        logger.debug("roles.resolve.failed error=%r", task.exception())


def master(config: AuthConfig) -> Principal:
    return Principal(config, is_master=True)


def read_only(config: AuthConfig) -> Principal:
    return Principal(config, is_master=True, is_read_only=True)


def nobody(config: AuthConfig) -> Principal:
    return Principal(config, is_master=False)
