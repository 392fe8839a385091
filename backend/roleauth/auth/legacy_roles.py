from __future__ import annotations

import logging

from ..domain.permissions import role_token
from ..domain.pointers import Pointer, UserRef
from ..domain.ports.query import QueryExecutor, Record, WhereClause
from ..domain.ports.role_cache import RoleCache
from .names import ROLE_CLASS

logger = logging.getLogger(__name__)


def _role_pointer_clause(field_name: str, role_ids: list[str]) -> WhereClause:
    pointers = [Pointer(ROLE_CLASS, role_id).to_json() for role_id in role_ids]
    if len(pointers) == 1:
        return {field_name: pointers[0]}
    return {field_name: {"$in": pointers}}


class LegacyRoleGraphResolver:
    """Transitive role membership over the flat ``_Role`` tree.

    A role listed in another role's ``roles`` array passes its members up to
    that role. The walk is breadth-first with one batched query per level,
    so the number of round trips follows the depth of the graph.
    """

    def __init__(self, executor: QueryExecutor, role_cache: RoleCache):
        self.executor = executor
        self.role_cache = role_cache

    async def resolve(self, user: UserRef) -> set[str]:
        cached = await self.role_cache.get(user.id)
        if cached is not None:
            logger.debug("roles.legacy.cache_hit user_id=%s count=%d", user.id, len(cached))
            return set(cached)

        direct = await self.executor.execute(ROLE_CLASS, {"users": user.pointer.to_json()})
        if not direct:
            logger.debug("roles.legacy.no_direct_roles user_id=%s", user.id)
            return set()

        names = await self._expand(direct)
        logger.debug("roles.legacy.resolved user_id=%s roles=%d", user.id, len(names))
        return {role_token(name) for name in names}

    async def _expand(self, direct: list[Record]) -> set[str]:
        visited: set[str] = set()
        names: set[str] = set()
        frontier = self._collect(direct, visited, names)

        while frontier:
            parents = await self.executor.execute(
                ROLE_CLASS, _role_pointer_clause("roles", frontier)
            )
            # Roles already counted are cut here, which also ends cycles.
            frontier = self._collect(parents, visited, names)

        return names

    @staticmethod
    def _collect(records: list[Record], visited: set[str], names: set[str]) -> list[str]:
        found: list[str] = []
        for record in records:
            role_id = record.get("objectId")
            if not role_id or role_id in visited:
                continue
            visited.add(role_id)
            found.append(role_id)
            name = record.get("name")
            if name:
                names.add(name)
        return found
