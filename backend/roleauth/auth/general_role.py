from __future__ import annotations

import logging

from ..domain.permissions import role_token
from ..domain.pointers import UserRef
from ..domain.ports.query import QueryExecutor
from .names import DEFAULT_GENERAL_ROLE, USER_ROLE_DEFINITION_CLASS

logger = logging.getLogger(__name__)


async def load_general_role_tokens(executor: QueryExecutor, user: UserRef) -> set[str]:
    """Tokens granted to every user through their general role (direct messaging etc.)."""
    name = user.general_role or DEFAULT_GENERAL_ROLE
    records = await executor.execute(USER_ROLE_DEFINITION_CLASS, {"name": name}, limit=1)
    if not records:
        logger.debug("roles.general.missing user_id=%s role=%s", user.id, name)
        return set()
    permissions = records[0].get("permissions") or []
    return {role_token(p) for p in permissions if isinstance(p, str) and p}
