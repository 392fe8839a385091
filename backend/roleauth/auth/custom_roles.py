from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from ..domain.permissions import Access, CustomRoleDefinition, PermissionToken, role_token
from ..domain.pointers import SpaceRef, UserRef
from ..domain.ports.query import QueryExecutor, Record
from ..errors import OperationForbiddenError
from .names import DEFAULT_SPACE_CLASS, OBJECT_ID_FIELD, SPACE_FIELD, SPACE_MEMBERSHIP_CLASS
from .space_pointer import SpacePointerResolver

logger = logging.getLogger(__name__)


def is_create_request(
    data: Mapping[str, Any] | None, query: Mapping[str, Any] | None
) -> bool:
    """A write is a create when neither payload nor query names an existing object."""
    return not (data or {}).get(OBJECT_ID_FIELD) and not (query or {}).get(OBJECT_ID_FIELD)


class CustomRoleEngine:
    """Space-scoped custom roles.

    Tokens come in two layers. Global tokens (``role:<Class>-<read|write>``)
    are derived from the role names listed on the user record. Scoped tokens
    (``role:<Class>-<spaceId>-<read|write>``) are derived from the user's
    membership rows in the space the operation targets. A create needs a
    ``create`` permission in the scoped layer and any write permission for
    the class in the global fallback.
    """

    def __init__(
        self,
        executor: QueryExecutor,
        space_resolver: SpacePointerResolver,
        *,
        space_class_name: str = DEFAULT_SPACE_CLASS,
    ):
        self.executor = executor
        self.space_resolver = space_resolver
        self.space_class_name = space_class_name

    async def resolve(
        self,
        user: UserRef,
        class_name: str,
        data: Mapping[str, Any] | None,
        query: Mapping[str, Any] | None,
        rest_query: Mapping[str, Any] | None,
        definitions: Iterable[CustomRoleDefinition],
    ) -> set[str]:
        definitions = list(definitions)
        applicable = [d for d in definitions if d.applies_to(class_name)]
        global_permissions = self._global_permissions(user, definitions)
        global_tokens = {role_token(p.subject, p.access.value) for p in global_permissions}
        creating = is_create_request(data, query)

        space = await self.space_resolver.resolve_space(class_name, data, query, rest_query)
        if not applicable or space is None:
            logger.debug(
                "roles.custom.global_fallback user_id=%s class_name=%s applicable=%d has_space=%s",
                user.id,
                class_name,
                len(applicable),
                space is not None,
            )
            if creating and not any(
                p.subject == class_name and p.access is Access.WRITE for p in global_permissions
            ):
                logger.warning(
                    "roles.custom.forbidden_create user_id=%s class_name=%s", user.id, class_name
                )
                raise OperationForbiddenError.for_class(user.id, class_name)
            return global_tokens

        memberships = await self.executor.execute(
            SPACE_MEMBERSHIP_CLASS,
            {"user": user.pointer.to_json(), SPACE_FIELD: space.to_json()},
        )
        if not memberships:
            logger.warning(
                "roles.custom.no_membership user_id=%s space_id=%s class_name=%s",
                user.id,
                space.object_id,
                class_name,
            )
            raise OperationForbiddenError.for_space(user.id, space.object_id, class_name)

        scoped = self._scoped_tokens(memberships, applicable, class_name, space)
        if creating and not any(scoped.values()):
            logger.warning(
                "roles.custom.forbidden_create user_id=%s class_name=%s space_id=%s",
                user.id,
                class_name,
                space.object_id,
            )
            raise OperationForbiddenError.for_class(user.id, class_name)

        return set(scoped) | global_tokens

    @staticmethod
    def _global_permissions(
        user: UserRef, definitions: list[CustomRoleDefinition]
    ) -> list[PermissionToken]:
        assigned = set(user.user_roles)
        return [
            permission
            for definition in definitions
            if definition.role in assigned
            for permission in definition.permissions
        ]

    def _scoped_tokens(
        self,
        memberships: list[Record],
        applicable: list[CustomRoleDefinition],
        class_name: str,
        space: SpaceRef,
    ) -> dict[str, bool]:
        """Map each membership to scoped tokens, flagging create-derived ones."""
        by_role: dict[str, list[CustomRoleDefinition]] = {}
        for definition in applicable:
            by_role.setdefault(definition.role, []).append(definition)

        tokens: dict[str, bool] = {}
        for membership in memberships:
            for definition in by_role.get(membership.get("role"), ()):
                for permission in definition.permissions:
                    token = self._scoped_token(permission, class_name, space)
                    if token is None:
                        continue
                    tokens[token] = tokens.get(token, False) or permission.is_create
        return tokens

    def _scoped_token(
        self, permission: PermissionToken, class_name: str, space: SpaceRef
    ) -> str | None:
        if permission.subject == self.space_class_name:
            # Space container permissions keep their raw action for older ACLs.
            return role_token(permission.subject, space.object_id, permission.action.value)
        if permission.subject == class_name:
            return role_token(class_name, space.object_id, permission.access.value)
        return None
