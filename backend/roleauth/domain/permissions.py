"""
Permission tokens and custom role definitions.

Stored definitions carry permissions as ``"<className>-<action>"`` strings.
They are parsed once, when records come back from the data store, into
``PermissionToken`` values; the rest of the engine never splits strings.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Final, Mapping

from ..errors import ValidationError

logger = logging.getLogger(__name__)

ROOT_ROLE: Final[str] = "root"
ROOT_PERMISSIONS: Final[tuple[str, ...]] = ("all",)


class Action(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    READ = "read"

    @property
    def access(self) -> "Access":
        if self is Action.READ:
            return Access.READ
        return Access.WRITE


class Access(str, Enum):
    READ = "read"
    WRITE = "write"


@dataclass(frozen=True)
class PermissionToken:
    subject: str
    action: Action

    @classmethod
    def parse(cls, raw: str) -> "PermissionToken":
        if not isinstance(raw, str):
            raise ValidationError(f"Permission must be a string, got {type(raw).__name__}")
        subject, sep, action = raw.rpartition("-")
        if not sep or not subject:
            raise ValidationError(f"Malformed permission '{raw}'")
        try:
            return cls(subject=subject, action=Action(action))
        except ValueError:
            raise ValidationError(f"Unknown action in permission '{raw}'") from None

    @property
    def access(self) -> Access:
        return self.action.access

    @property
    def is_create(self) -> bool:
        return self.action is Action.CREATE

    def __str__(self) -> str:
        return f"{self.subject}-{self.action.value}"


@dataclass(frozen=True)
class CustomRoleDefinition:
    role: str
    raw_permissions: tuple[str, ...]
    permissions: tuple[PermissionToken, ...]

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "CustomRoleDefinition":
        role = record.get("role")
        if not isinstance(role, str):
            role = ""
        raw_permissions = tuple(record.get("permissions") or ())
        tokens: list[PermissionToken] = []
        for raw in raw_permissions:
            if role == ROOT_ROLE:
                continue
            try:
                tokens.append(PermissionToken.parse(raw))
            except ValidationError as exc:
                logger.warning(
                    "role_definition.skip_permission role=%s reason=%s", role, exc.message
                )
        return cls(role=role, raw_permissions=raw_permissions, permissions=tuple(tokens))

    @property
    def is_root_sentinel(self) -> bool:
        return self.role == ROOT_ROLE and self.raw_permissions == ROOT_PERMISSIONS

    def applies_to(self, class_name: str) -> bool:
        """True when any permission names a class starting with ``class_name``.

        ``Post`` therefore also picks up ``PostComment`` definitions; scoped
        tokens are still only minted for the exact class.
        """
        return any(str(p).startswith(class_name) for p in self.permissions)


def role_token(*parts: str) -> str:
    """Build a resolved token: ``role_token("Post", "c1", "read") -> "role:Post-c1-read"``."""
    return "role:" + "-".join(parts)
