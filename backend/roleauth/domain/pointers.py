from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from ..errors import ValidationError

USER_CLASS = "_User"
ROLE_CLASS = "_Role"


@dataclass(frozen=True)
class Pointer:
    """Reference to a stored record by class and object id."""

    class_name: str
    object_id: str

    @classmethod
    def from_json(cls, value: Any) -> "Pointer":
        pointer = cls.parse(value)
        if pointer is None:
            raise ValidationError(f"Invalid pointer: {value!r}")
        return pointer

    @classmethod
    def parse(cls, value: Any) -> "Pointer | None":
        """Return a Pointer for a pointer-shaped mapping, otherwise None."""
        if isinstance(value, Pointer):
            return value
        if not isinstance(value, Mapping):
            return None
        if value.get("__type", "Pointer") != "Pointer":
            return None
        class_name = value.get("className")
        object_id = value.get("objectId")
        if not isinstance(class_name, str) or not class_name:
            return None
        if not isinstance(object_id, str) or not object_id:
            return None
        return cls(class_name=class_name, object_id=object_id)

    def to_json(self) -> dict[str, str]:
        return {
            "__type": "Pointer",
            "className": self.class_name,
            "objectId": self.object_id,
        }


@dataclass(frozen=True)
class UserRef:
    id: str
    user_roles: tuple[str, ...] = field(default_factory=tuple)
    general_role: str | None = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "UserRef":
        user_id = record.get("objectId")
        if not isinstance(user_id, str) or not user_id:
            raise ValidationError("User record is missing objectId")
        raw_roles = record.get("userRoles") or []
        general_role = record.get("generalRole")
        return cls(
            id=user_id,
            user_roles=tuple(r for r in raw_roles if isinstance(r, str)),
            general_role=general_role if isinstance(general_role, str) else None,
        )

    @property
    def pointer(self) -> Pointer:
        return Pointer(USER_CLASS, self.id)


SpaceRef = Pointer
