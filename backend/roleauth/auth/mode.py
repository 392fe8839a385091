from __future__ import annotations

from enum import Enum
from typing import Iterable

from ..domain.permissions import CustomRoleDefinition


class ResolutionMode(str, Enum):
    LEGACY = "legacy"
    CUSTOM = "custom"


def select_mode(definitions: Iterable[CustomRoleDefinition]) -> ResolutionMode:
    """Custom mode is switched on by a stored ``root``/``["all"]`` definition."""
    if any(definition.is_root_sentinel for definition in definitions):
        return ResolutionMode.CUSTOM
    return ResolutionMode.LEGACY
