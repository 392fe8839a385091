"""
Role resolution engine.

Given a principal and a requested operation, computes the role tokens the
principal holds and rejects operations it may not perform:

- mode selection between the legacy role tree and space-scoped custom roles
- transitive legacy role membership
- space pointer resolution for arbitrary targets
- custom role tokens with create gating
"""
from .custom_roles import CustomRoleEngine, is_create_request
from .legacy_roles import LegacyRoleGraphResolver
from .mode import ResolutionMode, select_mode
from .principal import AuthConfig, Principal, ResolutionState, master, nobody, read_only
from .space_pointer import SpacePointerResolver

__all__ = [
    "AuthConfig",
    "CustomRoleEngine",
    "LegacyRoleGraphResolver",
    "Principal",
    "ResolutionMode",
    "ResolutionState",
    "SpacePointerResolver",
    "is_create_request",
    "master",
    "nobody",
    "read_only",
    "select_mode",
]
