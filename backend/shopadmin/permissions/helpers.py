# Overview: Utility functions for permission lookups and validation.

from __future__ import annotations

from dataclasses import dataclass

from .definitions import PERMISSION_DEFINITIONS


@dataclass(frozen=True)
class PermissionDefinition:
    key: str
    label: str
    description: str | None
    group: str

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "label": self.label,
            "description": self.description,
            "group": self.group,
        }


def list_permissions() -> list[PermissionDefinition]:
    """The static catalog, in declaration order."""
    return [PermissionDefinition(*perm) for perm in PERMISSION_DEFINITIONS]


def get_all_permission_keys() -> list[str]:
    """Get list of all permission keys."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def get_permissions_by_group(group: str) -> list[PermissionDefinition]:
    """Get all permissions in a group."""
    return [PermissionDefinition(*perm) for perm in PERMISSION_DEFINITIONS if perm[3] == group]


def get_permission_definition(key: str) -> PermissionDefinition | None:
    """Get full definition for a permission key."""
    for perm in PERMISSION_DEFINITIONS:
        if perm[0] == key:
            return PermissionDefinition(*perm)
    return None


def validate_permission_key(key: str) -> bool:
    """Check if a permission key is in the catalog."""
    return key in get_all_permission_keys()
