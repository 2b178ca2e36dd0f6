# Overview: Pure lookups over nested permission objects.
#
# A permission object is {module: {flag: bool}}. Every check is
# default-deny: a missing object, module or flag reads as False.

from __future__ import annotations

from typing import Any, Iterable

from .definitions import PERMISSION_DEFINITIONS
from .roles import ADMIN_ROLE_NAME


def default_permissions() -> dict[str, dict[str, bool]]:
    """All-false template containing every module and flag."""
    return {
        module: {flag: False for flag in flags}
        for module, flags in PERMISSION_DEFINITIONS.items()
    }


def full_permissions() -> dict[str, dict[str, bool]]:
    """All-true object, used to describe what an admin can do."""
    return {
        module: {flag: True for flag in flags}
        for module, flags in PERMISSION_DEFINITIONS.items()
    }


def normalize_permissions(permissions: Any) -> dict[str, dict[str, bool]]:
    """
    Merge a client-supplied permission object over the all-false template.

    Unknown modules and flags are dropped; values are coerced to bool.
    The result always contains all eight modules.
    """
    result = default_permissions()
    if not isinstance(permissions, dict):
        return result
    for module, flags in permissions.items():
        if module not in result or not isinstance(flags, dict):
            continue
        for flag, value in flags.items():
            if flag in result[module]:
                result[module][flag] = value is True
    return result


def permissions_from_grants(grants: dict[str, Iterable[str]]) -> dict[str, dict[str, bool]]:
    """Build a full permission object from {module: [flags granted]}."""
    result = default_permissions()
    for module, flags in grants.items():
        for flag in flags:
            if flag in result.get(module, {}):
                result[module][flag] = True
    return result


def has_permission(permissions: dict | None, path: str) -> bool:
    """
    True only when permissions[module][flag] is literally True.

    path is "module.permission"; anything malformed is a denial.
    """
    if not permissions or not isinstance(permissions, dict):
        return False
    module, sep, flag = (path or "").partition(".")
    if not sep or not module or not flag:
        return False
    section = permissions.get(module)
    if not isinstance(section, dict):
        return False
    return section.get(flag) is True


def has_all_permissions(permissions: dict | None, paths: Iterable[str]) -> bool:
    return all(has_permission(permissions, p) for p in paths)


def has_any_permission(permissions: dict | None, paths: Iterable[str]) -> bool:
    return any(has_permission(permissions, p) for p in paths)


def validate_permission_path(path: str) -> bool:
    """Check that a dotted path names a real module flag."""
    module, _, flag = (path or "").partition(".")
    return flag in PERMISSION_DEFINITIONS.get(module, ())


def is_admin(profile) -> bool:
    """
    Admin iff the legacy role string is "admin" or the assigned role is "Admin".

    Accepts a Profile model (or anything with .role / .role_data) or None.
    """
    if profile is None:
        return False
    if getattr(profile, "role", None) == "admin":
        return True
    role_data = getattr(profile, "role_data", None)
    return role_data is not None and getattr(role_data, "name", None) == ADMIN_ROLE_NAME


def effective_permissions(profile) -> dict[str, dict[str, bool]]:
    """Admin gets every flag; everyone else gets their role's object (or none)."""
    if profile is None:
        return default_permissions()
    if is_admin(profile):
        return full_permissions()
    role_data = getattr(profile, "role_data", None)
    if role_data is None:
        return default_permissions()
    return normalize_permissions(role_data.permissions)
