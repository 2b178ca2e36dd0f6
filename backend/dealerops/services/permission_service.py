# Overview: Service-layer operations for permission checks.

"""
Permission Checking

WHY: Enforce role-based access control on the server, mirroring what the
dashboard hides client-side.

DESIGN PRINCIPLES:
- Fail closed: Deny by default, require explicit flag
- Admin bypass: legacy role "admin" or the "Admin" role passes every check
"""

from ..models import Profile
from ..permissions import (
    effective_permissions,
    has_any_permission,
    has_permission,
    is_admin,
)


class PermissionDeniedError(Exception):
    """Raised when a profile lacks a required permission."""
    pass


def profile_has_permission(profile: Profile | None, path: str) -> bool:
    if is_admin(profile):
        return True
    return has_permission(effective_permissions(profile), path)


def profile_has_any_permission(profile: Profile | None, paths) -> bool:
    if is_admin(profile):
        return True
    return has_any_permission(effective_permissions(profile), paths)


def require_permission(profile: Profile | None, path: str) -> None:
    """Raise PermissionDeniedError unless the profile holds `path`."""
    if not profile_has_permission(profile, path):
        raise PermissionDeniedError(f"Missing permission: {path}")


def require_admin(profile: Profile | None) -> None:
    if not is_admin(profile):
        raise PermissionDeniedError("Forbidden - Admin access required")
