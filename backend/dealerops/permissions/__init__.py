# Overview: Permission system package.
# Re-exports all public APIs so callers import from dealerops.permissions.

from .categories import PermissionModule, ALL_MODULES
from .definitions import (
    PERMISSION_DEFINITIONS,
    INVENTORY_PERMISSIONS,
    SOLD_PERMISSIONS,
    ARB_PERMISSIONS,
    TITLE_PERMISSIONS,
    TRANSPORTATION_PERMISSIONS,
    ACCOUNTING_PERMISSIONS,
    REPORTS_PERMISSIONS,
    USER_MANAGEMENT_PERMISSIONS,
)
from .roles import ADMIN_ROLE_NAME, DEFAULT_ROLE_PERMISSIONS, DEFAULT_ROLE_DESCRIPTIONS
from .helpers import (
    default_permissions,
    full_permissions,
    normalize_permissions,
    permissions_from_grants,
    has_permission,
    has_all_permissions,
    has_any_permission,
    validate_permission_path,
    is_admin,
    effective_permissions,
)

__all__ = [
    "PermissionModule",
    "ALL_MODULES",
    "PERMISSION_DEFINITIONS",
    "INVENTORY_PERMISSIONS",
    "SOLD_PERMISSIONS",
    "ARB_PERMISSIONS",
    "TITLE_PERMISSIONS",
    "TRANSPORTATION_PERMISSIONS",
    "ACCOUNTING_PERMISSIONS",
    "REPORTS_PERMISSIONS",
    "USER_MANAGEMENT_PERMISSIONS",
    "ADMIN_ROLE_NAME",
    "DEFAULT_ROLE_PERMISSIONS",
    "DEFAULT_ROLE_DESCRIPTIONS",
    "default_permissions",
    "full_permissions",
    "normalize_permissions",
    "permissions_from_grants",
    "has_permission",
    "has_all_permissions",
    "has_any_permission",
    "validate_permission_path",
    "is_admin",
    "effective_permissions",
]
