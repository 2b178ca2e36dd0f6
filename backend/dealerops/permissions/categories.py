# Overview: Permission module constants for grouping related permission flags.


class PermissionModule:
    """Top-level permission modules, one per dashboard section."""
    INVENTORY = "inventory"
    SOLD = "sold"
    ARB = "arb"
    TITLE = "title"
    TRANSPORTATION = "transportation"
    ACCOUNTING = "accounting"
    REPORTS = "reports"
    USER_MANAGEMENT = "user_management"


ALL_MODULES = (
    PermissionModule.INVENTORY,
    PermissionModule.SOLD,
    PermissionModule.ARB,
    PermissionModule.TITLE,
    PermissionModule.TRANSPORTATION,
    PermissionModule.ACCOUNTING,
    PermissionModule.REPORTS,
    PermissionModule.USER_MANAGEMENT,
)
