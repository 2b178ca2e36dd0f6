# Overview: All permission flags organized by module.
# Each module maps to an ordered tuple of flag names; a role's permission
# object is module -> flag -> bool and always carries every flag below.

from .categories import PermissionModule


INVENTORY_PERMISSIONS = (
    "view",
    "add",
    "edit",
    "upload_photos",
    "update_location",
    "condition_notes",
    "purchase_details",
    "title_status",
)

SOLD_PERMISSIONS = (
    "view",
    "edit",
    "profit_visibility",
    "expenses_visibility",
    "transportation_costs",
    "arb",
    "adjust_price",
    "arb_outcome_history",
)

ARB_PERMISSIONS = (
    "access",
    "create",
    "update",
    "enter_outcomes",
    "enter_price_adjustment",
    "transportation_details",
    "upload_documents",
)

TITLE_PERMISSIONS = (
    "status",
    "upload_documents",
    "missing_titles_dashboard",
    "days_missing_tracker",
)

TRANSPORTATION_PERMISSIONS = (
    "location_tracking",
    "transport_assignment",
    "transport_notes",
    "transport_cost_entry",
    "view_history",
)

ACCOUNTING_PERMISSIONS = (
    "profit_per_car",
    "weekly_profit_summary",
    "monthly_profit_summary",
    "total_pl_summary",
    "accounting_page",
    "expenses_section",
    "price_adjustment_log",
    "export_reports",
)

REPORTS_PERMISSIONS = (
    "profit_per_car",
    "weekly_profit_loss",
    "monthly_profit_loss",
    "arb_activity",
    "arb_transportation_cost",
    "price_adjustment_summary",
    "inventory_summary",
    "sold_cars_weekly_count",
    "missing_titles",
    "average_transportation_cost",
    "average_arb_adjustment_percentage",
)

USER_MANAGEMENT_PERMISSIONS = (
    "view_users",
    "create_roles",
    "edit_roles",
    "assign_roles",
    "activity_logs",
    "permission_editing",
)


PERMISSION_DEFINITIONS: dict[str, tuple[str, ...]] = {
    PermissionModule.INVENTORY: INVENTORY_PERMISSIONS,
    PermissionModule.SOLD: SOLD_PERMISSIONS,
    PermissionModule.ARB: ARB_PERMISSIONS,
    PermissionModule.TITLE: TITLE_PERMISSIONS,
    PermissionModule.TRANSPORTATION: TRANSPORTATION_PERMISSIONS,
    PermissionModule.ACCOUNTING: ACCOUNTING_PERMISSIONS,
    PermissionModule.REPORTS: REPORTS_PERMISSIONS,
    PermissionModule.USER_MANAGEMENT: USER_MANAGEMENT_PERMISSIONS,
}
