# Overview: Permission grants for the roles seeded by `flask system init`.
# Anything not listed stays False; the Admin role bypasses the table entirely.

ADMIN_ROLE_NAME = "Admin"

DEFAULT_ROLE_PERMISSIONS: dict[str, dict[str, list[str]]] = {
    "Seller": {
        "inventory": ["view", "add", "edit", "upload_photos", "condition_notes", "title_status"],
        "sold": ["view", "edit", "expenses_visibility", "arb", "arb_outcome_history"],
        "arb": ["access", "create", "update", "enter_outcomes", "enter_price_adjustment"],
        "title": ["status", "upload_documents", "missing_titles_dashboard"],
        "reports": ["sold_cars_weekly_count", "missing_titles", "inventory_summary"],
    },
    "Transporter": {
        "inventory": ["view", "update_location", "upload_photos", "condition_notes"],
        "arb": ["access", "transportation_details", "upload_documents"],
        "transportation": [
            "location_tracking",
            "transport_assignment",
            "transport_notes",
            "transport_cost_entry",
            "view_history",
        ],
    },
}

DEFAULT_ROLE_DESCRIPTIONS = {
    ADMIN_ROLE_NAME: "Full system access",
    "Seller": "Inventory, sales and arbitration work",
    "Transporter": "Vehicle movement, dispatch and condition reports",
}
