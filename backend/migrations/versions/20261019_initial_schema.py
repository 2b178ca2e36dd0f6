"""Initial dealer-ops schema

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


NOW = sa.text("(CURRENT_TIMESTAMP)")
MONEY = sa.Numeric(12, 2)


def _timestamps(updated: bool = True):
    cols = [sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False)]
    if updated:
        cols.append(sa.Column("updated_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False))
    return cols


def upgrade():
    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(64), nullable=False),
        sa.Column("description", sa.String(255), nullable=True),
        sa.Column("is_system_role", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("permissions", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("roles", schema=None) as batch_op:
        batch_op.create_index("ix_roles_name", ["name"], unique=True)

    op.create_table(
        "profiles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(32), nullable=False, server_default="seller"),
        sa.Column("role_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="active"),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("profiles", schema=None) as batch_op:
        batch_op.create_index("ix_profiles_email", ["email"], unique=True)
        batch_op.create_index("ix_profiles_username", ["username"], unique=True)
        batch_op.create_index("ix_profiles_role_id", ["role_id"], unique=False)
        batch_op.create_index("ix_profiles_status", ["status"], unique=False)

    op.create_table(
        "session_tokens",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("profile_id", sa.Integer(), nullable=False),
        sa.Column("impersonator_profile_id", sa.Integer(), nullable=True),
        sa.Column("token_hash", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_revoked", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_reason", sa.String(255), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.ForeignKeyConstraint(["profile_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["impersonator_profile_id"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("session_tokens", schema=None) as batch_op:
        batch_op.create_index("ix_session_tokens_profile_id", ["profile_id"], unique=False)
        batch_op.create_index("ix_session_tokens_token_hash", ["token_hash"], unique=True)
        batch_op.create_index("ix_session_tokens_expires_at", ["expires_at"], unique=False)
        batch_op.create_index("ix_session_tokens_is_revoked", ["is_revoked"], unique=False)
        batch_op.create_index("ix_session_tokens_profile_active", ["profile_id", "is_revoked"], unique=False)

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("actor_id", sa.Integer(), nullable=True),
        sa.Column("action", sa.String(64), nullable=False),
        sa.Column("target_type", sa.String(64), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["actor_id"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("audit_logs", schema=None) as batch_op:
        batch_op.create_index("ix_audit_logs_actor_id", ["actor_id"], unique=False)
        batch_op.create_index("ix_audit_logs_action", ["action"], unique=False)
        batch_op.create_index("ix_audit_logs_actor_created", ["actor_id", "created_at"], unique=False)

    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("vin", sa.String(17), nullable=True),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("make", sa.String(64), nullable=False),
        sa.Column("model", sa.String(64), nullable=False),
        sa.Column("trim", sa.String(128), nullable=True),
        sa.Column("exterior_color", sa.String(64), nullable=True),
        sa.Column("interior_color", sa.String(64), nullable=True),
        sa.Column("status", sa.String(32), nullable=False, server_default="Pending"),
        sa.Column("odometer", sa.Integer(), nullable=True),
        sa.Column("title_status", sa.String(64), nullable=True),
        sa.Column("psi_status", sa.String(64), nullable=True),
        sa.Column("dealshield_arbitration_status", sa.String(128), nullable=True),
        sa.Column("bought_price", MONEY, nullable=True),
        sa.Column("buy_fee", MONEY, nullable=True),
        sa.Column("sale_invoice", MONEY, nullable=True),
        sa.Column("other_charges", MONEY, nullable=True),
        sa.Column("total_vehicle_cost", MONEY, nullable=True),
        sa.Column("sale_date", sa.Date(), nullable=True),
        sa.Column("lane", sa.String(32), nullable=True),
        sa.Column("run", sa.String(32), nullable=True),
        sa.Column("channel", sa.String(64), nullable=True),
        sa.Column("facilitating_location", sa.String(255), nullable=True),
        sa.Column("vehicle_location", sa.String(255), nullable=True),
        sa.Column("pickup_location_address1", sa.String(255), nullable=True),
        sa.Column("pickup_location_city", sa.String(128), nullable=True),
        sa.Column("pickup_location_state", sa.String(64), nullable=True),
        sa.Column("pickup_location_zip", sa.String(16), nullable=True),
        sa.Column("pickup_location_phone", sa.String(32), nullable=True),
        sa.Column("seller_name", sa.String(255), nullable=True),
        sa.Column("buyer_dealership", sa.String(255), nullable=True),
        sa.Column("buyer_contact_name", sa.String(255), nullable=True),
        sa.Column("buyer_aa_id", sa.String(64), nullable=True),
        sa.Column("buyer_reference", sa.String(128), nullable=True),
        sa.Column("sale_invoice_status", sa.String(16), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["created_by"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("vehicles", schema=None) as batch_op:
        batch_op.create_index("ix_vehicles_vin", ["vin"], unique=True)
        batch_op.create_index("ix_vehicles_make", ["make"], unique=False)
        batch_op.create_index("ix_vehicles_model", ["model"], unique=False)
        batch_op.create_index("ix_vehicles_status", ["status"], unique=False)
        batch_op.create_index("ix_vehicles_title_status", ["title_status"], unique=False)
        batch_op.create_index("ix_vehicles_sale_date", ["sale_date"], unique=False)
        batch_op.create_index("ix_vehicles_status_created", ["status", "created_at"], unique=False)

    op.create_table(
        "vehicle_arb_records",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("vehicle_id", sa.Integer(), nullable=False),
        sa.Column("arb_type", sa.String(32), nullable=False),
        sa.Column("outcome", sa.String(32), nullable=False, server_default="Pending"),
        sa.Column("adjustment_amount", MONEY, nullable=True),
        sa.Column("transport_type", sa.String(64), nullable=True),
        sa.Column("transport_location", sa.String(255), nullable=True),
        sa.Column("transport_date", sa.Date(), nullable=True),
        sa.Column("transport_cost", MONEY, nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["vehicle_id"], ["vehicles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("vehicle_arb_records", schema=None) as batch_op:
        batch_op.create_index("ix_vehicle_arb_records_vehicle_id", ["vehicle_id"], unique=False)
        batch_op.create_index("ix_arb_vehicle_type_outcome", ["vehicle_id", "arb_type", "outcome"], unique=False)

    op.create_table(
        "vehicle_expenses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("vehicle_id", sa.Integer(), nullable=False),
        sa.Column("expense_description", sa.String(255), nullable=False),
        sa.Column("expense_date", sa.Date(), nullable=False),
        sa.Column("cost", MONEY, nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["vehicle_id"], ["vehicles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("vehicle_expenses", schema=None) as batch_op:
        batch_op.create_index("ix_vehicle_expenses_vehicle_id", ["vehicle_id"], unique=False)

    op.create_table(
        "vehicle_notes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("vehicle_id", sa.Integer(), nullable=False),
        sa.Column("note_text", sa.Text(), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["vehicle_id"], ["vehicles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("vehicle_notes", schema=None) as batch_op:
        batch_op.create_index("ix_vehicle_notes_vehicle_id", ["vehicle_id"], unique=False)

    op.create_table(
        "vehicle_images",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("vehicle_id", sa.Integer(), nullable=False),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_url", sa.String(1024), nullable=False),
        sa.Column("storage_path", sa.String(512), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column("file_type", sa.String(128), nullable=False),
        sa.Column("uploaded_by", sa.Integer(), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["vehicle_id"], ["vehicles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["uploaded_by"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("vehicle_images", schema=None) as batch_op:
        batch_op.create_index("ix_vehicle_images_vehicle_id", ["vehicle_id"], unique=False)

    op.create_table(
        "vehicle_dispatch",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("vehicle_id", sa.Integer(), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("transport_company", sa.String(255), nullable=False),
        sa.Column("transport_cost", MONEY, nullable=True),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("state", sa.String(64), nullable=True),
        sa.Column("zip", sa.String(16), nullable=True),
        sa.Column("ac_assign_carrier", sa.String(255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("file_url", sa.String(1024), nullable=True),
        sa.Column("file_name", sa.String(255), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["vehicle_id"], ["vehicles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("vehicle_dispatch", schema=None) as batch_op:
        batch_op.create_index("ix_vehicle_dispatch_vehicle_id", ["vehicle_id"], unique=False)

    op.create_table(
        "vehicle_assessments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("vehicle_id", sa.Integer(), nullable=False),
        sa.Column("assessment_date", sa.Date(), nullable=False),
        sa.Column("assessment_time", sa.String(8), nullable=False),
        sa.Column("conducted_name", sa.String(255), nullable=False),
        sa.Column("miles_in", sa.Integer(), nullable=True),
        sa.Column("color", sa.String(64), nullable=True),
        sa.Column("cr_number", sa.String(64), nullable=True),
        sa.Column("damage_markers", sa.JSON(), nullable=False),
        sa.Column("pre_accident_defects", sa.Text(), nullable=True),
        sa.Column("other_defects", sa.Text(), nullable=True),
        sa.Column("work_requested", sa.JSON(), nullable=False),
        sa.Column("owner_instructions", sa.JSON(), nullable=False),
        sa.Column("fuel_level", sa.String(16), nullable=True),
        sa.Column("assessment_file_url", sa.String(1024), nullable=True),
        sa.Column("assessment_file_name", sa.String(255), nullable=True),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="Completed"),
        sa.Column("created_by", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["vehicle_id"], ["vehicles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("vehicle_assessments", schema=None) as batch_op:
        batch_op.create_index("ix_vehicle_assessments_vehicle_id", ["vehicle_id"], unique=False)

    op.create_table(
        "vehicle_timeline",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("vehicle_id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(128), nullable=False),
        sa.Column("action_date", sa.Date(), nullable=False),
        sa.Column("action_time", sa.String(8), nullable=False),
        sa.Column("cost", MONEY, nullable=True),
        sa.Column("expense_value", MONEY, nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("status", sa.String(32), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["vehicle_id"], ["vehicles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("vehicle_timeline", schema=None) as batch_op:
        batch_op.create_index("ix_timeline_vehicle_created", ["vehicle_id", "created_at"], unique=False)

    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("task_name", sa.String(255), nullable=False),
        sa.Column("vehicle_id", sa.Integer(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("category", sa.String(32), nullable=False, server_default="general"),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("assigned_to", sa.Integer(), nullable=True),
        sa.Column("assigned_by", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["vehicle_id"], ["vehicles.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["assigned_to"], ["profiles.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["assigned_by"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("tasks", schema=None) as batch_op:
        batch_op.create_index("ix_tasks_vehicle_id", ["vehicle_id"], unique=False)
        batch_op.create_index("ix_tasks_status", ["status"], unique=False)
        batch_op.create_index("ix_tasks_assignee_status", ["assigned_to", "status"], unique=False)

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("event_time", sa.String(8), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="scheduled"),
        sa.Column("assigned_to", sa.Integer(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["assigned_to"], ["profiles.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["created_by"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("events", schema=None) as batch_op:
        batch_op.create_index("ix_events_status", ["status"], unique=False)
        batch_op.create_index("ix_events_assigned_to", ["assigned_to"], unique=False)
        batch_op.create_index("ix_events_date_time", ["event_date", "event_time"], unique=False)

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sender_id", sa.Integer(), nullable=False),
        sa.Column("receiver_id", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["sender_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["receiver_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("messages", schema=None) as batch_op:
        batch_op.create_index("ix_messages_receiver_id", ["receiver_id"], unique=False)
        batch_op.create_index("ix_messages_pair_created", ["sender_id", "receiver_id", "created_at"], unique=False)

    op.create_table(
        "dropdown_settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("category", sa.String(64), nullable=False),
        sa.Column("label", sa.String(255), nullable=False),
        sa.Column("value", sa.String(255), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_by", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["created_by"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("category", "label", name="uq_dropdown_settings_category_label"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("dropdown_settings", schema=None) as batch_op:
        batch_op.create_index("ix_dropdown_settings_category_order", ["category", "display_order"], unique=False)


def downgrade():
    for table in (
        "dropdown_settings",
        "messages",
        "events",
        "tasks",
        "vehicle_timeline",
        "vehicle_assessments",
        "vehicle_dispatch",
        "vehicle_images",
        "vehicle_notes",
        "vehicle_expenses",
        "vehicle_arb_records",
        "vehicles",
        "audit_logs",
        "session_tokens",
        "profiles",
        "roles",
    ):
        op.drop_table(table)
