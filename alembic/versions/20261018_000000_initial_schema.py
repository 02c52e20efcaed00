"""Initial schema for Waybill Ledger

Revision ID: 20261018_000000
Revises: None
Create Date: 2026-10-18 00:00:00.000000

This is the initial migration that creates every table of the service:
- Tenancy: organizations and users
- Dictionaries: drivers, vehicles, fuel cards and stock items
- Stock ledger: stock locations and stock movements
- Blanks: blank batches and blanks
- Waybills with their fuel lines and routes
- Period locks, the audit log and key/value settings

Timestamps are stored as naive UTC.

Revision format: YYYYMMDD_HHMMSS_description

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261018_000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _org_column() -> sa.Column:
    return sa.Column("organization_id", sa.String(64), sa.ForeignKey("organizations.id"), nullable=False)


def upgrade() -> None:
    """Create all tables."""

    op.create_table(
        "organizations",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("inn", sa.String(32), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "drivers",
        sa.Column("id", sa.String(64), nullable=False),
        _org_column(),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("personnel_number", sa.String(64), nullable=True),
        sa.Column("license_number", sa.String(64), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_drivers_organization_id", "organization_id"),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.String(64), nullable=False),
        _org_column(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(32), nullable=False),
        sa.Column("driver_id", sa.String(64), sa.ForeignKey("drivers.id"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_users_organization_id", "organization_id"),
        sa.Index("ix_users_email", "email", unique=True),
    )

    op.create_table(
        "stock_items",
        sa.Column("id", sa.String(64), nullable=False),
        _org_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("code", sa.String(64), nullable=True),
        sa.Column("unit", sa.String(16), nullable=False, server_default="l"),
        sa.Column("is_fuel", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_stock_items_organization_id", "organization_id"),
    )

    op.create_table(
        "vehicles",
        sa.Column("id", sa.String(64), nullable=False),
        _org_column(),
        sa.Column("registration_number", sa.String(32), nullable=False),
        sa.Column("brand", sa.String(128), nullable=True),
        sa.Column("model", sa.String(128), nullable=True),
        sa.Column("fuel_stock_item_id", sa.String(64), sa.ForeignKey("stock_items.id"), nullable=True),
        sa.Column("summer_rate", sa.Numeric(8, 2), nullable=True),
        sa.Column("winter_rate", sa.Numeric(8, 2), nullable=True),
        sa.Column("city_increase_percent", sa.Numeric(6, 2), nullable=True),
        sa.Column("warming_increase_percent", sa.Numeric(6, 2), nullable=True),
        sa.Column("tank_capacity", sa.Numeric(10, 2), nullable=True),
        sa.Column("mileage", sa.Numeric(12, 1), nullable=False, server_default="0"),
        sa.Column("current_fuel", sa.Numeric(14, 3), nullable=False, server_default="0"),
        sa.Column("assigned_driver_id", sa.String(64), sa.ForeignKey("drivers.id"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organization_id", "registration_number", name="uq_vehicles_org_reg_number"),
        sa.Index("ix_vehicles_organization_id", "organization_id"),
    )

    op.create_table(
        "fuel_cards",
        sa.Column("id", sa.String(64), nullable=False),
        _org_column(),
        sa.Column("card_number", sa.String(64), nullable=False),
        sa.Column("assigned_driver_id", sa.String(64), sa.ForeignKey("drivers.id"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organization_id", "card_number", name="uq_fuel_cards_org_number"),
        sa.Index("ix_fuel_cards_organization_id", "organization_id"),
        sa.Index("ix_fuel_cards_assigned_driver_id", "assigned_driver_id"),
    )

    op.create_table(
        "stock_locations",
        sa.Column("id", sa.String(64), nullable=False),
        _org_column(),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("vehicle_id", sa.String(64), sa.ForeignKey("vehicles.id"), nullable=True, unique=True),
        sa.Column("fuel_card_id", sa.String(64), sa.ForeignKey("fuel_cards.id"), nullable=True, unique=True),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_stock_locations_organization_id", "organization_id"),
        sa.Index("ix_stock_locations_type", "type"),
    )

    op.create_table(
        "stock_movements",
        sa.Column("id", sa.String(64), nullable=False),
        _org_column(),
        sa.Column("stock_item_id", sa.String(64), sa.ForeignKey("stock_items.id"), nullable=False),
        sa.Column("movement_type", sa.String(16), nullable=False),
        sa.Column("quantity", sa.Numeric(14, 3), nullable=False),
        sa.Column("stock_location_id", sa.String(64), sa.ForeignKey("stock_locations.id"), nullable=True),
        sa.Column("from_stock_location_id", sa.String(64), sa.ForeignKey("stock_locations.id"), nullable=True),
        sa.Column("to_stock_location_id", sa.String(64), sa.ForeignKey("stock_locations.id"), nullable=True),
        sa.Column("occurred_at", sa.DateTime(), nullable=False),
        sa.Column("occurred_seq", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("document_type", sa.String(32), nullable=True),
        sa.Column("document_id", sa.String(64), nullable=True),
        sa.Column("external_ref", sa.String(120), nullable=True),
        sa.Column("comment", sa.String(500), nullable=True),
        sa.Column("is_void", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("voided_at", sa.DateTime(), nullable=True),
        sa.Column("voided_by_user_id", sa.String(64), nullable=True),
        sa.Column("void_reason", sa.String(500), nullable=True),
        sa.Column("created_by_user_id", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organization_id", "external_ref", name="uq_stock_movements_org_external_ref"),
        sa.Index("ix_stock_movements_organization_id", "organization_id"),
        sa.Index("ix_stock_movements_movement_type", "movement_type"),
        sa.Index("ix_stock_movements_stock_location_id", "stock_location_id"),
        sa.Index("ix_stock_movements_from_stock_location_id", "from_stock_location_id"),
        sa.Index("ix_stock_movements_to_stock_location_id", "to_stock_location_id"),
        sa.Index("ix_stock_movements_is_void", "is_void"),
        sa.Index("ix_stock_movements_document", "document_type", "document_id"),
        sa.Index("ix_stock_movements_item_occurred", "stock_item_id", "occurred_at"),
    )

    op.create_table(
        "blank_batches",
        sa.Column("id", sa.String(64), nullable=False),
        _org_column(),
        sa.Column("series", sa.String(16), nullable=False),
        sa.Column("number_from", sa.Integer(), nullable=False),
        sa.Column("number_to", sa.Integer(), nullable=False),
        sa.Column("created_by_user_id", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_blank_batches_organization_id", "organization_id"),
    )

    op.create_table(
        "blanks",
        sa.Column("id", sa.String(64), nullable=False),
        _org_column(),
        sa.Column("batch_id", sa.String(64), sa.ForeignKey("blank_batches.id"), nullable=True),
        sa.Column("series", sa.String(16), nullable=False),
        sa.Column("number", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="AVAILABLE"),
        sa.Column("return_status", sa.String(16), nullable=True),
        sa.Column("issued_to_driver_id", sa.String(64), sa.ForeignKey("drivers.id"), nullable=True),
        sa.Column("issued_at", sa.DateTime(), nullable=True),
        sa.Column("reserved_by_waybill_id", sa.String(64), nullable=True),
        sa.Column("reserved_at", sa.DateTime(), nullable=True),
        sa.Column("used_in_waybill_id", sa.String(64), nullable=True),
        sa.Column("used_at", sa.DateTime(), nullable=True),
        sa.Column("spoiled_at", sa.DateTime(), nullable=True),
        sa.Column("spoil_reason", sa.String(16), nullable=True),
        sa.Column("spoil_note", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organization_id", "series", "number", name="uq_blanks_org_series_number"),
        sa.Index("ix_blanks_organization_id", "organization_id"),
        sa.Index("ix_blanks_batch_id", "batch_id"),
        sa.Index("ix_blanks_status", "status"),
        sa.Index("ix_blanks_issued_to_driver_id", "issued_to_driver_id"),
    )

    op.create_table(
        "waybills",
        sa.Column("id", sa.String(64), nullable=False),
        _org_column(),
        sa.Column("number", sa.String(32), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="DRAFT"),
        sa.Column("vehicle_id", sa.String(64), sa.ForeignKey("vehicles.id"), nullable=False),
        sa.Column("driver_id", sa.String(64), sa.ForeignKey("drivers.id"), nullable=False),
        sa.Column("fuel_card_id", sa.String(64), sa.ForeignKey("fuel_cards.id"), nullable=True),
        sa.Column("blank_id", sa.String(64), sa.ForeignKey("blanks.id"), nullable=True),
        sa.Column("valid_from", sa.DateTime(), nullable=True),
        sa.Column("valid_to", sa.DateTime(), nullable=True),
        sa.Column("odometer_start", sa.Numeric(12, 1), nullable=True),
        sa.Column("odometer_end", sa.Numeric(12, 1), nullable=True),
        sa.Column("fuel_calculation_method", sa.String(16), nullable=False, server_default="BOILER"),
        sa.Column("is_city_driving", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_warming", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("notes", sa.String(1000), nullable=True),
        sa.Column("created_by_user_id", sa.String(64), nullable=True),
        sa.Column("approved_by_user_id", sa.String(64), nullable=True),
        sa.Column("completed_by_user_id", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_waybills_organization_id", "organization_id"),
        sa.Index("ix_waybills_number", "number"),
        sa.Index("ix_waybills_date", "date"),
        sa.Index("ix_waybills_status", "status"),
        sa.Index("ix_waybills_vehicle_id", "vehicle_id"),
        sa.Index("ix_waybills_driver_id", "driver_id"),
    )

    op.create_table(
        "waybill_fuel_lines",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("waybill_id", sa.String(64), sa.ForeignKey("waybills.id"), nullable=False),
        sa.Column("line_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("stock_item_id", sa.String(64), sa.ForeignKey("stock_items.id"), nullable=False),
        sa.Column("fuel_start", sa.Numeric(14, 3), nullable=True),
        sa.Column("fuel_received", sa.Numeric(14, 3), nullable=True),
        sa.Column("fuel_consumed", sa.Numeric(14, 3), nullable=True),
        sa.Column("fuel_end", sa.Numeric(14, 3), nullable=True),
        sa.Column("fuel_planned", sa.Numeric(14, 3), nullable=True),
        sa.Column("source_type", sa.String(16), nullable=False, server_default="FUEL_CARD"),
        sa.Column("refueled_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_waybill_fuel_lines_waybill_id", "waybill_id"),
    )

    op.create_table(
        "waybill_routes",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("waybill_id", sa.String(64), sa.ForeignKey("waybills.id"), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("from_point", sa.String(255), nullable=True),
        sa.Column("to_point", sa.String(255), nullable=True),
        sa.Column("distance_km", sa.Numeric(10, 1), nullable=True),
        sa.Column("is_city_driving", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_warming", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_waybill_routes_waybill_id", "waybill_id"),
    )

    op.create_table(
        "period_locks",
        sa.Column("id", sa.String(64), nullable=False),
        _org_column(),
        sa.Column("period", sa.String(7), nullable=False),
        sa.Column("locked_by_user_id", sa.String(64), nullable=True),
        sa.Column("locked_at", sa.DateTime(), nullable=False),
        sa.Column("data_hash", sa.String(64), nullable=False),
        sa.Column("record_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notes", sa.String(1000), nullable=True),
        sa.Column("last_verified_at", sa.DateTime(), nullable=True),
        sa.Column("last_verify_result", sa.Boolean(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organization_id", "period", name="uq_period_locks_org_period"),
        sa.Index("ix_period_locks_organization_id", "organization_id"),
    )

    op.create_table(
        "audit_log",
        sa.Column("id", sa.String(64), nullable=False),
        _org_column(),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("action_type", sa.String(32), nullable=False),
        sa.Column("entity_type", sa.String(32), nullable=False),
        sa.Column("entity_id", sa.String(64), nullable=False),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.Column("old_value", sa.Text(), nullable=True),
        sa.Column("new_value", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_audit_log_organization_id", "organization_id"),
        sa.Index("ix_audit_log_entity_type", "entity_type"),
        sa.Index("ix_audit_log_entity_id", "entity_id"),
        sa.Index("ix_audit_log_created_at", "created_at"),
    )

    op.create_table(
        "app_settings",
        sa.Column("id", sa.String(64), nullable=False),
        _org_column(),
        sa.Column("key", sa.String(64), nullable=False),
        sa.Column("value", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organization_id", "key", name="uq_app_settings_org_key"),
        sa.Index("ix_app_settings_organization_id", "organization_id"),
    )


def downgrade() -> None:
    """Drop all tables created in upgrade."""
    op.drop_table("app_settings")
    op.drop_table("audit_log")
    op.drop_table("period_locks")
    op.drop_table("waybill_routes")
    op.drop_table("waybill_fuel_lines")
    op.drop_table("waybills")
    op.drop_table("blanks")
    op.drop_table("blank_batches")
    op.drop_table("stock_movements")
    op.drop_table("stock_locations")
    op.drop_table("fuel_cards")
    op.drop_table("vehicles")
    op.drop_table("stock_items")
    op.drop_table("users")
    op.drop_table("drivers")
    op.drop_table("organizations")
