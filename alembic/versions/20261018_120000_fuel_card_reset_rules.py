"""Fuel card reset rules

Revision ID: 20261018_120000
Revises: 20261018_000000
Create Date: 2026-10-18 12:00:00.000000

Adds the rules that empty fuel cards once per month, quarter or year by
returning the balance to a warehouse or writing it off.

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261018_120000"
down_revision: Union[str, None] = "20261018_000000"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the fuel_card_reset_rules table."""
    op.create_table(
        "fuel_card_reset_rules",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("organization_id", sa.String(64), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("frequency", sa.String(16), nullable=False),
        sa.Column("scope", sa.String(32), nullable=False, server_default="ALL_CARDS"),
        sa.Column("card_ids", sa.Text(), nullable=True),
        sa.Column("mode", sa.String(32), nullable=False, server_default="EXPIRE_EXPENSE"),
        sa.Column("stock_item_id", sa.String(64), sa.ForeignKey("stock_items.id"), nullable=False),
        sa.Column("target_location_id", sa.String(64), sa.ForeignKey("stock_locations.id"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_run_at", sa.DateTime(), nullable=True),
        sa.Column("next_run_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_fuel_card_reset_rules_organization_id", "organization_id"),
        sa.Index("ix_fuel_card_reset_rules_next_run_at", "next_run_at"),
    )


def downgrade() -> None:
    """Drop the fuel_card_reset_rules table."""
    op.drop_table("fuel_card_reset_rules")
