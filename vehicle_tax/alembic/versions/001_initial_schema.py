"""initial_schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17 12:00:00.000000 UTC

Creates the reference and vehicle tables read by the calculation:
  - provinces        (seven provinces, tax rates are set per province)
  - fiscal_years     (AD ranges, one flagged current)
  - tax_rates        (capacity breakpoints per fiscal year / province / vehicle / fuel)
  - insurance_rates  (capacity breakpoints per fiscal year / vehicle / fuel)
  - penalty_tiers    (late-renewal penalty ladder)
  - vehicles         (registration dates in BS, cached AD expiry)
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- provinces table ---
    op.create_table(
        "provinces",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("code", sa.String(length=20), nullable=False, comment="e.g. 'BAGMATI'"),
        sa.Column("number", sa.Integer(), nullable=False, comment="Constitutional province number, 1–7"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
        sa.UniqueConstraint("name"),
        sa.UniqueConstraint("number"),
    )

    # --- fiscal_years table ---
    op.create_table(
        "fiscal_years",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("year", sa.String(length=10), nullable=False, comment="BS label, e.g. '2081/82'"),
        sa.Column("start_date", sa.Date(), nullable=False, comment="First AD day, inclusive"),
        sa.Column("end_date", sa.Date(), nullable=False, comment="Last AD day, inclusive"),
        sa.Column("is_current", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("year"),
    )

    # --- tax_rates table ---
    op.create_table(
        "tax_rates",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("province_id", sa.Integer(), nullable=False),
        sa.Column("fiscal_year_id", sa.Integer(), nullable=False),
        sa.Column("vehicle_type", sa.String(length=20), nullable=False, comment="'2W', '4W', 'Commercial' or 'Heavy' — mirrors VehicleType enum"),
        sa.Column("fuel_type", sa.String(length=10), nullable=False, comment="'Petrol', 'Diesel' or 'Electric' — mirrors FuelType enum"),
        sa.Column("capacity_value", sa.Integer(), nullable=False, comment="Lower capacity breakpoint: CC, or Watts for electric vehicles"),
        sa.Column("annual_tax_amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("renewal_fee", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("notes", sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(["fiscal_year_id"], ["fiscal_years.id"]),
        sa.ForeignKeyConstraint(["province_id"], ["provinces.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "fiscal_year_id", "province_id", "vehicle_type", "fuel_type", "capacity_value",
            name="uq_tax_rates_breakpoint",
        ),
    )
    op.create_index(op.f("ix_tax_rates_fiscal_year_id"), "tax_rates", ["fiscal_year_id"], unique=False)
    op.create_index(op.f("ix_tax_rates_province_id"), "tax_rates", ["province_id"], unique=False)

    # --- insurance_rates table ---
    op.create_table(
        "insurance_rates",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("fiscal_year_id", sa.Integer(), nullable=False),
        sa.Column("vehicle_type", sa.String(length=20), nullable=False),
        sa.Column("fuel_type", sa.String(length=10), nullable=False),
        sa.Column("capacity_value", sa.Integer(), nullable=False),
        sa.Column("annual_premium", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.ForeignKeyConstraint(["fiscal_year_id"], ["fiscal_years.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "fiscal_year_id", "vehicle_type", "fuel_type", "capacity_value",
            name="uq_insurance_rates_breakpoint",
        ),
    )
    op.create_index(op.f("ix_insurance_rates_fiscal_year_id"), "insurance_rates", ["fiscal_year_id"], unique=False)

    # --- penalty_tiers table ---
    op.create_table(
        "penalty_tiers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("duration_label", sa.String(length=100), nullable=False),
        sa.Column("days_from_expiry", sa.Integer(), nullable=False),
        sa.Column("days_to", sa.Integer(), nullable=True),
        sa.Column("tax_penalty_percent", sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column("renewal_fee_penalty_percent", sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column("fiscal_year_scope", sa.String(length=20), nullable=False, comment="'any', 'same_fiscal_year' or 'beyond_fiscal_year' — mirrors FiscalYearScope"),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("duration_label"),
    )

    # --- vehicles table ---
    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("registration_number", sa.String(length=30), nullable=False),
        sa.Column("province_id", sa.Integer(), nullable=False),
        sa.Column("vehicle_type", sa.String(length=20), nullable=False),
        sa.Column("fuel_type", sa.String(length=10), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False, comment="CC, or Watts for electric"),
        sa.Column("registration_date_bs", sa.String(length=10), nullable=False),
        sa.Column("last_renewed_date_bs", sa.String(length=10), nullable=True),
        sa.Column("expiry_date", sa.Date(), nullable=True, comment="Cached AD expiry; the calculation recomputes and compares"),
        sa.Column("verification_status", sa.String(length=20), nullable=False, comment="'pending', 'approved' or 'rejected'"),
        sa.ForeignKeyConstraint(["province_id"], ["provinces.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("registration_number"),
    )
    op.create_index(op.f("ix_vehicles_province_id"), "vehicles", ["province_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_vehicles_province_id"), table_name="vehicles")
    op.drop_table("vehicles")
    op.drop_table("penalty_tiers")
    op.drop_index(op.f("ix_insurance_rates_fiscal_year_id"), table_name="insurance_rates")
    op.drop_table("insurance_rates")
    op.drop_index(op.f("ix_tax_rates_province_id"), table_name="tax_rates")
    op.drop_index(op.f("ix_tax_rates_fiscal_year_id"), table_name="tax_rates")
    op.drop_table("tax_rates")
    op.drop_table("fiscal_years")
    op.drop_table("provinces")
