"""
models/tax_rate.py — SQLAlchemy ORM for annual vehicle tax rates.

Table: tax_rates
One row per capacity breakpoint: the row at capacity_value covers every
capacity from that value up to the next breakpoint of the same key.
"""
from decimal import Decimal
from typing import Optional

from sqlalchemy import ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from vehicle_tax.database import Base


class TaxRateORM(Base):
    __tablename__ = "tax_rates"
    __table_args__ = (
        UniqueConstraint(
            "fiscal_year_id", "province_id", "vehicle_type", "fuel_type", "capacity_value",
            name="uq_tax_rates_breakpoint",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    province_id: Mapped[int] = mapped_column(ForeignKey("provinces.id"), nullable=False, index=True)
    fiscal_year_id: Mapped[int] = mapped_column(ForeignKey("fiscal_years.id"), nullable=False, index=True)
    vehicle_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="'2W', '4W', 'Commercial' or 'Heavy' — mirrors VehicleType enum",
    )
    fuel_type: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        comment="'Petrol', 'Diesel' or 'Electric' — mirrors FuelType enum",
    )
    capacity_value: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Lower capacity breakpoint: CC, or Watts for electric vehicles",
    )
    annual_tax_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    renewal_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=300)
    notes: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
