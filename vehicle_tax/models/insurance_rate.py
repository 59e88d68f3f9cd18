"""
models/insurance_rate.py — SQLAlchemy ORM for third-party insurance premiums.

Table: insurance_rates
Same breakpoint layout as tax_rates, without a province dimension.
"""
from decimal import Decimal

from sqlalchemy import ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from vehicle_tax.database import Base


class InsuranceRateORM(Base):
    __tablename__ = "insurance_rates"
    __table_args__ = (
        UniqueConstraint(
            "fiscal_year_id", "vehicle_type", "fuel_type", "capacity_value",
            name="uq_insurance_rates_breakpoint",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    fiscal_year_id: Mapped[int] = mapped_column(ForeignKey("fiscal_years.id"), nullable=False, index=True)
    vehicle_type: Mapped[str] = mapped_column(String(20), nullable=False)
    fuel_type: Mapped[str] = mapped_column(String(10), nullable=False)
    capacity_value: Mapped[int] = mapped_column(Integer, nullable=False)
    annual_premium: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
