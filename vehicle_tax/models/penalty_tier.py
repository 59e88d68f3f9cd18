"""
models/penalty_tier.py — SQLAlchemy ORM for late-renewal penalty tiers.

Table: penalty_tiers
Day bounds are counted after the grace period and are inclusive;
days_to NULL means unbounded.
"""
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from vehicle_tax.database import Base


class PenaltyTierORM(Base):
    __tablename__ = "penalty_tiers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    duration_label: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    days_from_expiry: Mapped[int] = mapped_column(Integer, nullable=False)
    days_to: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    tax_penalty_percent: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    renewal_fee_penalty_percent: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    fiscal_year_scope: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="any",
        comment="'any', 'same_fiscal_year' or 'beyond_fiscal_year' — mirrors FiscalYearScope",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
