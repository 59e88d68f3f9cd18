"""
store.py — Read-side data access facade for the calculation.

Loads the vehicle snapshot and one consistent rate book per request.
The engine never touches SQLAlchemy; it only sees the domain objects returned here.

Design principles:
  - All functions are async and accept an AsyncSession parameter
  - No raw SQL: ORM-only queries
  - Logs only ids and row counts — never registration numbers
  - Returns domain Pydantic objects (not ORM instances) so callers are persistence-agnostic
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vehicle_tax.engine.schemas import (
    FiscalYear,
    InsuranceRate,
    PenaltyTier,
    RateBook,
    TaxRate,
    VehicleSnapshot,
)
from vehicle_tax.engine.validator import validate_rate_book
from vehicle_tax.models.fiscal_year import FiscalYearORM
from vehicle_tax.models.insurance_rate import InsuranceRateORM
from vehicle_tax.models.penalty_tier import PenaltyTierORM
from vehicle_tax.models.tax_rate import TaxRateORM
from vehicle_tax.models.vehicle import VehicleORM

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Rate book
# ---------------------------------------------------------------------------

async def list_fiscal_years(db: AsyncSession) -> list[FiscalYear]:
    """All fiscal years ordered by start date."""
    result = await db.execute(select(FiscalYearORM).order_by(FiscalYearORM.start_date))
    return [
        FiscalYear(
            id=orm.id,
            label=orm.year,
            start_date_ad=orm.start_date,
            end_date_ad=orm.end_date,
            is_current=orm.is_current,
        )
        for orm in result.scalars()
    ]


async def load_rate_book(db: AsyncSession, validate: bool = True) -> RateBook:
    """
    Snapshot every configuration table inside one session.

    With validate=True (the default) the snapshot is checked by
    validate_rate_book, which raises InvalidRateBook listing every violation.
    """
    fiscal_years = await list_fiscal_years(db)

    tax_result = await db.execute(
        select(TaxRateORM).order_by(TaxRateORM.fiscal_year_id, TaxRateORM.capacity_value)
    )
    tax_rates = [
        TaxRate(
            fiscal_year_id=orm.fiscal_year_id,
            province_id=orm.province_id,
            vehicle_type=orm.vehicle_type,
            fuel_type=orm.fuel_type,
            capacity_value=orm.capacity_value,
            annual_tax_amount=float(orm.annual_tax_amount),
            renewal_fee=float(orm.renewal_fee),
        )
        for orm in tax_result.scalars()
    ]

    insurance_result = await db.execute(
        select(InsuranceRateORM).order_by(InsuranceRateORM.fiscal_year_id, InsuranceRateORM.capacity_value)
    )
    insurance_rates = [
        InsuranceRate(
            fiscal_year_id=orm.fiscal_year_id,
            vehicle_type=orm.vehicle_type,
            fuel_type=orm.fuel_type,
            capacity_value=orm.capacity_value,
            annual_premium=float(orm.annual_premium),
        )
        for orm in insurance_result.scalars()
    ]

    tier_result = await db.execute(select(PenaltyTierORM).order_by(PenaltyTierORM.days_from_expiry))
    penalty_tiers = [
        PenaltyTier(
            duration_label=orm.duration_label,
            days_from_expiry=orm.days_from_expiry,
            days_to=orm.days_to,
            tax_penalty_percent=float(orm.tax_penalty_percent),
            renewal_fee_penalty_percent=float(orm.renewal_fee_penalty_percent),
            is_active=orm.is_active,
            fiscal_year_scope=orm.fiscal_year_scope,
        )
        for orm in tier_result.scalars()
    ]

    book = RateBook(
        fiscal_years=fiscal_years,
        tax_rates=tax_rates,
        insurance_rates=insurance_rates,
        penalty_tiers=penalty_tiers,
    )
    logger.debug(
        "Loaded rate book fiscal_years=%d tax_rates=%d insurance_rates=%d penalty_tiers=%d",
        len(fiscal_years), len(tax_rates), len(insurance_rates), len(penalty_tiers),
    )
    if validate:
        validate_rate_book(book)
    return book


# ---------------------------------------------------------------------------
# Vehicles
# ---------------------------------------------------------------------------

async def get_vehicle(db: AsyncSession, vehicle_id: int) -> Optional[VehicleSnapshot]:
    """
    Retrieve a VehicleSnapshot by id.
    Returns None if no vehicle found (caller raises VehicleNotFound).
    """
    result = await db.execute(select(VehicleORM).where(VehicleORM.id == vehicle_id))
    orm = result.scalar_one_or_none()
    if orm is None:
        return None
    return VehicleSnapshot(
        vehicle_id=orm.id,
        capacity=orm.capacity,
        vehicle_type=orm.vehicle_type,
        fuel_type=orm.fuel_type,
        province_id=orm.province_id,
        registration_date_bs=orm.registration_date_bs,
        last_renewed_date_bs=orm.last_renewed_date_bs,
        cached_expiry_date_ad=orm.expiry_date,
        is_verified=orm.is_verified,
    )
