"""
seed.py — Reference data loader.

Loads the seven provinces, fiscal years 2080/81–2082/83, the default penalty
tiers and the FY 2081/82 tax and insurance ladders. Idempotent: existing rows
(matched on their natural key) are left untouched.

Usage (schema must exist, e.g. after `alembic upgrade head`):
    python -m vehicle_tax.seed

Capacity ladders are stored as lower breakpoints, so each band starts one unit
above the previous band's published upper limit (a 150 CC motorcycle is in
the 126–150 band and resolves to the 126 row).
"""
from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vehicle_tax.config import settings
from vehicle_tax.database import session_scope
from vehicle_tax.engine.penalty import DEFAULT_PENALTY_TIERS
from vehicle_tax.engine.schemas import FuelType, VehicleType
from vehicle_tax.models import (
    FiscalYearORM,
    InsuranceRateORM,
    PenaltyTierORM,
    ProvinceORM,
    TaxRateORM,
)

logger = logging.getLogger(__name__)

# ===========================================================================
# REFERENCE DATA
# ===========================================================================

PROVINCES: list[tuple[str, str, int]] = [
    ("Koshi", "KOSHI", 1),
    ("Madhesh", "MADHESH", 2),
    ("Bagmati", "BAGMATI", 3),
    ("Gandaki", "GANDAKI", 4),
    ("Lumbini", "LUMBINI", 5),
    ("Karnali", "KARNALI", 6),
    ("Sudurpashchim", "SUDURPASHCHIM", 7),
]

FISCAL_YEARS: list[tuple[str, date, date, bool]] = [
    ("2080/81", date(2023, 7, 16), date(2024, 7, 15), False),
    ("2081/82", date(2024, 7, 16), date(2025, 7, 15), True),
    ("2082/83", date(2025, 7, 16), date(2026, 7, 15), False),
]

RATE_FISCAL_YEAR = "2081/82"

# Bands: up to 125 / 126–150 / 151–225 / 226–400 / 401–650 / above 650 CC
TWO_WHEELER_BREAKPOINTS = (0, 126, 151, 226, 401, 651)
TWO_WHEELER_TAX: dict[str, tuple[int, ...]] = {
    "KOSHI":         (2800, 4500, 4500, 9000, 9000, 16500),
    "MADHESH":       (2700, 4500, 6000, 10000, 10000, 17000),
    "BAGMATI":       (3000, 5000, 6500, 12000, 25000, 35000),
    "GANDAKI":       (2600, 4500, 4500, 9500, 9500, 20000),
    "LUMBINI":       (2800, 4500, 6000, 10000, 10000, 18000),
    "KARNALI":       (2500, 4000, 4000, 8000, 8000, 15000),
    "SUDURPASHCHIM": (2500, 4500, 5500, 8000, 8000, 9000),
}
TWO_WHEELER_RENEWAL_FEE = 300

# Bands: up to 1000 / 1001–1500 / 1501–2000 / 2001–2500 / 2501–3000 / 3001–3500 / above 3500 CC
FOUR_WHEELER_BREAKPOINTS = (0, 1001, 1501, 2001, 2501, 3001, 3501)
FOUR_WHEELER_TAX: dict[str, tuple[int, ...]] = {
    "KOSHI":         (21000, 23500, 25500, 35500, 41000, 58500, 58500),
    "MADHESH":       (22000, 25000, 27000, 37000, 50000, 60500, 60500),
    "BAGMATI":       (22000, 25000, 27000, 37000, 50000, 65000, 70000),
    "GANDAKI":       (22000, 25000, 27000, 37000, 50000, 60000, 65000),
    "LUMBINI":       (22000, 25000, 27000, 37000, 50000, 60000, 65000),
    "KARNALI":       (20000, 23000, 25000, 35000, 40000, 55000, 60000),
    "SUDURPASHCHIM": (20000, 23000, 25000, 35000, 40000, 55000, 60000),
}
FOUR_WHEELER_RENEWAL_FEE = 500

# Same in every province: (vehicle, fuel, renewal fee, [(breakpoint, annual tax)])
FLAT_TAX: list[tuple[VehicleType, FuelType, int, list[tuple[int, int]]]] = [
    (VehicleType.two_wheeler, FuelType.electric, 300, [(0, 2000), (1500, 2500), (2000, 3000)]),
    (VehicleType.four_wheeler, FuelType.electric, 500, [(0, 5000), (125, 15000), (200, 20000), (250, 30000)]),
    (VehicleType.commercial, FuelType.petrol, 500, [(0, 5500), (2000, 6000), (2900, 6500), (4000, 8000), (5000, 9000)]),
    (VehicleType.commercial, FuelType.diesel, 500, [(0, 5500), (2000, 6000), (2900, 6500), (4000, 8000), (5000, 9000)]),
    (VehicleType.heavy, FuelType.petrol, 500, [(0, 15500), (10000, 21000)]),
    (VehicleType.heavy, FuelType.diesel, 500, [(0, 15500), (10000, 21000)]),
]

INSURANCE: list[tuple[VehicleType, FuelType, list[tuple[int, int]]]] = [
    (VehicleType.two_wheeler, FuelType.petrol, [(0, 1715), (150, 1941), (251, 2167)]),
    (VehicleType.two_wheeler, FuelType.diesel, [(0, 1715), (150, 1941), (251, 2167)]),
    (VehicleType.two_wheeler, FuelType.electric, [(0, 1715), (801, 1945), (1201, 2167)]),
    (VehicleType.four_wheeler, FuelType.petrol, [(0, 7365), (1001, 8495), (1601, 10755)]),
    (VehicleType.four_wheeler, FuelType.diesel, [(0, 7365), (1001, 8495), (1601, 10755)]),
    (VehicleType.four_wheeler, FuelType.electric, [(0, 7365), (21, 8495)]),
    (VehicleType.commercial, FuelType.petrol, [(0, 8495), (1600, 10755)]),
    (VehicleType.commercial, FuelType.diesel, [(0, 8495), (1600, 10755)]),
    (VehicleType.heavy, FuelType.petrol, [(0, 10755), (5000, 15000)]),
    (VehicleType.heavy, FuelType.diesel, [(0, 10755), (5000, 15000)]),
]


# ===========================================================================
# LOADERS
# ===========================================================================

async def _get_or_create(db: AsyncSession, model: Any, lookup: dict[str, Any], values: dict[str, Any]) -> tuple[Any, bool]:
    result = await db.execute(select(model).filter_by(**lookup))
    existing = result.scalar_one_or_none()
    if existing is not None:
        return existing, False
    orm = model(**lookup, **values)
    db.add(orm)
    await db.flush()
    return orm, True


def _tax_rows() -> list[tuple[str, VehicleType, FuelType, int, int, int]]:
    """(province code, vehicle, fuel, breakpoint, annual tax, renewal fee) for every seeded tax row."""
    rows = []
    for _, code, _ in PROVINCES:
        for fuel in (FuelType.petrol, FuelType.diesel):
            for capacity, tax in zip(TWO_WHEELER_BREAKPOINTS, TWO_WHEELER_TAX[code]):
                rows.append((code, VehicleType.two_wheeler, fuel, capacity, tax, TWO_WHEELER_RENEWAL_FEE))
            for capacity, tax in zip(FOUR_WHEELER_BREAKPOINTS, FOUR_WHEELER_TAX[code]):
                rows.append((code, VehicleType.four_wheeler, fuel, capacity, tax, FOUR_WHEELER_RENEWAL_FEE))
        for vehicle_type, fuel, renewal_fee, ladder in FLAT_TAX:
            for capacity, tax in ladder:
                rows.append((code, vehicle_type, fuel, capacity, tax, renewal_fee))
    return rows


async def seed_reference_data(db: AsyncSession) -> dict[str, int]:
    """
    Insert missing reference rows. Returns the number of rows created per table.
    Uses flush() (not commit()) — the caller owns the transaction.
    """
    created = {"provinces": 0, "fiscal_years": 0, "penalty_tiers": 0, "tax_rates": 0, "insurance_rates": 0}

    province_ids: dict[str, int] = {}
    for name, code, number in PROVINCES:
        orm, was_created = await _get_or_create(db, ProvinceORM, {"code": code}, {"name": name, "number": number})
        province_ids[code] = orm.id
        created["provinces"] += was_created

    fiscal_year_ids: dict[str, int] = {}
    for label, start, end, is_current in FISCAL_YEARS:
        orm, was_created = await _get_or_create(
            db, FiscalYearORM, {"year": label},
            {"start_date": start, "end_date": end, "is_current": is_current},
        )
        fiscal_year_ids[label] = orm.id
        created["fiscal_years"] += was_created

    for tier in DEFAULT_PENALTY_TIERS:
        _, was_created = await _get_or_create(
            db, PenaltyTierORM, {"duration_label": tier.duration_label},
            {
                "days_from_expiry": tier.days_from_expiry,
                "days_to": tier.days_to,
                "tax_penalty_percent": tier.tax_penalty_percent,
                "renewal_fee_penalty_percent": tier.renewal_fee_penalty_percent,
                "fiscal_year_scope": tier.fiscal_year_scope.value,
                "is_active": tier.is_active,
            },
        )
        created["penalty_tiers"] += was_created

    rate_fiscal_year_id = fiscal_year_ids[RATE_FISCAL_YEAR]
    for code, vehicle_type, fuel, capacity, tax, renewal_fee in _tax_rows():
        _, was_created = await _get_or_create(
            db, TaxRateORM,
            {
                "province_id": province_ids[code],
                "fiscal_year_id": rate_fiscal_year_id,
                "vehicle_type": vehicle_type.value,
                "fuel_type": fuel.value,
                "capacity_value": capacity,
            },
            {"annual_tax_amount": tax, "renewal_fee": renewal_fee},
        )
        created["tax_rates"] += was_created

    for vehicle_type, fuel, ladder in INSURANCE:
        for capacity, premium in ladder:
            _, was_created = await _get_or_create(
                db, InsuranceRateORM,
                {
                    "fiscal_year_id": rate_fiscal_year_id,
                    "vehicle_type": vehicle_type.value,
                    "fuel_type": fuel.value,
                    "capacity_value": capacity,
                },
                {"annual_premium": premium},
            )
            created["insurance_rates"] += was_created

    logger.info("Seeded reference data %s", created)
    return created


async def _main() -> None:
    async with session_scope() as session:
        await seed_reference_data(session)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s — %(message)s",
    )
    asyncio.run(_main())
