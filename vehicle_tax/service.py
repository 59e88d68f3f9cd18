"""
service.py — Calculation for a stored vehicle.

Glues the store to the pure engine: one vehicle, one rate-book snapshot, one
session. The fee policy comes from settings unless the caller overrides it.
"""
import logging
from datetime import date
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from vehicle_tax import store
from vehicle_tax.config import settings
from vehicle_tax.engine.calculator import calculate
from vehicle_tax.engine.errors import VehicleNotFound
from vehicle_tax.engine.schemas import CalculationResult, FeePolicy

logger = logging.getLogger(__name__)


async def calculate_for_vehicle(
    db: AsyncSession,
    vehicle_id: int,
    *,
    fiscal_year_id: Optional[int] = None,
    include_insurance: bool = True,
    clock: Callable[[], date] = date.today,
    policy: Optional[FeePolicy] = None,
) -> CalculationResult:
    """
    Raises:
        VehicleNotFound: no vehicle with this id.
        CalculationError subclasses from the engine and InvalidRateBook from the store.
    """
    vehicle = await store.get_vehicle(db, vehicle_id)
    if vehicle is None:
        raise VehicleNotFound(vehicle_id)

    book = await store.load_rate_book(db)
    logger.info("Calculating renewal vehicle_id=%s fiscal_year_id=%s", vehicle_id, fiscal_year_id)
    return calculate(
        vehicle,
        book,
        fiscal_year_id=fiscal_year_id,
        include_insurance=include_insurance,
        clock=clock,
        policy=policy or FeePolicy.from_settings(settings),
    )
