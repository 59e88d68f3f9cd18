"""
rates.py — Tax and insurance rate lookup with a fallback chain.

One generic chain serves both tables. Each step relaxes one constraint of the
query and the first step that yields a candidate wins:

  1. exact              — every dimension, capacity equal
  2. closest_below      — same fiscal year and dimensions, largest capacity <= requested
  3. any_fiscal_year    — fiscal year dropped, capacity <= requested,
                          most recent fiscal year first, then largest capacity
  4. vehicle_fuel_only  — vehicle type and fuel only (province dropped),
                          largest capacity available, then most recent fiscal year

Rate rows are capacity breakpoints: a row at capacity 125 covers every
capacity from 125 up to the next breakpoint.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Optional, Sequence, TypeVar, Union

from vehicle_tax.engine.errors import RateNotFound
from vehicle_tax.engine.schemas import FuelType, InsuranceRate, TaxRate, VehicleType

logger = logging.getLogger(__name__)

R = TypeVar("R", TaxRate, InsuranceRate)


class RateMatch(str, Enum):
    exact = "exact"
    closest_below = "closest_below"
    any_fiscal_year = "any_fiscal_year"
    vehicle_fuel_only = "vehicle_fuel_only"


@dataclass(frozen=True)
class RateQuery:
    """Lookup key. province_id is None for insurance, which has no province dimension."""
    fiscal_year_id: int
    vehicle_type: VehicleType
    fuel_type: FuelType
    capacity: int
    province_id: Optional[int] = None

    def as_dict(self) -> dict[str, Union[int, str, None]]:
        return {
            "fiscal_year_id": self.fiscal_year_id,
            "province_id": self.province_id,
            "vehicle_type": self.vehicle_type.value,
            "fuel_type": self.fuel_type.value,
            "capacity": self.capacity,
        }


@dataclass(frozen=True)
class RateLookup(Generic[R]):
    rate: R
    match: RateMatch


# ---------------------------------------------------------------------------
# Generic chain
# ---------------------------------------------------------------------------

def _same_vehicle_fuel(row: Union[TaxRate, InsuranceRate], query: RateQuery) -> bool:
    return row.vehicle_type == query.vehicle_type and row.fuel_type == query.fuel_type


def _same_dimensions(row: Union[TaxRate, InsuranceRate], query: RateQuery) -> bool:
    if not _same_vehicle_fuel(row, query):
        return False
    if query.province_id is None:
        return True
    return getattr(row, "province_id", None) == query.province_id


def _steps(query: RateQuery, rank: Callable[[int], int]) -> list[tuple[RateMatch, Callable, Callable]]:
    """(match label, row filter, preference key) per step; the max key wins."""
    return [
        (
            RateMatch.exact,
            lambda r: _same_dimensions(r, query)
            and r.fiscal_year_id == query.fiscal_year_id
            and r.capacity_value == query.capacity,
            lambda r: 0,
        ),
        (
            RateMatch.closest_below,
            lambda r: _same_dimensions(r, query)
            and r.fiscal_year_id == query.fiscal_year_id
            and r.capacity_value <= query.capacity,
            lambda r: r.capacity_value,
        ),
        (
            RateMatch.any_fiscal_year,
            lambda r: _same_dimensions(r, query) and r.capacity_value <= query.capacity,
            lambda r: (rank(r.fiscal_year_id), r.capacity_value),
        ),
        (
            RateMatch.vehicle_fuel_only,
            lambda r: _same_vehicle_fuel(r, query),
            lambda r: (r.capacity_value, rank(r.fiscal_year_id)),
        ),
    ]


def find_rate(
    rows: Sequence[R],
    query: RateQuery,
    fiscal_year_rank: dict[int, int],
    kind: str = "tax",
) -> RateLookup[R]:
    """
    Run the fallback chain over `rows`.

    Args:
        rows:             Candidate rate rows (TaxRate or InsuranceRate).
        query:            Requested dimensions.
        fiscal_year_rank: fiscal_year_id → recency rank (higher = more recent).
                          Unknown ids rank below every configured year.
        kind:             "tax" or "insurance"; used in logs and errors only.

    Raises:
        RateNotFound: when no step yields a row.
    """
    def rank(fiscal_year_id: int) -> int:
        return fiscal_year_rank.get(fiscal_year_id, -1)

    for match, keep, preference in _steps(query, rank):
        candidates = [r for r in rows if keep(r)]
        if not candidates:
            continue
        # max() keeps the first of equal keys, so table order breaks exact ties
        chosen = max(candidates, key=preference)
        if match is not RateMatch.exact:
            logger.info(
                "%s rate fallback=%s requested_capacity=%s matched_capacity=%s "
                "requested_fiscal_year_id=%s matched_fiscal_year_id=%s",
                kind, match.value, query.capacity, chosen.capacity_value,
                query.fiscal_year_id, chosen.fiscal_year_id,
            )
        return RateLookup(rate=chosen, match=match)

    # same vehicle type, any fuel
    related = [r for r in rows if r.vehicle_type == query.vehicle_type]
    raise RateNotFound(
        kind,
        query.as_dict(),
        available_capacities=sorted({r.capacity_value for r in related}),
        available_fiscal_year_ids=sorted({r.fiscal_year_id for r in related}),
    )


# ---------------------------------------------------------------------------
# Table-specific wrappers
# ---------------------------------------------------------------------------

def find_tax_rate(
    tax_rates: Sequence[TaxRate],
    *,
    fiscal_year_id: int,
    province_id: int,
    vehicle_type: VehicleType,
    fuel_type: FuelType,
    capacity: int,
    fiscal_year_rank: dict[int, int],
) -> RateLookup[TaxRate]:
    query = RateQuery(
        fiscal_year_id=fiscal_year_id,
        vehicle_type=vehicle_type,
        fuel_type=fuel_type,
        capacity=capacity,
        province_id=province_id,
    )
    return find_rate(tax_rates, query, fiscal_year_rank, kind="tax")


def find_insurance_rate(
    insurance_rates: Sequence[InsuranceRate],
    *,
    fiscal_year_id: int,
    vehicle_type: VehicleType,
    fuel_type: FuelType,
    capacity: int,
    fiscal_year_rank: dict[int, int],
) -> RateLookup[InsuranceRate]:
    query = RateQuery(
        fiscal_year_id=fiscal_year_id,
        vehicle_type=vehicle_type,
        fuel_type=fuel_type,
        capacity=capacity,
    )
    return find_rate(insurance_rates, query, fiscal_year_rank, kind="insurance")
