"""
Rate lookup fallback chain tests.

Each test seeds only the rows needed to force a particular step of the chain.
"""
from __future__ import annotations

import pytest

from vehicle_tax.engine.errors import RateNotFound
from vehicle_tax.engine.fiscal_year import recency_rank
from vehicle_tax.engine.rates import RateMatch, find_insurance_rate, find_tax_rate
from vehicle_tax.engine.schemas import FuelType, VehicleType
from vehicle_tax.tests.sample_data import BAGMATI, FISCAL_YEARS, insurance_row, tax_row

RANK = recency_rank(FISCAL_YEARS)


def _tax(rows, capacity, fiscal_year_id=4, province_id=BAGMATI):
    return find_tax_rate(
        rows,
        fiscal_year_id=fiscal_year_id,
        province_id=province_id,
        vehicle_type=VehicleType.two_wheeler,
        fuel_type=FuelType.petrol,
        capacity=capacity,
        fiscal_year_rank=RANK,
    )


LADDER = [
    tax_row(4, capacity=125, annual_tax_amount=3000),
    tax_row(4, capacity=150, annual_tax_amount=5000),
]


def test_exact_capacity_match() -> None:
    lookup = _tax(LADDER, 150)
    assert lookup.match is RateMatch.exact
    assert lookup.rate.annual_tax_amount == 5000


def test_closest_breakpoint_below_is_chosen() -> None:
    """140 CC sits between the 125 and 150 breakpoints → the 125 row."""
    lookup = _tax(LADDER, 140)
    assert lookup.match is RateMatch.closest_below
    assert lookup.rate.capacity_value == 125
    assert lookup.rate.annual_tax_amount == 3000


def test_capacity_above_every_breakpoint_uses_largest() -> None:
    lookup = _tax(LADDER, 1000)
    assert lookup.match is RateMatch.closest_below
    assert lookup.rate.capacity_value == 150


def test_capacity_below_every_breakpoint_falls_through() -> None:
    """Nothing at or below 100 anywhere → last step, largest capacity available."""
    lookup = _tax(LADDER, 100)
    assert lookup.match is RateMatch.vehicle_fuel_only
    assert lookup.rate.capacity_value == 150


def test_capacity_below_breakpoints_falls_through_to_other_fiscal_year() -> None:
    rows = LADDER + [tax_row(3, capacity=100, annual_tax_amount=2500)]
    lookup = _tax(rows, 100)
    assert lookup.match is RateMatch.any_fiscal_year
    assert lookup.rate.fiscal_year_id == 3
    assert lookup.rate.annual_tax_amount == 2500


def test_any_fiscal_year_prefers_most_recent_year_before_capacity() -> None:
    rows = [
        tax_row(2, capacity=100, annual_tax_amount=2000),
        tax_row(3, capacity=80, annual_tax_amount=2200),
    ]
    lookup = _tax(rows, 120, fiscal_year_id=5)
    assert lookup.match is RateMatch.any_fiscal_year
    assert (lookup.rate.fiscal_year_id, lookup.rate.capacity_value) == (3, 80)


def test_any_fiscal_year_keeps_province() -> None:
    rows = [
        tax_row(3, capacity=100, province_id=1, annual_tax_amount=1111),
        tax_row(2, capacity=100, annual_tax_amount=2222),
    ]
    lookup = _tax(rows, 120, fiscal_year_id=5)
    assert lookup.rate.province_id == BAGMATI
    assert lookup.rate.annual_tax_amount == 2222


def test_last_step_drops_province() -> None:
    lookup = _tax(LADDER, 140, province_id=7)
    assert lookup.match is RateMatch.vehicle_fuel_only
    assert lookup.rate.capacity_value == 150


def test_last_step_breaks_capacity_ties_by_recency() -> None:
    rows = [
        tax_row(2, capacity=150, province_id=1, annual_tax_amount=4000),
        tax_row(4, capacity=150, province_id=1, annual_tax_amount=4500),
    ]
    lookup = _tax(rows, 140)
    assert lookup.rate.fiscal_year_id == 4


def test_lookup_is_deterministic() -> None:
    rows = LADDER + [tax_row(3, capacity=125, annual_tax_amount=2900)]
    assert _tax(rows, 140) == _tax(list(rows), 140)


def test_exhausted_chain_raises_with_diagnostics() -> None:
    rows = LADDER + [tax_row(4, capacity=1000, vehicle_type=VehicleType.four_wheeler, annual_tax_amount=22000)]
    with pytest.raises(RateNotFound) as exc_info:
        find_tax_rate(
            rows,
            fiscal_year_id=4,
            province_id=BAGMATI,
            vehicle_type=VehicleType.four_wheeler,
            fuel_type=FuelType.diesel,
            capacity=1500,
            fiscal_year_rank=RANK,
        )
    err = exc_info.value
    assert err.code == "RATE_NOT_FOUND"
    assert err.requested["capacity"] == 1500
    assert err.requested["fuel_type"] == "Diesel"
    # nothing for 4W diesel; only the 4W petrol row is an alternative, never the 2W ladder
    assert err.available_capacities == [1000]
    assert err.available_fiscal_year_ids == [4]
    assert "Available capacities: 1000." in str(err)


def test_exhausted_chain_lists_nothing_for_unconfigured_vehicle_type() -> None:
    with pytest.raises(RateNotFound) as exc_info:
        find_tax_rate(
            LADDER,
            fiscal_year_id=4,
            province_id=BAGMATI,
            vehicle_type=VehicleType.four_wheeler,
            fuel_type=FuelType.petrol,
            capacity=1500,
            fiscal_year_rank=RANK,
        )
    err = exc_info.value
    assert err.available_capacities == []
    assert err.available_fiscal_year_ids == []
    assert "Available capacities: none. Available fiscal years: none" in str(err)


def test_insurance_uses_same_chain_without_province() -> None:
    rows = [insurance_row(4, capacity=0), insurance_row(4, capacity=150, annual_premium=1941)]
    lookup = find_insurance_rate(
        rows,
        fiscal_year_id=4,
        vehicle_type=VehicleType.two_wheeler,
        fuel_type=FuelType.petrol,
        capacity=200,
        fiscal_year_rank=RANK,
    )
    assert lookup.match is RateMatch.closest_below
    assert lookup.rate.annual_premium == 1941


def test_insurance_falls_back_to_other_fiscal_year() -> None:
    lookup = find_insurance_rate(
        [insurance_row(4)],
        fiscal_year_id=5,
        vehicle_type=VehicleType.two_wheeler,
        fuel_type=FuelType.petrol,
        capacity=125,
        fiscal_year_rank=RANK,
    )
    assert lookup.match is RateMatch.any_fiscal_year
    assert lookup.rate.annual_premium == 1715


def test_insurance_not_found_names_kind() -> None:
    with pytest.raises(RateNotFound) as exc_info:
        find_insurance_rate(
            [],
            fiscal_year_id=4,
            vehicle_type=VehicleType.heavy,
            fuel_type=FuelType.diesel,
            capacity=5000,
            fiscal_year_rank=RANK,
        )
    assert exc_info.value.kind == "insurance"
    assert "province_id" not in str(exc_info.value)
