"""
Calculator tests — end-to-end over in-memory rate books.

Structure:
  1. Worked scenarios with hand-checked totals (parametrised)
  2. Result shape: BS dates, fiscal-year periods, vehicle info
  3. Insurance, policy overrides, target fiscal year
  4. Preconditions and error propagation
  5. Anomalies: tier gaps, fiscal-year gaps, degraded expansion, cached expiry

Every expected total below is
  tax + renewal fee + penalty + renewal-fee penalty + insurance + 600 + 78 VAT
with tax 10,000, renewal fee 300 and insurance 1,715 per sample_data.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date

import pytest

from vehicle_tax.engine.calculator import calculate, calculate_request, expiry_from_bs
from vehicle_tax.engine.errors import (
    FiscalYearNotFound,
    InvalidDateFormat,
    NoFiscalYearConfigured,
    RateNotFound,
    VehicleNotVerified,
)
from vehicle_tax.engine.penalty import DEFAULT_PENALTY_TIERS
from vehicle_tax.engine.schemas import CalculateRequest, FeePolicy, RateBook
from vehicle_tax.tests.sample_data import (
    FY_2078_79,
    FY_2080_81,
    FY_2081_82,
    FY_2082_83,
    INSURANCE_PREMIUM,
    fixed_clock,
    make_book,
    make_vehicle,
)

TODAY = date(2024, 8, 12)


# ===========================================================================
# TEST GROUP 1: Worked scenarios
# ===========================================================================

@dataclass
class Scenario:
    description: str
    last_renewed_date_bs: str
    today: date
    expected_fiscal_year_ids: list[int]
    expected_overdue_days: list[int]
    expected_tax_penalty_percents: list[float]
    expected_total: float
    expected_penalty: float = 0.0


SCENARIOS: list[Scenario] = [
    Scenario(
        description="within_grace_no_penalty",
        last_renewed_date_bs="2080-01-01",      # expiry 2024-04-14
        today=date(2024, 7, 10),
        expected_fiscal_year_ids=[3],
        expected_overdue_days=[0],
        expected_tax_penalty_percents=[0],
        expected_total=12_693,
    ),
    Scenario(
        description="thirty_days_late_five_percent",
        last_renewed_date_bs="2080-01-01",
        today=TODAY,
        expected_fiscal_year_ids=[3],
        expected_overdue_days=[30],
        expected_tax_penalty_percents=[5],
        expected_total=13_493,
        expected_penalty=500,
    ),
    Scenario(
        description="day_46_same_fiscal_year_twenty_percent",
        last_renewed_date_bs="2079-04-16",      # expiry 2023-08-01, 2080/81 ends 2024-07-15
        today=date(2023, 12, 15),
        expected_fiscal_year_ids=[3],
        expected_overdue_days=[46],
        expected_tax_penalty_percents=[20],
        expected_total=14_993,
        expected_penalty=2_000,
    ),
    Scenario(
        description="day_46_beyond_fiscal_year_thirty_two_percent",
        last_renewed_date_bs="2080-01-01",
        today=date(2024, 8, 28),
        expected_fiscal_year_ids=[3],
        expected_overdue_days=[46],
        expected_tax_penalty_percents=[32],
        expected_total=16_193,
        expected_penalty=3_200,
    ),
    Scenario(
        description="three_missed_years",
        last_renewed_date_bs="2078-01-01",      # expiry 2022-04-14
        today=TODAY,
        expected_fiscal_year_ids=[1, 2, 3],
        expected_overdue_days=[761, 396, 30],
        expected_tax_penalty_percents=[32, 32, 5],
        expected_total=41_093,
        expected_penalty=6_900,
    ),
]


@pytest.mark.parametrize("scenario", [pytest.param(s, id=s.description) for s in SCENARIOS])
def test_worked_scenarios(book: RateBook, scenario: Scenario) -> None:
    vehicle = make_vehicle(last_renewed_date_bs=scenario.last_renewed_date_bs)
    result = calculate(vehicle, book, clock=fixed_clock(scenario.today))

    assert [c.fiscal_year_id for c in result.calculations] == scenario.expected_fiscal_year_ids
    assert [c.days_overdue_after_grace for c in result.calculations] == scenario.expected_overdue_days
    assert [c.tax_penalty_percent for c in result.calculations] == scenario.expected_tax_penalty_percents
    assert result.summary.total_penalty == pytest.approx(scenario.expected_penalty)
    assert result.summary.total_amount == pytest.approx(scenario.expected_total)
    assert result.summary.years_count == len(scenario.expected_fiscal_year_ids)
    assert not result.degraded
    assert result.anomalies == []


def test_three_missed_years_summary_breakdown(book: RateBook) -> None:
    result = calculate(make_vehicle(last_renewed_date_bs="2078-01-01"), book, clock=fixed_clock(TODAY))
    s = result.summary
    assert s.total_tax == 30_000
    assert s.total_renewal_fee == 900
    assert s.total_penalty == pytest.approx(6_900)
    assert s.total_renewal_fee_penalty == pytest.approx(900)
    assert s.total_penalty_amount == pytest.approx(7_800)
    assert s.total_insurance == INSURANCE_PREMIUM
    assert (s.service_fee, s.vat_amount) == (600, 78)
    # renewal-fee penalty is 100% in every tier
    assert all(c.renewal_fee_penalty == c.renewal_fee for c in result.calculations)


def test_subtotals_add_up_to_total(book: RateBook) -> None:
    result = calculate(make_vehicle(last_renewed_date_bs="2078-01-01"), book, clock=fixed_clock(TODAY))
    s = result.summary
    subtotals = sum(c.subtotal for c in result.calculations)
    assert s.total_amount == pytest.approx(subtotals + s.service_fee + s.vat_amount)


def test_registration_date_used_when_never_renewed(book: RateBook) -> None:
    vehicle = make_vehicle(registration_date_bs="2080-01-01", last_renewed_date_bs=None)
    result = calculate(vehicle, book, clock=fixed_clock(TODAY))
    assert result.vehicle_info.expiry_date_ad == date(2024, 4, 14)
    assert result.vehicle_info.last_renewed_date_ad is None
    assert result.summary.total_amount == pytest.approx(13_493)


# ===========================================================================
# TEST GROUP 2: Result shape
# ===========================================================================

def test_vehicle_info_carries_ad_and_bs_dates(book: RateBook) -> None:
    result = calculate(make_vehicle(), book, clock=fixed_clock(TODAY))
    info = result.vehicle_info
    assert info.last_renewed_date_ad == date(2023, 4, 14)
    assert info.expiry_date_ad == date(2024, 4, 14)
    assert info.expiry_date_bs == "2081-01-02"
    assert (info.today_ad, info.today_bs) == (TODAY, "2081-04-28")
    assert result.vehicle_id == 1
    assert result.fiscal_year_id == 4


def test_year_rows_carry_fiscal_year_period_in_both_calendars(book: RateBook) -> None:
    row = calculate(make_vehicle(), book, clock=fixed_clock(TODAY)).calculations[0]
    assert row.fiscal_year_label == "2080/81"
    assert (row.fiscal_year_start_ad, row.fiscal_year_end_ad) == (date(2023, 7, 16), date(2024, 7, 15))
    assert (row.fiscal_year_start_bs, row.fiscal_year_end_bs) == ("2080-03-31", "2081-03-31")
    assert row.expiry_date_bs == "2081-01-02"
    assert row.penalty_tier_label == "First 30 Days"
    assert row.tax_rate_match == "exact"


def test_calculation_is_deterministic_and_leaves_inputs_untouched(book: RateBook) -> None:
    vehicle = make_vehicle(last_renewed_date_bs="2078-01-01")
    before = (vehicle.model_copy(), book.model_copy(deep=True))
    first = calculate(vehicle, book, clock=fixed_clock(TODAY))
    second = calculate(vehicle, book, clock=fixed_clock(TODAY))
    assert first == second
    assert (vehicle, book) == before


def test_expiry_from_bs() -> None:
    assert expiry_from_bs("2080-01-01") == (date(2023, 4, 14), date(2024, 4, 14))


# ===========================================================================
# TEST GROUP 3: Insurance, policy, target fiscal year
# ===========================================================================

def test_insurance_is_charged_once_on_first_year(book: RateBook) -> None:
    result = calculate(make_vehicle(last_renewed_date_bs="2078-01-01"), book, clock=fixed_clock(TODAY))
    assert [c.insurance_amount for c in result.calculations] == [INSURANCE_PREMIUM, 0, 0]


def test_insurance_can_be_excluded_without_insurance_rows() -> None:
    book = make_book(insurance_rates=[])
    result = calculate(make_vehicle(), book, include_insurance=False, clock=fixed_clock(TODAY))
    assert result.summary.total_insurance == 0
    assert result.summary.total_amount == pytest.approx(11_778)


def test_calculate_request_envelope(book: RateBook) -> None:
    request = CalculateRequest(vehicle=make_vehicle(), include_insurance=False)
    result = calculate_request(request, book, clock=fixed_clock(TODAY))
    assert result.summary.total_amount == pytest.approx(11_778)


def test_policy_overrides_service_fee(book: RateBook) -> None:
    policy = FeePolicy(service_fee=1_000)
    result = calculate(make_vehicle(), book, clock=fixed_clock(TODAY), policy=policy)
    assert result.summary.vat_amount == 130
    assert result.summary.total_amount == pytest.approx(13_945)


def test_policy_caps_years(book: RateBook) -> None:
    policy = FeePolicy(max_years_to_calculate=2)
    result = calculate(make_vehicle(last_renewed_date_bs="2078-01-01"), book, clock=fixed_clock(TODAY), policy=policy)
    assert [c.fiscal_year_id for c in result.calculations] == [1, 2]


def test_explicit_target_fiscal_year(book: RateBook) -> None:
    result = calculate(make_vehicle(), book, fiscal_year_id=5, clock=fixed_clock(TODAY))
    assert result.fiscal_year_id == 5
    # insurance only exists for 2081/82 and is found through the fallback chain
    assert result.summary.total_insurance == INSURANCE_PREMIUM


def test_closest_breakpoint_below_for_larger_engine(book: RateBook) -> None:
    result = calculate(make_vehicle(capacity=140), book, clock=fixed_clock(TODAY))
    assert result.calculations[0].tax_rate_match == "closest_below"
    assert result.calculations[0].tax_amount == 10_000


# ===========================================================================
# TEST GROUP 4: Preconditions and errors
# ===========================================================================

def test_unverified_vehicle_is_rejected(book: RateBook) -> None:
    with pytest.raises(VehicleNotVerified) as exc_info:
        calculate(make_vehicle(is_verified=False), book, clock=fixed_clock(TODAY))
    assert exc_info.value.to_error_body()["code"] == "VEHICLE_NOT_VERIFIED"


def test_fiscal_year_is_resolved_before_verification() -> None:
    with pytest.raises(NoFiscalYearConfigured):
        calculate(make_vehicle(is_verified=False), make_book(fiscal_years=[]), clock=fixed_clock(TODAY))


def test_unknown_target_fiscal_year(book: RateBook) -> None:
    with pytest.raises(FiscalYearNotFound):
        calculate(make_vehicle(), book, fiscal_year_id=42, clock=fixed_clock(TODAY))


def test_invalid_renewal_date(book: RateBook) -> None:
    with pytest.raises(InvalidDateFormat):
        calculate(make_vehicle(last_renewed_date_bs="2080-13-01"), book, clock=fixed_clock(TODAY))


def test_missing_tax_rate_propagates() -> None:
    with pytest.raises(RateNotFound) as exc_info:
        calculate(make_vehicle(), make_book(tax_rates=[]), clock=fixed_clock(TODAY))
    assert exc_info.value.kind == "tax"


# ===========================================================================
# TEST GROUP 5: Anomalies
# ===========================================================================

def test_penalty_tier_gap_is_reported() -> None:
    book = make_book(penalty_tiers=DEFAULT_PENALTY_TIERS[:1])
    vehicle = make_vehicle(last_renewed_date_bs="2079-04-16")
    result = calculate(vehicle, book, clock=fixed_clock(date(2023, 12, 15)))
    row = result.calculations[0]
    assert (row.penalty_amount, row.renewal_fee_penalty) == (0, 0)
    assert [a.code for a in result.anomalies] == ["PENALTY_TIER_GAP"]
    assert result.anomalies[0].fiscal_year_id == 3


def test_degraded_expansion_is_reported() -> None:
    book = make_book(fiscal_years=[FY_2082_83])
    vehicle = make_vehicle(last_renewed_date_bs="2078-01-01")
    result = calculate(vehicle, book, clock=fixed_clock(TODAY))
    assert result.degraded
    assert result.fiscal_year_id == 5
    assert [c.fiscal_year_id for c in result.calculations] == [5]
    assert result.calculations[0].days_overdue_after_grace == 761
    assert "DEGRADED_EXPANSION" in [a.code for a in result.anomalies]


def test_degraded_expansion_uses_current_fiscal_year() -> None:
    book = make_book(fiscal_years=[FY_2081_82, FY_2082_83])
    result = calculate(make_vehicle(last_renewed_date_bs="2078-01-01"), book, clock=fixed_clock(TODAY))
    assert result.degraded
    assert [c.fiscal_year_id for c in result.calculations] == [4]
    [anomaly] = [a for a in result.anomalies if a.code == "DEGRADED_EXPANSION"]
    assert anomaly.fiscal_year_id == 4


def test_fiscal_year_gap_charges_each_year_once() -> None:
    book = make_book(fiscal_years=[FY_2078_79, FY_2080_81, FY_2081_82])
    result = calculate(make_vehicle(last_renewed_date_bs="2078-01-01"), book, clock=fixed_clock(TODAY))
    assert [c.fiscal_year_id for c in result.calculations] == [1, 3, 4]
    assert [(a.code, a.fiscal_year_id) for a in result.anomalies] == [
        ("FISCAL_YEAR_GAP", 3),
        ("FISCAL_YEAR_GAP", 4),
    ]
    assert result.summary.total_tax == 30_000
    assert result.summary.total_penalty == pytest.approx(6_900)
    assert result.summary.total_amount == pytest.approx(41_093)
    assert not result.degraded


@pytest.mark.parametrize(
    "cached, expected_expiry, expected_codes",
    [
        (date(2024, 4, 14), date(2024, 4, 14), []),
        (date(2024, 4, 15), date(2024, 4, 15), []),
        (date(2024, 6, 1), date(2024, 4, 14), ["CACHED_EXPIRY_MISMATCH"]),
    ],
)
def test_cached_expiry_tolerance(
    book: RateBook, cached: date, expected_expiry: date, expected_codes: list[str]
) -> None:
    vehicle = make_vehicle(cached_expiry_date_ad=cached)
    result = calculate(vehicle, book, clock=fixed_clock(TODAY))
    assert result.vehicle_info.expiry_date_ad == expected_expiry
    assert [a.code for a in result.anomalies] == expected_codes
