from __future__ import annotations

from datetime import date

import pytest

from vehicle_tax.engine.errors import FiscalYearNotFound, NoFiscalYearConfigured
from vehicle_tax.engine.fiscal_year import (
    find_fiscal_year_for_date,
    next_fiscal_year,
    recency_rank,
    resolve_target_fiscal_year,
)
from vehicle_tax.tests.sample_data import (
    FISCAL_YEARS,
    FY_2078_79,
    FY_2079_80,
    FY_2080_81,
    FY_2081_82,
    FY_2082_83,
)


@pytest.mark.parametrize(
    "ad, expected_id",
    [
        (date(2021, 7, 16), 1),     # first day, inclusive
        (date(2022, 7, 15), 1),     # last day, inclusive
        (date(2022, 7, 16), 2),
        (date(2024, 4, 14), 3),
        (date(2026, 7, 15), 5),
    ],
)
def test_find_fiscal_year_uses_inclusive_containment(ad: date, expected_id: int) -> None:
    fy = find_fiscal_year_for_date(FISCAL_YEARS, ad)
    assert fy is not None and fy.id == expected_id


def test_find_fiscal_year_returns_none_outside_configuration() -> None:
    assert find_fiscal_year_for_date(FISCAL_YEARS, date(2021, 7, 15)) is None
    assert find_fiscal_year_for_date(FISCAL_YEARS, date(2026, 7, 16)) is None


def test_find_fiscal_year_does_not_guess_across_gaps() -> None:
    with_gap = [FY_2078_79, FY_2080_81]
    assert find_fiscal_year_for_date(with_gap, date(2023, 1, 1)) is None


def test_resolve_explicit_id_wins_over_current() -> None:
    assert resolve_target_fiscal_year(FISCAL_YEARS, 2) == FY_2079_80


def test_resolve_unknown_id_raises() -> None:
    with pytest.raises(FiscalYearNotFound) as exc_info:
        resolve_target_fiscal_year(FISCAL_YEARS, 99)
    assert exc_info.value.fiscal_year_id == 99


def test_resolve_defaults_to_current() -> None:
    assert resolve_target_fiscal_year(FISCAL_YEARS) == FY_2081_82


def test_resolve_falls_back_to_latest_start_when_none_current() -> None:
    not_current = [fy.model_copy(update={"is_current": False}) for fy in FISCAL_YEARS]
    # order of the input must not matter
    assert resolve_target_fiscal_year(list(reversed(not_current))).id == FY_2082_83.id


def test_resolve_with_no_fiscal_years_raises() -> None:
    with pytest.raises(NoFiscalYearConfigured):
        resolve_target_fiscal_year([])


def test_next_fiscal_year_follows_start_order() -> None:
    assert next_fiscal_year(FISCAL_YEARS, FY_2079_80) == FY_2080_81
    assert next_fiscal_year([FY_2078_79, FY_2080_81], FY_2078_79) == FY_2080_81
    assert next_fiscal_year(FISCAL_YEARS, FY_2082_83) is None


def test_recency_rank_orders_by_start_date() -> None:
    rank = recency_rank(list(reversed(FISCAL_YEARS)))
    assert rank[FY_2082_83.id] > rank[FY_2081_82.id] > rank[FY_2078_79.id]
