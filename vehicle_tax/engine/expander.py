"""
expander.py — Enumerates the fiscal years a renewal must pay for.

A registration stays valid for one year after each renewal. An owner who is
several renewal cycles behind owes one year per missed cycle, up to
MAX_YEARS_TO_CALCULATE; older cycles are written off and never charged.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional, Sequence

from vehicle_tax.engine.fiscal_year import find_fiscal_year_for_date, next_fiscal_year
from vehicle_tax.engine.penalty import GRACE_PERIOD_DAYS, days_overdue_after_grace, is_beyond_fiscal_year
from vehicle_tax.engine.schemas import FiscalYear, OverdueExpansion, OwedYear

logger = logging.getLogger(__name__)

MAX_YEARS_TO_CALCULATE = 4


def add_years(d: date, years: int) -> date:
    """Same calendar day `years` later; Feb 29 lands on Feb 28 in non-leap years."""
    try:
        return d.replace(year=d.year + years)
    except ValueError:
        return d.replace(year=d.year + years, day=28)


def renewal_expiry(renewed_on: date) -> date:
    """Expiry of a registration renewed (or first registered) on `renewed_on`."""
    return add_years(renewed_on, 1)


def expand_overdue_years(
    expiry: date,
    today: date,
    fiscal_years: Sequence[FiscalYear],
    target_fiscal_year: FiscalYear,
    *,
    grace_period_days: int = GRACE_PERIOD_DAYS,
    max_years: int = MAX_YEARS_TO_CALCULATE,
) -> OverdueExpansion:
    """
    List the owed years, oldest first, each on a distinct fiscal year.

    Within the grace period exactly one year is owed, attributed to the fiscal
    year containing today (or the target year when today is unconfigured).

    Past grace, renewal cycle N (N = 0 .. max_years-1) expires on expiry + N
    years. Cycles that expire after today are not yet owed. Each cycle is
    attributed to the fiscal year containing its expiry. When that date falls
    in a configuration gap, or in a fiscal year an earlier cycle already took,
    the successor of the previous cycle's fiscal year is used instead and the
    year is flagged fiscal_year_substituted. A cycle with neither is skipped.

    If every cycle was skipped the result is a single estimated year on the
    current fiscal year (the target when none is flagged current), flagged
    degraded.
    """
    if today <= expiry + timedelta(days=grace_period_days):
        fy = find_fiscal_year_for_date(fiscal_years, today) or target_fiscal_year
        return OverdueExpansion(
            years=[OwedYear(fiscal_year=fy, expiry_date_ad=expiry, days_overdue_after_grace=0)]
        )

    years: list[OwedYear] = []
    previous: Optional[FiscalYear] = None
    for n in range(max_years):
        year_expiry = add_years(expiry, n)
        if n > 0 and year_expiry > today:
            break

        fy = find_fiscal_year_for_date(fiscal_years, year_expiry)
        substituted = False
        if previous is not None and (fy is None or fy.start_date_ad <= previous.start_date_ad):
            fy = next_fiscal_year(fiscal_years, previous)
            substituted = True
        if fy is None:
            logger.warning("No fiscal year configured for renewal cycle expiring %s", year_expiry.isoformat())
            continue
        if substituted:
            logger.warning(
                "Renewal cycle expiring %s charged on successor fiscal_year_id=%s",
                year_expiry.isoformat(), fy.id,
            )

        previous = fy
        years.append(OwedYear(
            fiscal_year=fy,
            expiry_date_ad=year_expiry,
            days_overdue_after_grace=days_overdue_after_grace(year_expiry, today, grace_period_days),
            beyond_fiscal_year=is_beyond_fiscal_year(fiscal_years, year_expiry, today),
            fiscal_year_substituted=substituted,
        ))

    if years:
        return OverdueExpansion(years=years)

    fallback = next((fy for fy in fiscal_years if fy.is_current), target_fiscal_year)
    logger.warning(
        "Overdue expansion degraded: expiry=%s matched no fiscal year; estimating on fiscal_year_id=%s",
        expiry.isoformat(), fallback.id,
    )
    return OverdueExpansion(
        years=[OwedYear(
            fiscal_year=fallback,
            expiry_date_ad=expiry,
            days_overdue_after_grace=days_overdue_after_grace(expiry, today, grace_period_days),
            beyond_fiscal_year=is_beyond_fiscal_year(fiscal_years, expiry, today),
        )],
        degraded=True,
    )
