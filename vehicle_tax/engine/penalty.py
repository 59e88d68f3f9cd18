"""
penalty.py — Progressive late-renewal penalty resolution.

Penalties start after a grace period (90 days by default) following expiry.
The percentages come from the configured PenaltyTier table only; DEFAULT_PENALTY_TIERS
mirrors the published policy and is what seed.py loads:

  overdue days   where                           tax penalty   renewal-fee penalty
  1–30           any                             5%            100%
  31–45          any                             10%           100%
  46+            same fiscal year as the expiry  20%           100%
  46+            past that fiscal year           32%           100%

Among matching active tiers the one with the largest days_from_expiry wins;
on a tie a tier scoped to the fiscal-year position beats an unscoped one.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Sequence

from vehicle_tax.engine.fiscal_year import find_fiscal_year_for_date
from vehicle_tax.engine.schemas import FiscalYear, FiscalYearScope, PenaltyResolution, PenaltyTier

logger = logging.getLogger(__name__)

GRACE_PERIOD_DAYS = 90

# Used when the expiry falls outside every configured fiscal year
_DAYS_PER_FISCAL_YEAR = 365

DEFAULT_PENALTY_TIERS: list[PenaltyTier] = [
    PenaltyTier(
        duration_label="First 30 Days",
        days_from_expiry=0,
        days_to=30,
        tax_penalty_percent=5,
        renewal_fee_penalty_percent=100,
    ),
    PenaltyTier(
        duration_label="Up to 45 Days",
        days_from_expiry=31,
        days_to=45,
        tax_penalty_percent=10,
        renewal_fee_penalty_percent=100,
    ),
    PenaltyTier(
        duration_label="Within the same Fiscal Year",
        days_from_expiry=46,
        days_to=None,
        tax_penalty_percent=20,
        renewal_fee_penalty_percent=100,
        fiscal_year_scope=FiscalYearScope.same_fiscal_year,
    ),
    PenaltyTier(
        duration_label="Beyond the same Fiscal Year",
        days_from_expiry=46,
        days_to=None,
        tax_penalty_percent=32,
        renewal_fee_penalty_percent=100,
        fiscal_year_scope=FiscalYearScope.beyond_fiscal_year,
    ),
]


def days_overdue_after_grace(expiry: date, today: date, grace_period_days: int = GRACE_PERIOD_DAYS) -> int:
    """max(0, days since expiry − grace period). Day 90 → 0, day 91 → 1."""
    return max(0, (today - expiry).days - grace_period_days)


def is_beyond_fiscal_year(
    fiscal_years: Sequence[FiscalYear],
    expiry: date,
    today: date,
) -> bool:
    """
    True when `today` is past the end of the fiscal year containing `expiry`.

    If no configured fiscal year contains the expiry, a full year since expiry
    counts as beyond.
    """
    fy = find_fiscal_year_for_date(fiscal_years, expiry)
    if fy is None:
        return (today - expiry).days >= _DAYS_PER_FISCAL_YEAR
    return today > fy.end_date_ad


def _scope_admits(tier: PenaltyTier, beyond_fiscal_year: bool) -> bool:
    if tier.fiscal_year_scope is FiscalYearScope.any:
        return True
    if tier.fiscal_year_scope is FiscalYearScope.beyond_fiscal_year:
        return beyond_fiscal_year
    return not beyond_fiscal_year


def resolve_penalty(
    tiers: Sequence[PenaltyTier],
    overdue_days: int,
    beyond_fiscal_year: bool = False,
) -> PenaltyResolution:
    """
    Map overdue days (already net of grace) to a penalty percentage pair.

    overdue_days <= 0 → 0 / 0. No matching tier → 0 / 0 with tier_gap=True;
    the gap is logged, never filled in by guessing a neighbouring tier.
    """
    if overdue_days <= 0:
        return PenaltyResolution()

    matching = [
        t for t in tiers
        if t.is_active
        and t.days_from_expiry <= overdue_days
        and (t.days_to is None or t.days_to >= overdue_days)
        and _scope_admits(t, beyond_fiscal_year)
    ]
    if not matching:
        logger.warning(
            "No active penalty tier covers overdue_days=%s beyond_fiscal_year=%s",
            overdue_days, beyond_fiscal_year,
        )
        return PenaltyResolution(tier_gap=True)

    tier = max(
        matching,
        key=lambda t: (t.days_from_expiry, t.fiscal_year_scope is not FiscalYearScope.any),
    )
    return PenaltyResolution(
        tax_penalty_percent=tier.tax_penalty_percent,
        renewal_fee_penalty_percent=tier.renewal_fee_penalty_percent,
        tier_label=tier.duration_label,
    )
