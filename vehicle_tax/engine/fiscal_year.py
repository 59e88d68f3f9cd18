"""
fiscal_year.py — Fiscal year lookup over the configured FiscalYear rows.

Containment is an explicit [start_date_ad, end_date_ad] check against the
configured rows. Nothing is inferred from the BS calendar: a date outside every
configured range has no fiscal year.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

from vehicle_tax.engine.errors import FiscalYearNotFound, NoFiscalYearConfigured
from vehicle_tax.engine.schemas import FiscalYear

logger = logging.getLogger(__name__)


def ordered_by_start(fiscal_years: Sequence[FiscalYear]) -> list[FiscalYear]:
    return sorted(fiscal_years, key=lambda fy: (fy.start_date_ad, fy.id))


def find_fiscal_year_for_date(fiscal_years: Sequence[FiscalYear], ad: date) -> Optional[FiscalYear]:
    """Return the fiscal year whose range contains `ad`, or None."""
    for fy in ordered_by_start(fiscal_years):
        if fy.contains(ad):
            return fy
    return None


def resolve_target_fiscal_year(
    fiscal_years: Sequence[FiscalYear],
    fiscal_year_id: Optional[int] = None,
) -> FiscalYear:
    """
    Pick the fiscal year a calculation is made for.

    Order of preference:
      1. fiscal_year_id, when given (unknown id → FiscalYearNotFound)
      2. the row flagged is_current
      3. the most recent row by start date

    Raises:
        NoFiscalYearConfigured: no fiscal years exist at all.
    """
    if not fiscal_years:
        raise NoFiscalYearConfigured()

    if fiscal_year_id is not None:
        for fy in fiscal_years:
            if fy.id == fiscal_year_id:
                return fy
        raise FiscalYearNotFound(fiscal_year_id)

    current = [fy for fy in fiscal_years if fy.is_current]
    if current:
        return ordered_by_start(current)[-1]

    latest = ordered_by_start(fiscal_years)[-1]
    logger.info("No current fiscal year flagged; using latest fiscal_year_id=%s", latest.id)
    return latest


def next_fiscal_year(fiscal_years: Sequence[FiscalYear], fy: FiscalYear) -> Optional[FiscalYear]:
    """The fiscal year that starts after `fy`, in start-date order."""
    for candidate in ordered_by_start(fiscal_years):
        if candidate.start_date_ad > fy.start_date_ad:
            return candidate
    return None


def recency_rank(fiscal_years: Sequence[FiscalYear]) -> dict[int, int]:
    """Map fiscal_year_id → rank where a higher rank means a more recent year."""
    return {fy.id: rank for rank, fy in enumerate(ordered_by_start(fiscal_years))}
