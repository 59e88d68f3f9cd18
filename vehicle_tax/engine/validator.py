"""
Rate book configuration validator.

Checks a RateBook against the configuration invariants AFTER Pydantic
structural validation has passed. Collects all violations in a single pass and
raises InvalidRateBook carrying the list of {field, issue} dicts, so an operator
fixes every row in one go rather than discovering them one at a time.

Rules enforced:
  1. fiscal year start_date_ad <= end_date_ad
  2. fiscal years do not overlap
  3. at most one fiscal year is_current
  4. tax / insurance capacity breakpoints are distinct per key
  5. tax / insurance amounts are non-negative
  6. penalty tiers: days_to >= days_from_expiry, non-negative percentages

Gaps between consecutive fiscal years are logged, not rejected; the resolver
falls back around them.
"""
from __future__ import annotations

import logging
from collections import Counter
from datetime import timedelta
from typing import Any

from vehicle_tax.engine.errors import InvalidRateBook
from vehicle_tax.engine.fiscal_year import ordered_by_start
from vehicle_tax.engine.schemas import RateBook

logger = logging.getLogger(__name__)


def validate_rate_book(book: RateBook) -> None:
    """
    Raises:
        InvalidRateBook: If any invariant is violated. `details` lists every
            violation as {"field": str, "issue": str}.
    """
    violations: list[dict[str, Any]] = []

    # ---- 1-3. Fiscal years -------------------------------------------------
    for fy in book.fiscal_years:
        if fy.start_date_ad > fy.end_date_ad:
            violations.append({
                "field": f"fiscal_years[{fy.id}]",
                "issue": f"{fy.label} starts {fy.start_date_ad} after it ends {fy.end_date_ad}",
            })

    ordered = ordered_by_start(book.fiscal_years)
    for earlier, later in zip(ordered, ordered[1:]):
        if later.start_date_ad <= earlier.end_date_ad:
            violations.append({
                "field": f"fiscal_years[{later.id}]",
                "issue": f"{later.label} overlaps {earlier.label}",
            })
        elif later.start_date_ad > earlier.end_date_ad + timedelta(days=1):
            logger.warning(
                "Fiscal year gap between fiscal_year_id=%s and fiscal_year_id=%s",
                earlier.id, later.id,
            )

    current = [fy.label for fy in book.fiscal_years if fy.is_current]
    if len(current) > 1:
        violations.append({
            "field": "fiscal_years",
            "issue": f"more than one current fiscal year: {', '.join(current)}",
        })

    # ---- 4-5. Rate tables --------------------------------------------------
    tax_keys = Counter(
        (r.fiscal_year_id, r.province_id, r.vehicle_type.value, r.fuel_type.value, r.capacity_value)
        for r in book.tax_rates
    )
    for key, count in tax_keys.items():
        if count > 1:
            violations.append({
                "field": "tax_rates",
                "issue": f"duplicate capacity breakpoint {key[4]} for fiscal_year_id={key[0]} "
                         f"province_id={key[1]} {key[2]}/{key[3]}",
            })
    for r in book.tax_rates:
        if r.annual_tax_amount < 0 or r.renewal_fee < 0:
            violations.append({
                "field": "tax_rates",
                "issue": f"negative amount at capacity {r.capacity_value} for fiscal_year_id={r.fiscal_year_id}",
            })

    insurance_keys = Counter(
        (r.fiscal_year_id, r.vehicle_type.value, r.fuel_type.value, r.capacity_value)
        for r in book.insurance_rates
    )
    for key, count in insurance_keys.items():
        if count > 1:
            violations.append({
                "field": "insurance_rates",
                "issue": f"duplicate capacity breakpoint {key[3]} for fiscal_year_id={key[0]} {key[1]}/{key[2]}",
            })
    for r in book.insurance_rates:
        if r.annual_premium < 0:
            violations.append({
                "field": "insurance_rates",
                "issue": f"negative premium at capacity {r.capacity_value} for fiscal_year_id={r.fiscal_year_id}",
            })

    # ---- 6. Penalty tiers ----------------------------------------------------
    for tier in book.penalty_tiers:
        if tier.days_to is not None and tier.days_to < tier.days_from_expiry:
            violations.append({
                "field": "penalty_tiers",
                "issue": f"{tier.duration_label!r} ends ({tier.days_to}) before it starts ({tier.days_from_expiry})",
            })
        if tier.tax_penalty_percent < 0 or tier.renewal_fee_penalty_percent < 0:
            violations.append({
                "field": "penalty_tiers",
                "issue": f"{tier.duration_label!r} has a negative percentage",
            })

    if violations:
        logger.warning("Rate book rejected with %d violation(s)", len(violations))
        raise InvalidRateBook(violations)
