"""
calculator.py — Renewal tax calculation entry point.

Pure Python, no I/O, deterministic. Same vehicle + rate book + clock → same result.

Computation sequence (order matters):
  1. Resolve the target fiscal year (explicit id, else current, else latest)
  2. Require a verified vehicle
  3. Establish the AD expiry from the BS renewal/registration date
  4. Expand the owed years (1 to 4)
  5. Insurance premium, ONCE, against the target fiscal year
  6. Per owed year: tax rate, renewal fee, penalty percentages, penalty amounts
  7. Totals; VAT on the service fee only; grand total rounded last

Amounts carry full float precision until the grand total, which is the only
value rounded (together with VAT, which is rounded on its own by policy).
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Optional

from vehicle_tax.engine.errors import VehicleNotVerified
from vehicle_tax.engine.expander import expand_overdue_years, renewal_expiry
from vehicle_tax.engine.fiscal_year import recency_rank, resolve_target_fiscal_year
from vehicle_tax.engine.nepali_calendar import ad_to_bs, bs_to_ad
from vehicle_tax.engine.penalty import resolve_penalty
from vehicle_tax.engine.rates import find_insurance_rate, find_tax_rate
from vehicle_tax.engine.schemas import (
    Anomaly,
    CalculateRequest,
    CalculationResult,
    CalculationSummary,
    FeePolicy,
    RateBook,
    VehicleInfo,
    VehicleSnapshot,
    YearCalculation,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], date]


# ===========================================================================
# INTERNAL HELPERS
# ===========================================================================

def _establish_expiry(
    vehicle: VehicleSnapshot,
    renewed_on: date,
    policy: FeePolicy,
    anomalies: list[Anomaly],
) -> date:
    """
    Expiry = renewal (or registration) date + 1 year.

    A cached AD expiry is preferred when it agrees with the computed one to
    within policy.expiry_tolerance_days; otherwise the computed value wins.
    """
    computed = renewal_expiry(renewed_on)
    cached = vehicle.cached_expiry_date_ad
    if cached is None:
        return computed
    if abs((cached - computed).days) <= policy.expiry_tolerance_days:
        return cached

    logger.warning(
        "Cached expiry inconsistent vehicle_id=%s cached=%s computed=%s; using computed",
        vehicle.vehicle_id, cached.isoformat(), computed.isoformat(),
    )
    anomalies.append(Anomaly(
        code="CACHED_EXPIRY_MISMATCH",
        message=f"Cached expiry {cached.isoformat()} disagrees with computed {computed.isoformat()}",
    ))
    return computed


def _summarise(calculations: list[YearCalculation], policy: FeePolicy) -> CalculationSummary:
    total_tax = sum(c.tax_amount for c in calculations)
    total_renewal_fee = sum(c.renewal_fee for c in calculations)
    total_penalty = sum(c.penalty_amount for c in calculations)
    total_renewal_fee_penalty = sum(c.renewal_fee_penalty for c in calculations)
    total_insurance = sum(c.insurance_amount for c in calculations)

    service_fee = policy.service_fee
    vat_amount = round(service_fee * policy.vat_rate, 2)
    total_amount = round(
        total_tax
        + total_insurance
        + total_renewal_fee
        + total_penalty
        + total_renewal_fee_penalty
        + service_fee
        + vat_amount,
        2,
    )
    return CalculationSummary(
        total_tax=total_tax,
        total_renewal_fee=total_renewal_fee,
        total_penalty=total_penalty,
        total_renewal_fee_penalty=total_renewal_fee_penalty,
        total_penalty_amount=total_penalty + total_renewal_fee_penalty,
        total_insurance=total_insurance,
        service_fee=service_fee,
        vat_amount=vat_amount,
        total_amount=total_amount,
        years_count=len(calculations),
    )


# ===========================================================================
# PUBLIC API
# ===========================================================================

def calculate(
    vehicle: VehicleSnapshot,
    book: RateBook,
    *,
    fiscal_year_id: Optional[int] = None,
    include_insurance: bool = True,
    clock: Clock = date.today,
    policy: Optional[FeePolicy] = None,
) -> CalculationResult:
    """
    Compute everything owed to renew `vehicle`.

    Args:
        vehicle:           Snapshot of the vehicle; never modified.
        book:              Read-only snapshot of fiscal years, rates and penalty tiers.
        fiscal_year_id:    Target fiscal year; defaults to the current one.
        include_insurance: Add one annual insurance premium to the first owed year.
        clock:             Supplies today's AD date.
        policy:            Service fee, VAT rate, grace period, year cap.

    Raises:
        NoFiscalYearConfigured, FiscalYearNotFound, VehicleNotVerified,
        InvalidDateFormat, DateOutOfRange, RateNotFound.
    """
    policy = policy or FeePolicy()
    today = clock()
    anomalies: list[Anomaly] = []

    # ---- 1. Target fiscal year -------------------------------------------
    target = resolve_target_fiscal_year(book.fiscal_years, fiscal_year_id)

    # ---- 2. Verification precondition ------------------------------------
    if not vehicle.is_verified:
        raise VehicleNotVerified(vehicle.vehicle_id)

    # ---- 3. Expiry --------------------------------------------------------
    registration_ad = bs_to_ad(vehicle.registration_date_bs)
    last_renewed_ad = bs_to_ad(vehicle.last_renewed_date_bs) if vehicle.last_renewed_date_bs else None
    expiry = _establish_expiry(vehicle, last_renewed_ad or registration_ad, policy, anomalies)

    # ---- 4. Owed years ----------------------------------------------------
    expansion = expand_overdue_years(
        expiry,
        today,
        book.fiscal_years,
        target,
        grace_period_days=policy.grace_period_days,
        max_years=policy.max_years_to_calculate,
    )
    if expansion.degraded:
        anomalies.append(Anomaly(
            code="DEGRADED_EXPANSION",
            message="No owed year matched a configured fiscal year; overdue days estimated",
            fiscal_year_id=expansion.years[0].fiscal_year.id,
        ))

    rank = recency_rank(book.fiscal_years)

    # ---- 5. Insurance, once ----------------------------------------------
    insurance_amount = 0.0
    if include_insurance:
        insurance_amount = find_insurance_rate(
            book.insurance_rates,
            fiscal_year_id=target.id,
            vehicle_type=vehicle.vehicle_type,
            fuel_type=vehicle.fuel_type,
            capacity=vehicle.capacity,
            fiscal_year_rank=rank,
        ).rate.annual_premium

    # ---- 6. Per owed year -------------------------------------------------
    calculations: list[YearCalculation] = []
    for index, owed in enumerate(expansion.years):
        fy = owed.fiscal_year
        lookup = find_tax_rate(
            book.tax_rates,
            fiscal_year_id=fy.id,
            province_id=vehicle.province_id,
            vehicle_type=vehicle.vehicle_type,
            fuel_type=vehicle.fuel_type,
            capacity=vehicle.capacity,
            fiscal_year_rank=rank,
        )
        if owed.fiscal_year_substituted:
            anomalies.append(Anomaly(
                code="FISCAL_YEAR_GAP",
                message=f"Cycle expiring {owed.expiry_date_ad.isoformat()} charged on successor fiscal year {fy.label}",
                fiscal_year_id=fy.id,
            ))
        penalty = resolve_penalty(book.penalty_tiers, owed.days_overdue_after_grace, owed.beyond_fiscal_year)
        if penalty.tier_gap:
            anomalies.append(Anomaly(
                code="PENALTY_TIER_GAP",
                message=f"No active penalty tier covers {owed.days_overdue_after_grace} overdue days",
                fiscal_year_id=fy.id,
            ))

        tax_amount = lookup.rate.annual_tax_amount
        renewal_fee = lookup.rate.renewal_fee
        penalty_amount = tax_amount * penalty.tax_penalty_percent / 100
        renewal_fee_penalty = renewal_fee * penalty.renewal_fee_penalty_percent / 100
        year_insurance = insurance_amount if index == 0 else 0.0

        calculations.append(YearCalculation(
            fiscal_year_id=fy.id,
            fiscal_year_label=fy.label,
            fiscal_year_start_ad=fy.start_date_ad,
            fiscal_year_end_ad=fy.end_date_ad,
            fiscal_year_start_bs=ad_to_bs(fy.start_date_ad),
            fiscal_year_end_bs=ad_to_bs(fy.end_date_ad),
            expiry_date_ad=owed.expiry_date_ad,
            expiry_date_bs=ad_to_bs(owed.expiry_date_ad),
            days_overdue_after_grace=owed.days_overdue_after_grace,
            tax_amount=tax_amount,
            renewal_fee=renewal_fee,
            tax_penalty_percent=penalty.tax_penalty_percent,
            penalty_amount=penalty_amount,
            renewal_fee_penalty_percent=penalty.renewal_fee_penalty_percent,
            renewal_fee_penalty=renewal_fee_penalty,
            insurance_amount=year_insurance,
            subtotal=tax_amount + renewal_fee + penalty_amount + renewal_fee_penalty + year_insurance,
            penalty_tier_label=penalty.tier_label,
            tax_rate_match=lookup.match.value,
        ))

    # ---- 7. Totals ----------------------------------------------------------
    summary = _summarise(calculations, policy)

    logger.info(
        "Calculated vehicle_id=%s fiscal_year_id=%s years=%s degraded=%s anomalies=%s",
        vehicle.vehicle_id, target.id, summary.years_count, expansion.degraded, len(anomalies),
    )
    return CalculationResult(
        vehicle_id=vehicle.vehicle_id,
        fiscal_year_id=target.id,
        vehicle_info=VehicleInfo(
            registration_date_bs=vehicle.registration_date_bs,
            registration_date_ad=registration_ad,
            last_renewed_date_bs=vehicle.last_renewed_date_bs,
            last_renewed_date_ad=last_renewed_ad,
            expiry_date_ad=expiry,
            expiry_date_bs=ad_to_bs(expiry),
            today_ad=today,
            today_bs=ad_to_bs(today),
        ),
        calculations=calculations,
        summary=summary,
        degraded=expansion.degraded,
        anomalies=anomalies,
    )


def calculate_request(
    request: CalculateRequest,
    book: RateBook,
    *,
    clock: Clock = date.today,
    policy: Optional[FeePolicy] = None,
) -> CalculationResult:
    """calculate() driven by a CalculateRequest envelope."""
    return calculate(
        request.vehicle,
        book,
        fiscal_year_id=request.fiscal_year_id,
        include_insurance=request.include_insurance,
        clock=clock,
        policy=policy,
    )


def expiry_from_bs(bs_date: str) -> tuple[date, date]:
    """(AD date, AD expiry) for a BS renewal or registration date."""
    ad = bs_to_ad(bs_date)
    return ad, renewal_expiry(ad)
