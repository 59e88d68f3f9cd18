"""
schemas.py — Calculation engine Pydantic v2 data contracts.

Defines:
  - VehicleType, FuelType, FiscalYearScope enums
  - VehicleSnapshot                 (read-only view of the vehicle being renewed)
  - FiscalYear, TaxRate, InsuranceRate, PenaltyTier, RateBook  (configuration)
  - FeePolicy                       (service fee, VAT, grace period, year cap)
  - CalculateRequest                (engine input envelope)
  - OwedYear, OverdueExpansion, PenaltyResolution  (intermediate results)
  - YearCalculation, VehicleInfo, CalculationSummary, Anomaly, CalculationResult

All monetary values are NPR floats. Dates ending in _ad are Gregorian
`datetime.date`; dates ending in _bs are Bikram Sambat "YYYY-MM-DD" strings.
"""
from __future__ import annotations

from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

if TYPE_CHECKING:
    from vehicle_tax.config import Settings


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class VehicleType(str, Enum):
    two_wheeler = "2W"
    four_wheeler = "4W"
    commercial = "Commercial"
    heavy = "Heavy"


class FuelType(str, Enum):
    petrol = "Petrol"
    diesel = "Diesel"
    electric = "Electric"


class FiscalYearScope(str, Enum):
    """Which side of the expiry's fiscal-year end a penalty tier applies to."""
    any = "any"
    same_fiscal_year = "same_fiscal_year"
    beyond_fiscal_year = "beyond_fiscal_year"


# ---------------------------------------------------------------------------
# VehicleSnapshot — the vehicle being renewed
# ---------------------------------------------------------------------------

class VehicleSnapshot(BaseModel):
    """
    Read-only view of a vehicle at calculation time.

    capacity is CC for combustion engines and Watts for electric vehicles.
    Date strings are checked by the calendar converter, not here, so a bad
    date surfaces as InvalidDateFormat / DateOutOfRange rather than a 422.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    vehicle_id: int
    capacity: int = Field(..., ge=0, description="Engine CC, or Watts for electric vehicles.")
    vehicle_type: VehicleType
    fuel_type: FuelType
    province_id: int
    registration_date_bs: str = Field(..., min_length=1, description="BS registration date, YYYY-MM-DD.")
    last_renewed_date_bs: Optional[str] = Field(
        default=None,
        description="BS date of the last renewal. Registration date is used when absent.",
    )
    cached_expiry_date_ad: Optional[date] = Field(
        default=None,
        description="Previously stored AD expiry. Trusted only when it agrees with the computed one.",
    )
    is_verified: bool = False


# ---------------------------------------------------------------------------
# Configuration tables
# ---------------------------------------------------------------------------

class FiscalYear(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: int
    label: str                      # e.g. "2081/82"
    start_date_ad: date
    end_date_ad: date
    is_current: bool = False

    def contains(self, ad: date) -> bool:
        return self.start_date_ad <= ad <= self.end_date_ad


class TaxRate(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    fiscal_year_id: int
    province_id: int
    vehicle_type: VehicleType
    fuel_type: FuelType
    capacity_value: int = Field(..., ge=0, description="Lower capacity breakpoint of this band.")
    annual_tax_amount: float
    renewal_fee: float = 300.0


class InsuranceRate(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    fiscal_year_id: int
    vehicle_type: VehicleType
    fuel_type: FuelType
    capacity_value: int = Field(..., ge=0)
    annual_premium: float


class PenaltyTier(BaseModel):
    """
    One row of the progressive penalty table.

    days_from_expiry / days_to are counted AFTER the grace period and are both
    inclusive. days_to=None means the tier is unbounded above.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    duration_label: str
    days_from_expiry: int
    days_to: Optional[int] = None
    tax_penalty_percent: float
    renewal_fee_penalty_percent: float
    is_active: bool = True
    fiscal_year_scope: FiscalYearScope = FiscalYearScope.any


class RateBook(BaseModel):
    """One consistent, read-only snapshot of every configuration table."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    fiscal_years: List[FiscalYear] = Field(default_factory=list)
    tax_rates: List[TaxRate] = Field(default_factory=list)
    insurance_rates: List[InsuranceRate] = Field(default_factory=list)
    penalty_tiers: List[PenaltyTier] = Field(default_factory=list)


class FeePolicy(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    service_fee: float = Field(default=600.0, ge=0)
    vat_rate: float = Field(default=0.13, ge=0)
    grace_period_days: int = Field(default=90, ge=0)
    max_years_to_calculate: int = Field(default=4, ge=1)
    expiry_tolerance_days: int = Field(default=1, ge=0)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "FeePolicy":
        return cls(
            service_fee=settings.service_fee,
            vat_rate=settings.vat_rate,
            grace_period_days=settings.grace_period_days,
            max_years_to_calculate=settings.max_years_to_calculate,
            expiry_tolerance_days=settings.expiry_tolerance_days,
        )


class CalculateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    vehicle: VehicleSnapshot
    fiscal_year_id: Optional[int] = None
    include_insurance: bool = True


# ---------------------------------------------------------------------------
# Intermediate results
# ---------------------------------------------------------------------------

class PenaltyResolution(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    tax_penalty_percent: float = 0.0
    renewal_fee_penalty_percent: float = 0.0
    tier_label: Optional[str] = None
    tier_gap: bool = False          # overdue but no active tier covered the day count


class OwedYear(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    fiscal_year: FiscalYear
    expiry_date_ad: date
    days_overdue_after_grace: int = Field(..., ge=0)
    beyond_fiscal_year: bool = False
    fiscal_year_substituted: bool = False   # cycle expiry had no distinct fiscal year; successor used


class OverdueExpansion(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    years: List[OwedYear]
    degraded: bool = False          # no owed year matched a fiscal year; estimate used


# ---------------------------------------------------------------------------
# CalculationResult — main engine output
# ---------------------------------------------------------------------------

class YearCalculation(BaseModel):
    """Charges for one owed fiscal year. insurance_amount is non-zero on the first year only."""
    model_config = ConfigDict(extra="forbid")

    fiscal_year_id: int
    fiscal_year_label: str
    fiscal_year_start_ad: date
    fiscal_year_end_ad: date
    fiscal_year_start_bs: str
    fiscal_year_end_bs: str
    expiry_date_ad: date
    expiry_date_bs: str
    days_overdue_after_grace: int
    tax_amount: float
    renewal_fee: float
    tax_penalty_percent: float
    penalty_amount: float
    renewal_fee_penalty_percent: float
    renewal_fee_penalty: float
    insurance_amount: float = 0.0
    subtotal: float
    penalty_tier_label: Optional[str] = None
    tax_rate_match: str             # fallback step that produced the tax rate


class VehicleInfo(BaseModel):
    model_config = ConfigDict(extra="forbid")

    registration_date_bs: str
    registration_date_ad: date
    last_renewed_date_bs: Optional[str] = None
    last_renewed_date_ad: Optional[date] = None
    expiry_date_ad: date
    expiry_date_bs: str
    today_ad: date
    today_bs: str


class CalculationSummary(BaseModel):
    model_config = ConfigDict(extra="forbid")

    total_tax: float
    total_renewal_fee: float
    total_penalty: float
    total_renewal_fee_penalty: float
    total_penalty_amount: float     # penalty + renewal-fee penalty
    total_insurance: float
    service_fee: float
    vat_amount: float
    total_amount: float
    years_count: int

    @model_validator(mode="after")
    def _years_positive(self) -> "CalculationSummary":
        if self.years_count < 1:
            raise ValueError("A calculation always covers at least one fiscal year")
        return self


class Anomaly(BaseModel):
    """Non-fatal irregularity recorded during a calculation."""
    model_config = ConfigDict(extra="forbid")

    code: str                       # PENALTY_TIER_GAP, FISCAL_YEAR_GAP, DEGRADED_EXPANSION, CACHED_EXPIRY_MISMATCH
    message: str
    fiscal_year_id: Optional[int] = None


class CalculationResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    vehicle_id: int
    fiscal_year_id: int             # target fiscal year of the request
    vehicle_info: VehicleInfo
    calculations: List[YearCalculation]
    summary: CalculationSummary
    degraded: bool = False
    anomalies: List[Anomaly] = Field(default_factory=list)
