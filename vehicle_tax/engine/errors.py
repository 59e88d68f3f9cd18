"""
errors.py — Typed failures raised by the calculation engine.

Every error carries a stable `code` and a list of {field, issue} details so a
web layer can render the standard error envelope without parsing messages:

    {"error": {"code": "RATE_NOT_FOUND", "message": "...", "details": [...]}}

A calculation either succeeds completely or raises one of these. Penalty tier
gaps are NOT raised; they are reported as anomalies on the result.
"""
from __future__ import annotations

from typing import Any, Optional


class CalculationError(Exception):
    """Base class for every engine failure."""

    code = "CALCULATION_ERROR"

    def __init__(self, message: str, details: Optional[list[dict[str, Any]]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: list[dict[str, Any]] = details or []

    def to_error_body(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


# ---------------------------------------------------------------------------
# Calendar errors — client input problems
# ---------------------------------------------------------------------------

class InvalidDateFormat(CalculationError, ValueError):
    """Not YYYY-MM-DD, month outside 1-12, or day past the month's length."""

    code = "INVALID_DATE_FORMAT"

    def __init__(self, value: str, reason: str) -> None:
        super().__init__(
            f"Invalid Bikram Sambat date {value!r}: {reason}",
            [{"field": "date", "issue": reason}],
        )
        self.value = value


class DateOutOfRange(CalculationError, ValueError):
    """Date lies outside the embedded calendar table."""

    code = "DATE_OUT_OF_RANGE"

    def __init__(self, value: Any, lower: Any, upper: Any) -> None:
        super().__init__(
            f"Date {value} is outside the supported range {lower} to {upper}",
            [{"field": "date", "issue": f"supported range is {lower} to {upper}"}],
        )
        self.value = value


# ---------------------------------------------------------------------------
# Configuration errors — rate book incomplete or inconsistent
# ---------------------------------------------------------------------------

class NoFiscalYearConfigured(CalculationError):
    code = "NO_FISCAL_YEAR_CONFIGURED"

    def __init__(self) -> None:
        super().__init__("No fiscal year is configured")


class FiscalYearNotFound(CalculationError):
    code = "FISCAL_YEAR_NOT_FOUND"

    def __init__(self, fiscal_year_id: int) -> None:
        super().__init__(
            f"Fiscal year {fiscal_year_id} does not exist",
            [{"field": "fiscal_year_id", "issue": f"unknown id {fiscal_year_id}"}],
        )
        self.fiscal_year_id = fiscal_year_id


class RateNotFound(CalculationError):
    """
    Raised when every step of the fallback chain came up empty.

    `requested` holds the query dimensions; `available_capacities` and
    `available_fiscal_year_ids` describe what the table does hold for the same
    vehicle type (any fuel), so an operator can see which row is missing.
    """

    code = "RATE_NOT_FOUND"

    def __init__(
        self,
        kind: str,
        requested: dict[str, Any],
        available_capacities: list[int],
        available_fiscal_year_ids: list[int],
    ) -> None:
        dims = ", ".join(f"{k}={v}" for k, v in requested.items() if v is not None)
        capacities = ", ".join(str(c) for c in available_capacities) or "none"
        years = ", ".join(str(y) for y in available_fiscal_year_ids) or "none"
        super().__init__(
            f"No {kind} rate found for {dims}. "
            f"Available capacities: {capacities}. Available fiscal years: {years}",
            [{"field": k, "issue": f"requested {v}"} for k, v in requested.items() if v is not None],
        )
        self.kind = kind
        self.requested = requested
        self.available_capacities = available_capacities
        self.available_fiscal_year_ids = available_fiscal_year_ids


class InvalidRateBook(CalculationError, ValueError):
    """Rate book violates a configuration invariant. details lists every violation."""

    code = "INVALID_RATE_BOOK"

    def __init__(self, violations: list[dict[str, Any]]) -> None:
        super().__init__(
            f"Rate book has {len(violations)} configuration violation(s)",
            violations,
        )


# ---------------------------------------------------------------------------
# Vehicle errors
# ---------------------------------------------------------------------------

class VehicleNotVerified(CalculationError):
    code = "VEHICLE_NOT_VERIFIED"

    def __init__(self, vehicle_id: int) -> None:
        super().__init__(f"Vehicle {vehicle_id} is not verified")
        self.vehicle_id = vehicle_id


class VehicleNotFound(CalculationError):
    code = "VEHICLE_NOT_FOUND"

    def __init__(self, vehicle_id: int) -> None:
        super().__init__(f"Vehicle {vehicle_id} does not exist")
        self.vehicle_id = vehicle_id
