"""
models/__init__.py — imports all ORM models so Base.metadata sees every table
(create_all in tests and seed scripts, autogenerate in Alembic).

Import order follows FK dependencies: provinces and fiscal years first.
"""
from vehicle_tax.models.province import ProvinceORM
from vehicle_tax.models.fiscal_year import FiscalYearORM
from vehicle_tax.models.tax_rate import TaxRateORM
from vehicle_tax.models.insurance_rate import InsuranceRateORM
from vehicle_tax.models.penalty_tier import PenaltyTierORM
from vehicle_tax.models.vehicle import VehicleORM

__all__ = [
    "ProvinceORM",
    "FiscalYearORM",
    "TaxRateORM",
    "InsuranceRateORM",
    "PenaltyTierORM",
    "VehicleORM",
]
