"""
models/fiscal_year.py — SQLAlchemy ORM for fiscal years.

Table: fiscal_years
A Nepali fiscal year runs from Shrawan 1 to Asar end (mid-July to mid-July AD).
Ranges are stored in AD; contiguity is checked by the rate book validator.
"""
from datetime import date

from sqlalchemy import Boolean, Date, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from vehicle_tax.database import Base


class FiscalYearORM(Base):
    __tablename__ = "fiscal_years"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    year: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        unique=True,
        comment="BS label, e.g. '2081/82'",
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False, comment="First AD day, inclusive")
    end_date: Mapped[date] = mapped_column(Date, nullable=False, comment="Last AD day, inclusive")
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
