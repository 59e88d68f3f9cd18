"""
models/vehicle.py — SQLAlchemy ORM for registered vehicles.

Table: vehicles
Only the columns the calculation reads. Owner identity lives with the
registration service, not here.
"""
from datetime import date
from typing import Optional

from sqlalchemy import Date, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from vehicle_tax.database import Base

VERIFIED_STATUS = "approved"


class VehicleORM(Base):
    __tablename__ = "vehicles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    registration_number: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    province_id: Mapped[int] = mapped_column(ForeignKey("provinces.id"), nullable=False, index=True)
    vehicle_type: Mapped[str] = mapped_column(String(20), nullable=False)
    fuel_type: Mapped[str] = mapped_column(String(10), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, comment="CC, or Watts for electric")
    registration_date_bs: Mapped[str] = mapped_column(String(10), nullable=False)
    last_renewed_date_bs: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    expiry_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
        comment="Cached AD expiry; the calculation recomputes and compares",
    )
    verification_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        comment="'pending', 'approved' or 'rejected'",
    )

    @property
    def is_verified(self) -> bool:
        return self.verification_status == VERIFIED_STATUS
