"""
models/province.py — SQLAlchemy ORM for provinces.

Table: provinces
Tax rates are set per province; the seven provinces are seeded by seed.py.
"""
from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from vehicle_tax.database import Base


class ProvinceORM(Base):
    __tablename__ = "provinces"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True, comment="e.g. 'BAGMATI'")
    number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        unique=True,
        comment="Constitutional province number, 1–7",
    )
