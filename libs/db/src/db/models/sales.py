from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    Integer,
    Numeric,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Core: apple_sales_history
# ---------------------------


class AppleSalesHistory(Base):
    """One aggregated proceeds total per report date.

    Rows are append-only: the ingestion pipeline inserts a row the first time a
    date is ingested and never updates or deletes it afterwards.
    """

    __tablename__ = "apple_sales_history"

    # SQLite only autoincrements INTEGER PRIMARY KEY (rowid) columns.
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    report_date: Mapped[date] = mapped_column(Date, nullable=False)
    proceeds: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    __table_args__ = (
        UniqueConstraint("report_date", name="uq_apple_sales_report_date"),
        CheckConstraint("proceeds >= 0", name="ck_apple_sales_proceeds_non_negative"),
    )

    def __repr__(self) -> str:
        return f"AppleSalesHistory(report_date={self.report_date!s}, proceeds={self.proceeds})"


__all__ = [
    "Base",
    "AppleSalesHistory",
]
