"""
NAV calculation models.

A :class:`NAVCalculation` is an immutable snapshot: once written, neither it
nor its :class:`NAVHolding` rows are updated.  Several calculations may share
a fund and date; history is append-only.
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import CheckConstraint, DateTime, Index
from sqlmodel import Field, Relationship, SQLModel


class ValuationMethod(str, Enum):
    LAST_ROUND = "LAST_ROUND"
    MARK_TO_MARKET = "MARK_TO_MARKET"
    COMPARABLE_COMPANIES = "COMPARABLE_COMPANIES"
    DCF = "DCF"
    WRITE_OFF = "WRITE_OFF"


class NAVCalculation(SQLModel, table=True):
    __tablename__ = "nav_calculations"  # type: ignore[assignment]

    __table_args__ = (
        Index("ix_nav_calculations_fund_date", "fund_id", "calculation_date"),
        CheckConstraint("total_value >= 0", name="ck_nav_calculations_total_non_negative"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    fund_id: uuid.UUID = Field(foreign_key="funds.id", index=True, ondelete="RESTRICT")
    calculation_date: date
    total_value: Decimal = Field(max_digits=20, decimal_places=2)
    currency: str = Field(max_length=3)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )

    holdings: List["NAVHolding"] = Relationship(back_populates="calculation")

    def __repr__(self) -> str:
        return (
            f"<NAVCalculation id={self.id} fund={self.fund_id} "
            f"date={self.calculation_date} total={self.total_value} {self.currency}>"
        )


class NAVHolding(SQLModel, table=True):
    __tablename__ = "nav_holdings"  # type: ignore[assignment]

    __table_args__ = (
        CheckConstraint("value >= 0", name="ck_nav_holdings_value_non_negative"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    calculation_id: uuid.UUID = Field(
        foreign_key="nav_calculations.id", index=True, ondelete="CASCADE"
    )
    # Not a foreign key: valuations may reference companies tracked elsewhere.
    company_id: uuid.UUID = Field(index=True)
    value: Decimal = Field(max_digits=20, decimal_places=2)
    method: ValuationMethod
    notes: Optional[str] = Field(default=None, max_length=2000)

    calculation: Optional[NAVCalculation] = Relationship(back_populates="holdings")
