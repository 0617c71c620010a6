"""
Investment domain model.

Represents one cheque a fund wrote into a portfolio company.  ``ownership``
is the percentage acquired in that round; summing it across rounds is a
display aggregate only (dilution is not modelled).
"""

import uuid
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, Index
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from backoffice.models.company import PortfolioCompany
    from backoffice.models.fund import Fund


class InvestmentType(str, Enum):
    PRIMARY = "PRIMARY"
    SECONDARY = "SECONDARY"
    CONVERTIBLE_NOTE = "CONVERTIBLE_NOTE"
    SAFE = "SAFE"


class Investment(SQLModel, table=True):
    """
    SQLModel / SQLAlchemy table definition for investments.

    - ``amount`` and ``valuation`` use DECIMAL(20,2); ``currency`` is kept per
      row because a fund can invest in several currencies.
    - The composite index serves "investments in company X, newest first".
    """

    __tablename__ = "investments"  # type: ignore[assignment]

    __table_args__ = (
        Index("ix_investments_company_date", "company_id", "investment_date"),
        CheckConstraint("amount > 0", name="ck_investments_amount_positive"),
        CheckConstraint("valuation >= 0", name="ck_investments_valuation_non_negative"),
        CheckConstraint(
            "ownership >= 0 AND ownership <= 100", name="ck_investments_ownership_range"
        ),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    fund_id: uuid.UUID = Field(foreign_key="funds.id", index=True, ondelete="RESTRICT")
    company_id: uuid.UUID = Field(
        foreign_key="portfolio_companies.id", index=True, ondelete="RESTRICT"
    )
    amount: Decimal = Field(max_digits=20, decimal_places=2)
    currency: str = Field(default="USD", max_length=3)
    investment_date: date
    round: str = Field(max_length=100)
    valuation: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=2)
    ownership: Decimal = Field(default=Decimal("0"), max_digits=9, decimal_places=4)
    investment_type: InvestmentType = Field(default=InvestmentType.PRIMARY)

    # ── Relationships ──
    fund: Optional["Fund"] = Relationship(back_populates="investments")
    company: Optional["PortfolioCompany"] = Relationship(back_populates="investments")

    def __repr__(self) -> str:
        return (
            f"<Investment id={self.id} fund={self.fund_id} company={self.company_id} "
            f"amount={self.amount} {self.currency}>"
        )
