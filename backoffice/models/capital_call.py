"""
Capital call domain models.

A :class:`CapitalCall` requests ``percentage`` % of every LP's commitment.
At creation one :class:`CapitalCallResponse` is written per LP in the fund;
that row fixes the LP's share of the call in ``expected_amount`` (the shares
sum to the call amount exactly) and tracks its payment.  Both ``status``
columns are derived values, see :mod:`backoffice.services.accounting`.
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, DateTime, Index, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from backoffice.models.fund import Fund
    from backoffice.models.limited_partner import LimitedPartner


class CapitalCallStatus(str, Enum):
    PENDING = "PENDING"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    FULLY_PAID = "FULLY_PAID"
    OVERDUE = "OVERDUE"


class ResponseStatus(str, Enum):
    """Per-LP payment state.  ``LATE`` exists for reporting but is never derived."""

    PENDING = "PENDING"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"
    LATE = "LATE"


class CapitalCall(SQLModel, table=True):
    __tablename__ = "capital_calls"  # type: ignore[assignment]

    # Covers: WHERE fund_id = ? ORDER BY call_date DESC
    __table_args__ = (
        Index("ix_capital_calls_fund_date", "fund_id", "call_date"),
        CheckConstraint("amount > 0", name="ck_capital_calls_amount_positive"),
        CheckConstraint("percentage > 0", name="ck_capital_calls_percentage_positive"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    fund_id: uuid.UUID = Field(foreign_key="funds.id", index=True, ondelete="RESTRICT")
    call_date: date
    due_date: date
    amount: Decimal = Field(max_digits=20, decimal_places=2)
    percentage: Decimal = Field(max_digits=12, decimal_places=6)
    description: Optional[str] = Field(default=None, max_length=2000)
    status: CapitalCallStatus = Field(default=CapitalCallStatus.PENDING, index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )

    # ── Relationships ──
    fund: Optional["Fund"] = Relationship(back_populates="capital_calls")
    responses: List["CapitalCallResponse"] = Relationship(back_populates="capital_call")

    def __repr__(self) -> str:
        return (
            f"<CapitalCall id={self.id} fund={self.fund_id} amount={self.amount} "
            f"pct={self.percentage} status={self.status.value}>"
        )


class CapitalCallResponse(SQLModel, table=True):
    __tablename__ = "capital_call_responses"  # type: ignore[assignment]

    __table_args__ = (
        UniqueConstraint("capital_call_id", "lp_id", name="uq_capital_call_responses_call_lp"),
        CheckConstraint("amount_paid >= 0", name="ck_capital_call_responses_paid_non_negative"),
        CheckConstraint(
            "expected_amount >= 0", name="ck_capital_call_responses_expected_non_negative"
        ),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    capital_call_id: uuid.UUID = Field(
        foreign_key="capital_calls.id", index=True, ondelete="CASCADE"
    )
    lp_id: uuid.UUID = Field(foreign_key="limited_partners.id", index=True, ondelete="RESTRICT")
    expected_amount: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=2)
    amount_paid: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=2)
    date_paid: Optional[date] = Field(default=None)
    notes: Optional[str] = Field(default=None, max_length=2000)
    status: ResponseStatus = Field(default=ResponseStatus.PENDING)

    # ── Relationships ──
    capital_call: Optional["CapitalCall"] = Relationship(back_populates="responses")
    limited_partner: Optional["LimitedPartner"] = Relationship(back_populates="responses")

    def __repr__(self) -> str:
        return (
            f"<CapitalCallResponse call={self.capital_call_id} lp={self.lp_id} "
            f"paid={self.amount_paid}/{self.expected_amount} status={self.status.value}>"
        )
