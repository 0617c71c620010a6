"""
Check-in model.

A :class:`CheckIn` records one conversation with a portfolio company: the
operating numbers it reported (monthly revenue and burn, runway in months,
headcount), free-form notes and any custom metrics as a JSON object.  The
newest check-in is the company's "last contact".
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Optional

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, Index
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from backoffice.models.company import PortfolioCompany


class CheckIn(SQLModel, table=True):
    __tablename__ = "check_ins"  # type: ignore[assignment]

    # Covers: WHERE company_id = ? ORDER BY check_in_date DESC
    __table_args__ = (
        Index("ix_check_ins_company_date", "company_id", "check_in_date"),
        CheckConstraint("revenue IS NULL OR revenue >= 0", name="ck_check_ins_revenue"),
        CheckConstraint("burn IS NULL OR burn >= 0", name="ck_check_ins_burn"),
        CheckConstraint("runway IS NULL OR runway >= 0", name="ck_check_ins_runway"),
        CheckConstraint("headcount IS NULL OR headcount >= 0", name="ck_check_ins_headcount"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    company_id: uuid.UUID = Field(
        foreign_key="portfolio_companies.id", index=True, ondelete="RESTRICT"
    )
    check_in_date: date
    revenue: Optional[Decimal] = Field(default=None, max_digits=20, decimal_places=2)
    burn: Optional[Decimal] = Field(default=None, max_digits=20, decimal_places=2)
    runway: Optional[int] = Field(default=None)
    headcount: Optional[int] = Field(default=None)
    notes: Optional[str] = Field(default=None, max_length=5000)
    metrics: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )

    company: Optional["PortfolioCompany"] = Relationship(back_populates="check_ins")

    def __repr__(self) -> str:
        return f"<CheckIn id={self.id} company={self.company_id} date={self.check_in_date}>"
