"""
Company update and metric models.

Updates are append-only time series: a :class:`CompanyUpdate` is never edited
except to append further :class:`UpdateMetric` rows, which inherit the
update's date.
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Union

from sqlalchemy import DateTime, Index
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from backoffice.models.company import PortfolioCompany


class UpdateType(str, Enum):
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    ANNUAL = "ANNUAL"
    ADHOC = "ADHOC"


class CompanyUpdate(SQLModel, table=True):
    __tablename__ = "company_updates"  # type: ignore[assignment]

    __table_args__ = (Index("ix_company_updates_company_date", "company_id", "update_date"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    company_id: uuid.UUID = Field(
        foreign_key="portfolio_companies.id", index=True, ondelete="RESTRICT"
    )
    update_date: date
    update_type: UpdateType = Field(default=UpdateType.ADHOC)
    notes: Optional[str] = Field(default=None, max_length=5000)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )

    company: Optional["PortfolioCompany"] = Relationship(back_populates="updates")
    metrics: List["UpdateMetric"] = Relationship(back_populates="company_update")


class UpdateMetric(SQLModel, table=True):
    """
    One named value in an update.  Exactly one of ``value_number`` /
    ``value_text`` is set; :attr:`value` returns whichever it is.
    """

    __tablename__ = "update_metrics"  # type: ignore[assignment]

    __table_args__ = (Index("ix_update_metrics_name_date", "name", "metric_date"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    update_id: uuid.UUID = Field(foreign_key="company_updates.id", index=True, ondelete="CASCADE")
    name: str = Field(max_length=120)
    value_number: Optional[Decimal] = Field(default=None, max_digits=24, decimal_places=6)
    value_text: Optional[str] = Field(default=None, max_length=500)
    metric_date: date
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )

    company_update: Optional[CompanyUpdate] = Relationship(back_populates="metrics")

    @property
    def value(self) -> Union[Decimal, str, None]:
        return self.value_number if self.value_number is not None else self.value_text
