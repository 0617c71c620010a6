"""
Fund domain model.

A fund owns its limited partners, capital calls, investments and NAV
history.  ``owner_id`` identifies the managing user and drives the mutation
policy in :mod:`backoffice.core.permissions`.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, DateTime
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from backoffice.models.capital_call import CapitalCall
    from backoffice.models.investment import Investment
    from backoffice.models.limited_partner import LimitedPartner


class FundStatus(str, Enum):
    """Fund lifecycle, in the only order transitions may follow."""

    RAISING = "RAISING"
    INVESTING = "INVESTING"
    FULLY_INVESTED = "FULLY_INVESTED"
    HARVESTING = "HARVESTING"
    CLOSED = "CLOSED"


class Fund(SQLModel, table=True):
    """
    SQLModel / SQLAlchemy table definition for funds.

    - ``target_size`` uses DECIMAL(20,2) so currency arithmetic is exact.
    - ``currency`` is the reporting currency for commitments and calls.
    - ``status`` defaults to *RAISING* on creation.
    """

    __tablename__ = "funds"  # type: ignore[assignment]

    __table_args__ = (
        CheckConstraint("target_size > 0", name="ck_funds_target_size_positive"),
        CheckConstraint("vintage_year >= 1900", name="ck_funds_vintage_year_min"),
        CheckConstraint("length(name) > 0", name="ck_funds_name_not_empty"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    vintage_year: int = Field(index=True)
    target_size: Decimal = Field(max_digits=20, decimal_places=2)
    currency: str = Field(default="USD", max_length=3)
    status: FundStatus = Field(default=FundStatus.RAISING)
    owner_id: uuid.UUID = Field(foreign_key="users.id", index=True, ondelete="RESTRICT")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
        index=True,
    )

    # ── Relationships ──
    limited_partners: List["LimitedPartner"] = Relationship(back_populates="fund")
    capital_calls: List["CapitalCall"] = Relationship(back_populates="fund")
    investments: List["Investment"] = Relationship(back_populates="fund")

    def __repr__(self) -> str:
        return f"<Fund id={self.id} name='{self.name}' status={self.status.value}>"
