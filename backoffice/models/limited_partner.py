"""
Limited partner domain model.

An LP belongs to exactly one fund and carries an absolute ``commitment``.
Each capital call snapshots the fund's LPs into
:class:`~backoffice.models.capital_call.CapitalCallResponse` rows.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, DateTime, Index
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from backoffice.models.capital_call import CapitalCallResponse
    from backoffice.models.fund import Fund


class LPType(str, Enum):
    INDIVIDUAL = "Individual"
    INSTITUTION = "Institution"
    FAMILY_OFFICE = "Family Office"


class LimitedPartner(SQLModel, table=True):
    __tablename__ = "limited_partners"  # type: ignore[assignment]

    __table_args__ = (
        Index("ix_limited_partners_fund_name", "fund_id", "name"),
        CheckConstraint("commitment > 0", name="ck_limited_partners_commitment_positive"),
        CheckConstraint("length(name) > 0", name="ck_limited_partners_name_not_empty"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    fund_id: uuid.UUID = Field(foreign_key="funds.id", index=True, ondelete="RESTRICT")
    name: str = Field(max_length=255)
    email: Optional[str] = Field(default=None, max_length=320)
    phone: Optional[str] = Field(default=None, max_length=50)
    lp_type: Optional[LPType] = Field(default=None)
    commitment: Decimal = Field(max_digits=20, decimal_places=2)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )

    # ── Relationships ──
    fund: Optional["Fund"] = Relationship(back_populates="limited_partners")
    responses: List["CapitalCallResponse"] = Relationship(back_populates="limited_partner")

    def __repr__(self) -> str:
        return f"<LimitedPartner id={self.id} name='{self.name}' commitment={self.commitment}>"
