"""Portfolio company domain model."""

import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, DateTime
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from backoffice.models.check_in import CheckIn
    from backoffice.models.investment import Investment
    from backoffice.models.task import Task
    from backoffice.models.update import CompanyUpdate


class CompanyStage(str, Enum):
    SEED = "SEED"
    SERIES_A = "SERIES_A"
    SERIES_B = "SERIES_B"
    SERIES_C = "SERIES_C"
    SERIES_D = "SERIES_D"
    GROWTH = "GROWTH"
    PRE_IPO = "PRE_IPO"


class PortfolioCompany(SQLModel, table=True):
    """
    A company on the roster.  Companies are not owned by a single fund; the
    link to funds runs through :class:`~backoffice.models.investment.Investment`.
    """

    __tablename__ = "portfolio_companies"  # type: ignore[assignment]

    __table_args__ = (
        CheckConstraint("length(name) > 0", name="ck_portfolio_companies_name_not_empty"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    sector: str = Field(max_length=120)
    stage: CompanyStage
    founded: date
    website: Optional[str] = Field(default=None, max_length=500)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )

    # ── Relationships ──
    investments: List["Investment"] = Relationship(back_populates="company")
    updates: List["CompanyUpdate"] = Relationship(back_populates="company")
    check_ins: List["CheckIn"] = Relationship(back_populates="company")
    tasks: List["Task"] = Relationship(back_populates="company")

    def __repr__(self) -> str:
        return f"<PortfolioCompany id={self.id} name='{self.name}' stage={self.stage.value}>"
