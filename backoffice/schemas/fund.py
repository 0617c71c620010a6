"""
Pydantic schemas for Fund API request / response serialisation.

Separating schemas from SQLModel table models keeps the API contract
decoupled from the persistence layer.
"""

from datetime import datetime
from typing import Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backoffice.core.config import settings
from backoffice.models.fund import FundStatus
from backoffice.schemas.common import Money

# Dynamically computed so the validation bound advances each calendar year
# without requiring a code change or redeployment.
_CURRENT_YEAR = datetime.now().year


class FundBase(BaseModel):
    """Fields common to fund creation and update payloads."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Human-readable name of the fund",
        examples=["Acme Ventures Fund II"],
    )
    description: Optional[str] = Field(default=None, max_length=2000)
    vintage_year: int = Field(
        ...,
        description="Year the fund held its first close",
        examples=[2024],
    )
    target_size: Money = Field(
        ...,
        gt=0,
        description="Target fund size in the fund currency (must be positive)",
        examples=[100_000_000.00],
    )
    currency: str = Field(
        default=settings.DEFAULT_CURRENCY,
        min_length=3,
        max_length=3,
        description="ISO-4217 reporting currency",
        examples=["USD"],
    )
    status: FundStatus = Field(
        default=FundStatus.RAISING,
        description="Lifecycle status of the fund",
    )

    @field_validator("vintage_year")
    @classmethod
    def validate_vintage_year(cls, v: int) -> int:
        """Vintage year must be a realistic calendar year."""
        if v < 1900 or v > _CURRENT_YEAR + 5:
            raise ValueError(f"vintage_year must be between 1900 and {_CURRENT_YEAR + 5}")
        return v

    @field_validator("name")
    @classmethod
    def validate_name_not_blank(cls, v: str) -> str:
        """Reject whitespace-only names."""
        if not v.strip():
            raise ValueError("name must not be blank")
        return v.strip()

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        code = v.strip().upper()
        if code not in settings.currency_codes:
            raise ValueError(f"currency must be one of {sorted(settings.currency_codes)}")
        return code


class FundCreate(FundBase):
    """
    Schema for ``POST /funds``.

    ``status`` defaults to *RAISING*; the caller becomes the owner unless a
    SUPER_ADMIN assigns ``owner_id`` explicitly.
    """

    owner_id: Optional[UUID] = Field(
        default=None,
        description="Managing user (SUPER_ADMIN only; defaults to the caller)",
    )


class FundUpdate(FundBase):
    """Schema for ``PUT /funds/{id}``: full replacement of the mutable fields."""

    pass


class FundResponse(FundBase):
    """Schema returned by all fund endpoints."""

    id: UUID
    owner_id: UUID
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FundSummary(BaseModel):
    """Roll-up figures for one fund."""

    fund: FundResponse
    total_commitments: Money
    total_invested: Dict[str, Money] = Field(
        default_factory=dict, description="Invested amount per currency"
    )
    lp_count: int
    capital_call_count: int
