"""
Pydantic schemas for Investment API request / response serialisation.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backoffice.core.config import settings
from backoffice.models.investment import InvestmentType
from backoffice.schemas.common import Money


class InvestmentBase(BaseModel):
    """Fields common to investment payloads and responses."""

    fund_id: UUID
    company_id: UUID
    amount: Money = Field(..., gt=0, examples=[2_500_000.00])
    currency: str = Field(default=settings.DEFAULT_CURRENCY, min_length=3, max_length=3)
    investment_date: date = Field(..., examples=["2024-03-15"])
    round: str = Field(..., min_length=1, max_length=100, examples=["Series A"])
    valuation: Money = Field(default=Decimal("0"), ge=0, description="Post-money valuation")
    ownership: Money = Field(
        default=Decimal("0"), ge=0, le=100, description="Percentage acquired in this round"
    )
    investment_type: InvestmentType = Field(default=InvestmentType.PRIMARY)

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        code = v.strip().upper()
        if code not in settings.currency_codes:
            raise ValueError(f"currency must be one of {sorted(settings.currency_codes)}")
        return code


class InvestmentCreate(InvestmentBase):
    """Schema for ``POST /investments``."""

    @field_validator("investment_date")
    @classmethod
    def validate_investment_date_not_future(cls, v: date) -> date:
        """
        Reject investment dates more than one year in the future.

        Closings can be forward-dated, but wildly future dates are almost
        certainly data-entry errors.
        """
        max_date = date.today() + timedelta(days=365)
        if v > max_date:
            raise ValueError(
                f"investment_date cannot be more than one year in the future (max: {max_date})"
            )
        return v


class InvestmentResponse(InvestmentBase):
    id: UUID

    model_config = ConfigDict(from_attributes=True)


class TotalInvestedResponse(BaseModel):
    company_id: Optional[UUID] = None
    totals: Dict[str, Money] = Field(default_factory=dict, description="Amount per currency")


class OwnershipResponse(BaseModel):
    company_id: UUID
    ownership: Money = Field(..., description="Sum of per-round ownership percentages")
