"""Pydantic schemas for NAV calculations and company valuations."""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from backoffice.core.config import settings
from backoffice.models.nav import ValuationMethod
from backoffice.schemas.common import Money


class HoldingInput(BaseModel):
    company_id: UUID
    value: Money = Field(..., ge=0, examples=[5_000_000.00])
    method: ValuationMethod = Field(default=ValuationMethod.LAST_ROUND)
    notes: Optional[str] = Field(default=None, max_length=2000)


class NAVCalculate(BaseModel):
    """
    Schema for ``POST /funds/{fund_id}/nav``.

    ``currency`` is checked against the configured ISO-4217 codes by the
    service, so the API and CLI reject unknown codes identically.
    """

    calculation_date: date = Field(..., examples=["2024-03-31"])
    currency: str = Field(default=settings.DEFAULT_CURRENCY, examples=["USD"])
    holdings: List[HoldingInput] = Field(default_factory=list)


class NAVHoldingResponse(BaseModel):
    id: UUID
    company_id: UUID
    value: Money
    method: ValuationMethod
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class NAVCalculationResponse(BaseModel):
    id: UUID
    fund_id: UUID
    calculation_date: date
    total_value: Money
    currency: str
    created_at: datetime
    holdings: List[NAVHoldingResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class CompanyValuationResponse(BaseModel):
    """The company's value in the most recent NAV calculation that includes it."""

    company_id: UUID
    value: Money
    currency: str
    method: ValuationMethod
    calculation_id: UUID
    calculation_date: date
