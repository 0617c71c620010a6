"""Pydantic schemas for check-ins and the company last-contact view."""

from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from backoffice.schemas.common import Money
from backoffice.schemas.task import TaskResponse


class CheckInCreate(BaseModel):
    """
    Schema for ``POST /companies/{company_id}/check-ins``.

    ``revenue`` and ``burn`` are monthly amounts; ``runway`` is in months.
    ``check_in_date`` defaults to today.
    """

    check_in_date: Optional[date] = Field(default=None, examples=["2024-06-30"])
    revenue: Optional[Money] = Field(default=None, ge=0, examples=[180_000.00])
    burn: Optional[Money] = Field(default=None, ge=0, examples=[250_000.00])
    runway: Optional[int] = Field(default=None, ge=0, le=600, examples=[18])
    headcount: Optional[int] = Field(default=None, ge=0, examples=[38])
    notes: Optional[str] = Field(default=None, max_length=5000)
    metrics: Optional[Dict[str, Any]] = Field(
        default=None, description="Custom metrics", examples=[{"NPS": 61}]
    )


class CheckInResponse(BaseModel):
    id: UUID
    company_id: UUID
    check_in_date: date
    revenue: Optional[Money] = None
    burn: Optional[Money] = None
    runway: Optional[int] = None
    headcount: Optional[int] = None
    notes: Optional[str] = None
    metrics: Optional[Dict[str, Any]] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LastContact(CheckInResponse):
    days_since: int = Field(..., description="Whole days from the check-in to today")


class FundRef(BaseModel):
    id: UUID
    name: str

    model_config = ConfigDict(from_attributes=True)


class LatestInvestment(BaseModel):
    id: UUID
    amount: Money
    currency: str
    investment_date: date
    round: str
    fund: FundRef

    model_config = ConfigDict(from_attributes=True)


class CompanyContactResponse(BaseModel):
    """When the company was last contacted, what is open with it and the latest cheque."""

    company_id: UUID
    name: str
    sector: str
    website: Optional[str] = None
    last_contact: Optional[LastContact] = None
    upcoming_tasks: List[TaskResponse] = Field(default_factory=list)
    latest_investment: Optional[LatestInvestment] = None
