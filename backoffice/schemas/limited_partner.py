"""
Pydantic schemas for limited partners and their capital-account statements.
"""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from backoffice.models.capital_call import CapitalCallStatus, ResponseStatus
from backoffice.models.limited_partner import LPType
from backoffice.schemas.common import Money


class LimitedPartnerBase(BaseModel):
    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Legal name of the limited partner",
        examples=["CalPERS"],
    )
    email: Optional[EmailStr] = Field(default=None, description="Contact email")
    phone: Optional[str] = Field(default=None, max_length=50)
    lp_type: Optional[LPType] = Field(default=None, description="Investor category")

    @field_validator("name")
    @classmethod
    def validate_name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v.strip()


class LimitedPartnerCreate(LimitedPartnerBase):
    """Schema for ``POST /funds/{fund_id}/limited-partners``."""

    commitment: Money = Field(
        ...,
        gt=0,
        description="Committed capital in the fund currency",
        examples=[10_000_000.00],
    )


class LimitedPartnerUpdate(BaseModel):
    """
    Schema for ``PATCH /limited-partners/{id}``.  Omitted fields are left
    unchanged.  ``commitment`` is rejected once the LP has been called.
    """

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    lp_type: Optional[LPType] = None
    commitment: Optional[Money] = Field(default=None, gt=0)


class LimitedPartnerResponse(LimitedPartnerBase):
    id: UUID
    fund_id: UUID
    commitment: Money
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StatementLineResponse(BaseModel):
    """One capital call on an LP statement."""

    capital_call_id: UUID
    call_date: date
    due_date: date
    call_amount: Money
    percentage: Money
    call_status: CapitalCallStatus
    expected_amount: Money
    amount_paid: Money
    date_paid: Optional[date] = None
    payment_status: ResponseStatus

    model_config = ConfigDict(from_attributes=True)


class LPStatementResponse(BaseModel):
    """
    Capital-account statement for one LP in one fund.

    ``outstanding_balance = total_called − total_paid`` and
    ``remaining_commitment = commitment − total_called``.
    """

    lp_id: UUID
    lp_name: str
    fund_id: UUID
    fund_name: str
    currency: str
    commitment: Money
    total_called: Money
    total_paid: Money
    outstanding_balance: Money
    remaining_commitment: Money
    call_history: List[StatementLineResponse]
