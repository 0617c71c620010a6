"""
Pydantic schemas for capital calls and LP payments.
"""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from backoffice.models.capital_call import CapitalCallStatus, ResponseStatus
from backoffice.schemas.common import Money


class CapitalCallCreate(BaseModel):
    """
    Schema for ``POST /funds/{fund_id}/capital-calls``.

    Send ``amount`` alone to have the percentage derived from total LP
    commitments.  Sending ``percentage`` as well is allowed only when both
    describe the same call.
    """

    amount: Money = Field(
        ...,
        gt=0,
        description="Total amount called from all LPs",
        examples=[1_100_000.00],
    )
    due_date: date = Field(..., description="Date payments are due", examples=["2024-03-31"])
    call_date: Optional[date] = Field(default=None, description="Defaults to today")
    percentage: Optional[Money] = Field(
        default=None,
        gt=0,
        le=100,
        description="Share of each commitment being called (0-100]",
        examples=[10.0],
    )
    description: Optional[str] = Field(default=None, max_length=2000)

    @model_validator(mode="after")
    def validate_due_after_call(self) -> "CapitalCallCreate":
        if self.call_date is not None and self.due_date < self.call_date:
            raise ValueError("due_date must not be before call_date")
        return self


class PaymentCreate(BaseModel):
    """
    Schema for ``POST /capital-calls/{id}/payments``.

    ``amount_paid`` is the LP's cumulative payment for the call and replaces
    any previously recorded value.
    """

    lp_id: UUID
    amount_paid: Money = Field(..., ge=0, examples=[1_000_000.00])
    date_paid: date = Field(..., examples=["2024-03-20"])
    notes: Optional[str] = Field(default=None, max_length=2000)


class CallResponseDetail(BaseModel):
    """One LP's obligation and payment for a call."""

    id: UUID
    lp_id: UUID
    lp_name: Optional[str] = None
    expected_amount: Money
    amount_paid: Money
    date_paid: Optional[date] = None
    status: ResponseStatus
    notes: Optional[str] = None


class CapitalCallDetail(BaseModel):
    """
    A capital call with its responses.

    ``status`` is derived as of the request date, so a call past its due
    date with nothing paid reads as OVERDUE even before a status refresh.
    """

    id: UUID
    fund_id: UUID
    call_date: date
    due_date: date
    amount: Money
    percentage: Money
    description: Optional[str] = None
    status: CapitalCallStatus
    total_paid: Money
    created_at: datetime
    responses: List[CallResponseDetail] = Field(default_factory=list)


class StatusRefreshResult(BaseModel):
    """Outcome of a status sweep."""

    checked: int = Field(..., description="Calls re-derived")
    changed: int = Field(..., description="Calls whose stored status changed")
