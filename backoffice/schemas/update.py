"""Pydantic schemas for company updates and their metrics."""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backoffice.models.update import UpdateType
from backoffice.schemas.common import Money


class MetricInput(BaseModel):
    """
    A named metric; numbers are stored exactly, anything else as text.

    Numeric strings such as ``"1200000"`` count as numbers.
    """

    name: str = Field(..., min_length=1, max_length=120, examples=["ARR"])
    value: Union[Decimal, str] = Field(..., examples=[1_200_000])

    @field_validator("value", mode="before")
    @classmethod
    def parse_numeric_text(cls, v):
        if not isinstance(v, str):
            return v
        try:
            number = Decimal(v.strip())
        except InvalidOperation:
            return v
        return number if number.is_finite() else v

    @field_validator("name")
    @classmethod
    def validate_name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v.strip()


class UpdateCreate(BaseModel):
    """Schema for ``POST /companies/{company_id}/updates``."""

    update_date: date = Field(..., examples=["2024-03-31"])
    update_type: UpdateType = Field(default=UpdateType.ADHOC)
    notes: Optional[str] = Field(default=None, max_length=5000)
    metrics: List[MetricInput] = Field(default_factory=list)


class MetricsAppend(BaseModel):
    """Schema for ``POST /updates/{update_id}/metrics``."""

    metrics: List[MetricInput] = Field(..., min_length=1)


class MetricResponse(BaseModel):
    id: UUID
    name: str
    value: Union[Money, str, None] = None
    metric_date: date

    model_config = ConfigDict(from_attributes=True)


class UpdateResponse(BaseModel):
    id: UUID
    company_id: UUID
    update_date: date
    update_type: UpdateType
    notes: Optional[str] = None
    created_at: datetime
    metrics: List[MetricResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class LatestMetricResponse(BaseModel):
    """Most recent value reported for one metric name."""

    name: str
    value: Union[Money, str, None] = None
    metric_date: date
    update_id: UUID
