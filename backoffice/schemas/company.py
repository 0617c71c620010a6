"""Pydantic schemas for portfolio companies."""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backoffice.models.company import CompanyStage


class CompanyBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, examples=["Nimbus Robotics"])
    description: Optional[str] = Field(default=None, max_length=2000)
    sector: str = Field(..., min_length=1, max_length=120, examples=["Robotics"])
    stage: CompanyStage = Field(..., examples=["SERIES_A"])
    founded: date = Field(..., examples=["2019-06-01"])
    website: Optional[str] = Field(default=None, max_length=500)

    @field_validator("founded")
    @classmethod
    def validate_founded_not_future(cls, v: date) -> date:
        if v > date.today():
            raise ValueError("founded cannot be in the future")
        return v


class CompanyCreate(CompanyBase):
    """Schema for ``POST /companies``."""

    pass


class CompanyUpdate(BaseModel):
    """Schema for ``PATCH /companies/{id}``; omitted fields are unchanged."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    sector: Optional[str] = Field(default=None, min_length=1, max_length=120)
    stage: Optional[CompanyStage] = None
    founded: Optional[date] = None
    website: Optional[str] = Field(default=None, max_length=500)


class CompanyResponse(CompanyBase):
    id: UUID
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
