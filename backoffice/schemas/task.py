"""Pydantic schemas for tasks."""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from backoffice.models.task import TaskPriority, TaskStatus


class TaskCreate(BaseModel):
    """Schema for ``POST /tasks``; new tasks always start as TODO."""

    description: str = Field(..., min_length=1, max_length=2000, examples=["Send Q2 board pack"])
    due_date: Optional[date] = Field(default=None, examples=["2024-07-15"])
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    company_id: Optional[UUID] = None
    assigned_to_id: Optional[UUID] = None

    @field_validator("description")
    @classmethod
    def validate_description_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("description must not be blank")
        return v.strip()


class TaskCreateByName(BaseModel):
    """
    Schema for ``POST /mcp/task.create``: the company and assignee are given
    by company name and user email instead of ids.
    """

    description: str = Field(..., min_length=1, max_length=2000)
    due_date: Optional[date] = None
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    company_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    assign_to_email: Optional[EmailStr] = None


class TaskStatusUpdate(BaseModel):
    """Schema for ``PATCH /tasks/{task_id}/status``."""

    status: TaskStatus


class UserRef(BaseModel):
    id: UUID
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class CompanyRef(BaseModel):
    id: UUID
    name: str

    model_config = ConfigDict(from_attributes=True)


class TaskResponse(BaseModel):
    id: UUID
    description: str
    due_date: Optional[date] = None
    priority: TaskPriority
    status: TaskStatus
    company: Optional[CompanyRef] = None
    assigned_to: Optional[UserRef] = None
    created_by: Optional[UserRef] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
