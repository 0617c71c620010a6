"""
Task model: a follow-up item, optionally about a portfolio company and
optionally assigned to a user.
"""

import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime
from sqlmodel import Field, Relationship, SQLModel

from backoffice.models.user import User

if TYPE_CHECKING:
    from backoffice.models.company import PortfolioCompany


class TaskStatus(str, Enum):
    """Declared in workflow order; listings sort by this order."""

    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"
    CANCELED = "CANCELED"


class TaskPriority(str, Enum):
    """Declared lowest first; listings put the highest priority first."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


OPEN_TASK_STATUSES = (TaskStatus.TODO, TaskStatus.IN_PROGRESS)


class Task(SQLModel, table=True):
    __tablename__ = "tasks"  # type: ignore[assignment]

    __table_args__ = (
        CheckConstraint("length(description) > 0", name="ck_tasks_description_not_empty"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    description: str = Field(max_length=2000)
    due_date: Optional[date] = Field(default=None, index=True)
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    status: TaskStatus = Field(default=TaskStatus.TODO, index=True)
    company_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="portfolio_companies.id", index=True, ondelete="SET NULL"
    )
    assigned_to_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="users.id", index=True, ondelete="SET NULL"
    )
    created_by_id: uuid.UUID = Field(foreign_key="users.id", index=True, ondelete="RESTRICT")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )

    # ── Relationships ──
    company: Optional["PortfolioCompany"] = Relationship(back_populates="tasks")
    assigned_to: Optional[User] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[Task.assigned_to_id]"}
    )
    created_by: Optional[User] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[Task.created_by_id]"}
    )

    def __repr__(self) -> str:
        return (
            f"<Task id={self.id} status={self.status.value} "
            f"priority={self.priority.value} due={self.due_date}>"
        )
