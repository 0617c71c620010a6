"""
User domain model.

Users are the authenticated callers of the API and CLI.  Only the fields the
permission policy needs are stored; credentials live with the identity
provider.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import CheckConstraint, DateTime
from sqlmodel import Field, SQLModel


class UserRole(str, Enum):
    """Roles recognised by :mod:`backoffice.core.permissions`."""

    SUPER_ADMIN = "SUPER_ADMIN"
    FUND_MANAGER = "FUND_MANAGER"
    ANALYST = "ANALYST"
    READ_ONLY = "READ_ONLY"
    USER = "USER"


class User(SQLModel, table=True):
    __tablename__ = "users"  # type: ignore[assignment]

    __table_args__ = (
        CheckConstraint("length(email) > 0", name="ck_users_email_not_empty"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(max_length=255)
    email: str = Field(unique=True, index=True, max_length=320)
    role: UserRole = Field(default=UserRole.USER)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email='{self.email}' role={self.role.value}>"
