"""
Shared FastAPI dependencies.

``get_authenticator`` and ``get_current_user`` are the seams tests override
through ``app.dependency_overrides``; routers only ever depend on
``get_current_user``.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.core.config import settings
from backoffice.core.security import Authenticator, EmailAuthenticator
from backoffice.db.session import get_db
from backoffice.models.user import User
from backoffice.repositories.user_repo import UserRepository


def get_authenticator(db: AsyncSession = Depends(get_db)) -> Authenticator:
    """Build the authenticator wired to the current request's DB session."""
    return EmailAuthenticator(UserRepository(User, db))


async def get_current_user(
    request: Request,
    authenticator: Authenticator = Depends(get_authenticator),
) -> User:
    """Resolve the caller from ``settings.AUTH_HEADER`` (401 if absent or unknown)."""
    return await authenticator.authenticate(request.headers.get(settings.AUTH_HEADER))
