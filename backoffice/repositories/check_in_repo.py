"""
Check-in repository.

Check-ins are always returned newest first: by ``check_in_date`` and, for
check-ins sharing a date, by creation time.
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from backoffice.models.check_in import CheckIn
from backoffice.repositories.base import BaseRepository


class CheckInRepository(BaseRepository[CheckIn]):
    """Concrete repository for :class:`CheckIn` entities."""

    def _newest_first(self):
        return (self.model.check_in_date.desc(), self.model.created_at.desc())

    async def list_check_ins(
        self,
        company_id: Optional[UUID] = None,
        since: Optional[date] = None,
        limit: int = 10,
    ) -> List[CheckIn]:
        """Check-ins (with their company) dated on or after ``since``."""
        stmt = select(self.model).options(selectinload(self.model.company))
        if company_id is not None:
            stmt = stmt.where(self.model.company_id == company_id)
        if since is not None:
            stmt = stmt.where(self.model.check_in_date >= since)
        stmt = stmt.order_by(*self._newest_first()).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def latest_for_company(self, company_id: UUID) -> Optional[CheckIn]:
        stmt = (
            select(self.model)
            .where(self.model.company_id == company_id)
            .order_by(*self._newest_first())
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()
