"""
NAV repository.

Calculations are always returned newest first: by ``calculation_date`` and,
for calculations sharing a date, by creation time.
"""

from datetime import date
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from backoffice.models.fund import Fund
from backoffice.models.nav import NAVCalculation, NAVHolding
from backoffice.repositories.base import BaseRepository


class NAVRepository(BaseRepository[NAVCalculation]):
    """Concrete repository for :class:`NAVCalculation` and its holdings."""

    def _newest_first(self):
        return (self.model.calculation_date.desc(), self.model.created_at.desc())

    async def get_with_holdings(self, calculation_id: UUID) -> Optional[NAVCalculation]:
        stmt = (
            select(self.model)
            .where(self.model.id == calculation_id)
            .options(selectinload(self.model.holdings))
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_for_fund(
        self,
        fund_id: UUID,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[NAVCalculation]:
        """All calculations for a fund (inclusive date bounds), newest first."""
        stmt = select(self.model).where(self.model.fund_id == fund_id)
        if start is not None:
            stmt = stmt.where(self.model.calculation_date >= start)
        if end is not None:
            stmt = stmt.where(self.model.calculation_date <= end)
        stmt = (
            stmt.options(selectinload(self.model.holdings))
            .order_by(*self._newest_first())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def latest_holding_for_company(
        self,
        company_id: UUID,
        as_of: Optional[date] = None,
        owner_id: Optional[UUID] = None,
    ) -> Optional[Tuple[NAVHolding, NAVCalculation]]:
        """
        The company's holding in the newest calculation that includes it,
        ignoring calculations dated after ``as_of`` and, when ``owner_id`` is
        given, calculations of funds owned by someone else.
        """
        stmt = (
            select(NAVHolding, self.model)
            .join(self.model, NAVHolding.calculation_id == self.model.id)
            .where(NAVHolding.company_id == company_id)
        )
        if as_of is not None:
            stmt = stmt.where(self.model.calculation_date <= as_of)
        if owner_id is not None:
            stmt = stmt.join(Fund, self.model.fund_id == Fund.id).where(
                Fund.owner_id == owner_id
            )
        stmt = stmt.order_by(*self._newest_first()).limit(1)
        result = await self.db.execute(stmt)
        row = result.first()
        if row is None:
            return None
        return row[0], row[1]
