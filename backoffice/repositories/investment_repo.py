"""
Investment repository — data-access layer for the ``investments`` table.

The aggregate queries push the grouping into SQL so totals stay exact
DECIMAL arithmetic regardless of how many rows a company has.
"""

from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from backoffice.models.fund import Fund
from backoffice.models.investment import Investment
from backoffice.repositories.base import BaseRepository, numeric_sum


class InvestmentRepository(BaseRepository[Investment]):
    """Concrete repository for :class:`Investment` entities."""

    async def list_investments(
        self,
        company_id: Optional[UUID] = None,
        fund_id: Optional[UUID] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Investment]:
        """Investments, most recent ``investment_date`` first."""
        stmt = select(self.model)
        if company_id is not None:
            stmt = stmt.where(self.model.company_id == company_id)
        if fund_id is not None:
            stmt = stmt.where(self.model.fund_id == fund_id)
        stmt = (
            stmt.order_by(self.model.investment_date.desc(), self.model.id)
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def latest_for_company(
        self, company_id: UUID, owner_id: Optional[UUID] = None
    ) -> Optional[Investment]:
        """
        The company's most recent investment (with its fund), optionally only
        among funds owned by ``owner_id``.
        """
        stmt = (
            select(self.model)
            .where(self.model.company_id == company_id)
            .options(selectinload(self.model.fund))
        )
        if owner_id is not None:
            stmt = stmt.join(Fund, self.model.fund_id == Fund.id).where(
                Fund.owner_id == owner_id
            )
        stmt = stmt.order_by(self.model.investment_date.desc(), self.model.id).limit(1)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def total_by_currency(self, company_id: Optional[UUID] = None) -> Dict[str, Decimal]:
        """Σ amount grouped by currency, optionally for one company."""
        stmt = select(self.model.currency, func.sum(self.model.amount))
        if company_id is not None:
            stmt = stmt.where(self.model.company_id == company_id)
        stmt = stmt.group_by(self.model.currency).order_by(self.model.currency)
        result = await self.db.execute(stmt)
        return {currency: numeric_sum(total) for currency, total in result.all()}

    async def ownership_sum(self, company_id: UUID) -> Decimal:
        stmt = select(func.sum(self.model.ownership)).where(self.model.company_id == company_id)
        result = await self.db.execute(stmt)
        return numeric_sum(result.scalar_one_or_none(), places="0.0001")
