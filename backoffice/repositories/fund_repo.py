"""
Fund repository — data-access layer for the ``funds`` table.

Adds owner-scoped listing and the aggregate queries behind the fund summary.
"""

from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.future import select

from backoffice.models.capital_call import CapitalCall
from backoffice.models.fund import Fund
from backoffice.models.investment import Investment
from backoffice.models.limited_partner import LimitedPartner
from backoffice.repositories.base import BaseRepository, numeric_sum


class FundRepository(BaseRepository[Fund]):
    """Concrete repository for :class:`Fund` entities."""

    async def list_funds(
        self, owner_id: Optional[UUID] = None, skip: int = 0, limit: int = 100
    ) -> List[Fund]:
        """Funds ordered by name, optionally restricted to one owner."""
        stmt = select(self.model)
        if owner_id is not None:
            stmt = stmt.where(self.model.owner_id == owner_id)
        stmt = stmt.order_by(self.model.name, self.model.id).offset(skip).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_by_name(self, name: str) -> Optional[Fund]:
        stmt = select(self.model).where(self.model.name == name).order_by(self.model.created_at)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def total_commitments(self, fund_id: UUID) -> Decimal:
        """Σ LP commitments for the fund (0 when it has no LPs)."""
        stmt = select(func.sum(LimitedPartner.commitment)).where(
            LimitedPartner.fund_id == fund_id
        )
        result = await self.db.execute(stmt)
        return numeric_sum(result.scalar_one_or_none())

    async def lp_count(self, fund_id: UUID) -> int:
        stmt = select(func.count()).select_from(LimitedPartner).where(
            LimitedPartner.fund_id == fund_id
        )
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def capital_call_count(self, fund_id: UUID) -> int:
        stmt = select(func.count()).select_from(CapitalCall).where(
            CapitalCall.fund_id == fund_id
        )
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def invested_by_currency(self, fund_id: UUID) -> Dict[str, Decimal]:
        stmt = (
            select(Investment.currency, func.sum(Investment.amount))
            .where(Investment.fund_id == fund_id)
            .group_by(Investment.currency)
            .order_by(Investment.currency)
        )
        result = await self.db.execute(stmt)
        return {currency: numeric_sum(total) for currency, total in result.all()}
