"""
Limited partner repository.

Provides the fund-scoped listings, the LP snapshot used when a capital call
is created, and the eager-loaded view (LP → responses → calls) behind the
capital-account statement.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from backoffice.models.capital_call import CapitalCallResponse
from backoffice.models.limited_partner import LimitedPartner, LPType
from backoffice.repositories.base import BaseRepository


class LimitedPartnerRepository(BaseRepository[LimitedPartner]):
    """Concrete repository for :class:`LimitedPartner` entities."""

    async def list_lps(
        self,
        fund_id: Optional[UUID] = None,
        lp_type: Optional[LPType] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[LimitedPartner]:
        """LPs ordered by name, optionally filtered by fund and type."""
        stmt = select(self.model)
        if fund_id is not None:
            stmt = stmt.where(self.model.fund_id == fund_id)
        if lp_type is not None:
            stmt = stmt.where(self.model.lp_type == lp_type)
        stmt = stmt.order_by(self.model.name, self.model.id).offset(skip).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_by_fund(self, fund_id: UUID) -> List[LimitedPartner]:
        """Every LP currently in the fund (no pagination; used for call snapshots)."""
        stmt = (
            select(self.model)
            .where(self.model.fund_id == fund_id)
            .order_by(self.model.created_at, self.model.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_by_name(self, fund_id: UUID, name: str) -> Optional[LimitedPartner]:
        stmt = select(self.model).where(self.model.fund_id == fund_id, self.model.name == name)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_with_responses(self, lp_id: UUID) -> Optional[LimitedPartner]:
        """Load the LP with each response and that response's capital call."""
        stmt = (
            select(self.model)
            .where(self.model.id == lp_id)
            .options(
                selectinload(self.model.responses).selectinload(CapitalCallResponse.capital_call)
            )
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def response_count(self, lp_id: UUID) -> int:
        stmt = select(func.count()).select_from(CapitalCallResponse).where(
            CapitalCallResponse.lp_id == lp_id
        )
        result = await self.db.execute(stmt)
        return result.scalar_one()
